from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from opentelemetry.sdk.trace import TracerProvider

from users_service.api.metrics import router as metrics_router
from users_service.api.users import router as users_router
from users_service.config import SERVICE_VERSION, Settings, get_settings
from users_service.observability.exporters import MetricsExporter, build_metrics_exporter
from users_service.observability.logging import configure_logging
from users_service.observability.metrics import MetricsRegistry
from users_service.observability.middleware import RequestPipelineMiddleware
from users_service.observability.tracing import init_tracer_provider
from users_service.services.user_store import UserStore


def create_app(
    settings: Settings | None = None,
    *,
    exporter: MetricsExporter | None = None,
    tracer_provider: TracerProvider | None = None,
    store: UserStore | None = None,
) -> FastAPI:
    """Composition root: one store, one metrics registry and one tracer per app.

    Log handlers and level are process-wide and set by the first app built;
    the service name is bound per request, so each app logs under its own.
    """

    settings = settings or get_settings()
    configure_logging(settings.log_level, settings.service_name)

    if exporter is None:
        exporter = build_metrics_exporter(settings, MetricsRegistry())
    if tracer_provider is None:
        tracer_provider = init_tracer_provider(settings)
    tracer = tracer_provider.get_tracer(settings.service_name, SERVICE_VERSION)

    @asynccontextmanager
    async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
        await exporter.start()
        try:
            yield
        finally:
            try:
                await exporter.stop()
            finally:
                tracer_provider.shutdown()

    app = FastAPI(title="Users Service", version=SERVICE_VERSION, lifespan=lifespan)
    app.state.settings = settings
    app.state.store = store if store is not None else UserStore()
    app.state.exporter = exporter
    app.state.tracer = tracer

    app.include_router(users_router)
    app.include_router(metrics_router)
    app.add_middleware(
        RequestPipelineMiddleware,
        exporter=exporter,
        tracer=tracer,
        service_name=settings.service_name,
    )
    return app
