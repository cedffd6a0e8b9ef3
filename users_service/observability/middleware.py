from __future__ import annotations

import uuid
from time import perf_counter
from typing import Any, Callable

import structlog
from opentelemetry import trace
from opentelemetry.trace import SpanKind, Status, StatusCode
from starlette.datastructures import MutableHeaders

from users_service.observability.classifier import METRICS_PATH, ClassificationError, classify
from users_service.observability.exporters import MetricsExporter
from users_service.observability.tracing import trace_ids


class RequestPipelineMiddleware:
    """Times each request inside a trace span, logs it, and records its metrics."""

    def __init__(
        self,
        app: Callable[..., Any],
        exporter: MetricsExporter,
        tracer: trace.Tracer,
        service_name: str = "users-service",
    ) -> None:
        self.app = app
        self.service_name = service_name
        self.exporter = exporter
        self.tracer = tracer

    async def __call__(self, scope: dict[str, Any], receive: Callable[..., Any], send: Callable[..., Any]) -> None:
        if scope.get("type") != "http":
            await self.app(scope, receive, send)
            return

        request_id = str(uuid.uuid4())
        path: str = scope.get("path", "")
        method: str = scope.get("method", "")

        with self.tracer.start_as_current_span(
            "request",
            kind=SpanKind.SERVER,
            attributes={"http.method": method, "http.target": path, "http.request_id": request_id},
        ) as span:
            structlog.contextvars.bind_contextvars(
                service=self.service_name,
                request_id=request_id,
                path=path,
                method=method,
                **trace_ids(span.get_span_context()),
            )

            start = perf_counter()
            status_code: int = 500

            async def send_wrapper(message: dict[str, Any]) -> None:
                nonlocal status_code

                if message.get("type") == "http.response.start":
                    status_code = int(message.get("status", 500))
                    headers = MutableHeaders(scope=message)
                    headers["X-Request-ID"] = request_id

                await send(message)

            try:
                await self.app(scope, receive, send_wrapper)
            finally:
                elapsed = perf_counter() - start
                span.set_attribute("http.status_code", status_code)
                if status_code >= 500:
                    span.set_status(Status(StatusCode.ERROR))

                # Scrapes must not perturb what they scrape.
                if path != METRICS_PATH:
                    self._record(status_code, method, path, elapsed)

                structlog.get_logger("access").info(
                    "http_request",
                    status_code=status_code,
                    elapsed_ms=round(elapsed * 1000.0, 2),
                )

                structlog.contextvars.clear_contextvars()

    def _record(self, status_code: int, method: str, path: str, elapsed: float) -> None:
        try:
            observation = classify(status_code, method, path, elapsed)
        except ClassificationError as exc:
            structlog.get_logger("metrics").debug("metrics.skipped", reason=str(exc))
            return
        self.exporter.record(observation)
