from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Callable, Protocol, runtime_checkable

from prometheus_client import CONTENT_TYPE_LATEST, push_to_gateway

from users_service.config import Settings
from users_service.observability.classifier import RequestObservation
from users_service.observability.metrics import MetricsRegistry

logger = logging.getLogger(__name__)


@runtime_checkable
class MetricsExporter(Protocol):
    """What the request pipeline and the metrics endpoint need from a metrics backend."""

    content_type: str

    def record(self, observation: RequestObservation) -> None:
        """Fold one classified request into the metrics. Must not block."""
        ...

    def export(self) -> bytes:
        """Render current metrics in Prometheus text exposition format, without side effects."""
        ...

    async def start(self) -> None: ...

    async def stop(self) -> None: ...


class PrometheusExporter:
    """Pull-only backend: observations land in the local registry, scrapes render it."""

    content_type = CONTENT_TYPE_LATEST

    def __init__(self, registry: MetricsRegistry) -> None:
        self.registry = registry

    def record(self, observation: RequestObservation) -> None:
        self.registry.record_observation(observation)

    def export(self) -> bytes:
        return self.registry.render()

    async def start(self) -> None:
        return None

    async def stop(self) -> None:
        return None


class PushGatewayExporter(PrometheusExporter):
    """Local registry that is also pushed to a Prometheus Pushgateway on an interval.

    Pushing happens in a worker thread from a background task, never on the
    request path. ``export()`` still renders the local snapshot so the
    service can be scraped directly as well.
    """

    def __init__(
        self,
        registry: MetricsRegistry,
        gateway: str,
        job: str,
        interval_seconds: float = 15.0,
        push: Callable[..., None] = push_to_gateway,
    ) -> None:
        super().__init__(registry)
        self.gateway = gateway
        self.job = job
        self.interval_seconds = interval_seconds
        self._push = push
        self._task: asyncio.Task[None] | None = None

    async def push(self) -> bool:
        try:
            await asyncio.to_thread(self._push, self.gateway, job=self.job, registry=self.registry)
        except OSError as exc:
            # URLError is an OSError; the next interval tries again.
            logger.warning("metrics.push_failed", extra={"gateway": self.gateway, "error": str(exc)})
            return False
        except Exception:  # noqa: BLE001 - a bad gateway URL must not stop the push loop
            logger.exception("metrics.push_failed", extra={"gateway": self.gateway})
            return False
        logger.debug("metrics.pushed", extra={"gateway": self.gateway, "job": self.job})
        return True

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval_seconds)
            await self.push()

    async def start(self) -> None:
        if self._task is None:
            self._task = asyncio.create_task(self._run())
            logger.info(
                "metrics.push_started",
                extra={"gateway": self.gateway, "job": self.job, "interval_seconds": self.interval_seconds},
            )

    async def stop(self) -> None:
        if self._task is not None:
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
            self._task = None
        # Flush what accumulated since the last interval.
        await self.push()


def build_metrics_exporter(settings: Settings, registry: MetricsRegistry) -> MetricsExporter:
    if settings.metrics_backend == "pushgateway":
        return PushGatewayExporter(
            registry,
            gateway=settings.pushgateway_url,
            job=settings.pushgateway_job,
            interval_seconds=settings.push_interval_seconds,
        )
    return PrometheusExporter(registry)
