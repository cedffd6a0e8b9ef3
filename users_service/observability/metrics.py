from __future__ import annotations

from threading import Lock

from prometheus_client import CollectorRegistry, Counter, Histogram, generate_latest
from prometheus_client.metrics_core import Metric

from users_service.observability.classifier import RequestObservation


# Fixed in advance: exposition-format histograms cannot rebin.
DURATION_BUCKETS_MS = (5, 10, 25, 50, 100, 250, 500, 1000, 2500, 5000, 10000)


class MetricsRegistry:
    """Process-wide request metrics, owned by the composition root.

    Updates for one observation and collection for an export share a lock,
    so a scrape never sees the request counter ahead of its labelled
    counterparts. The object quacks like a prometheus_client registry
    (``collect()``), so it can be handed to ``generate_latest`` and
    ``push_to_gateway`` directly.
    """

    def __init__(self) -> None:
        self._lock = Lock()
        self._registry = CollectorRegistry(auto_describe=True)
        self.incoming_requests = Counter(
            "incoming_requests",
            "Total number of incoming requests",
            registry=self._registry,
        )
        self.status_codes = Counter(
            "status_codes",
            "Responses by HTTP method and status code family",
            ["http_method", "http_status_code"],
            registry=self._registry,
        )
        self.duration = Histogram(
            "http_server_duration",
            "HTTP request duration in milliseconds",
            ["http_status_code", "http_method", "http_target"],
            unit="milliseconds",
            buckets=DURATION_BUCKETS_MS,
            registry=self._registry,
        )

    def record_observation(self, observation: RequestObservation) -> None:
        with self._lock:
            self.incoming_requests.inc()
            self.status_codes.labels(**observation.status_code_labels()).inc()
            self.duration.labels(**observation.duration_labels()).observe(observation.elapsed_ms)

    def collect(self) -> list[Metric]:
        with self._lock:
            return list(self._registry.collect())

    def render(self) -> bytes:
        return generate_latest(self)  # type: ignore[arg-type]
