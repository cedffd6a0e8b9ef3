from __future__ import annotations

from dataclasses import dataclass


METRICS_PATH = "/metrics"

_RECOGNIZED_METHODS = frozenset({"GET", "POST"})
_RECOGNIZED_PATHS = frozenset({"/users"})
INVALID_PATH = "invalid"


class ClassificationError(ValueError):
    """The request falls outside the label set the metrics are allowed to carry."""


@dataclass(frozen=True)
class RequestObservation:
    elapsed_ms: int
    status_family: str
    method: str
    path: str

    def status_code_labels(self) -> dict[str, str]:
        return {"http_method": self.method, "http_status_code": self.status_family}

    def duration_labels(self) -> dict[str, str]:
        return {
            "http_status_code": self.status_family,
            "http_method": self.method,
            "http_target": self.path,
        }


def status_family(status_code: int) -> str:
    if 100 <= status_code <= 599:
        return f"{status_code // 100}00"
    raise ClassificationError(f"unknown status code: {status_code}")


def classify(status_code: int, method: str, path: str, elapsed_seconds: float) -> RequestObservation:
    """Reduce a completed request to bounded label values.

    Unknown status codes and verbs raise ``ClassificationError`` so callers
    skip recording. Unknown paths are folded into ``"invalid"`` instead of
    failing, which keeps probing traffic from growing the path label.
    """

    family = status_family(status_code)
    if method not in _RECOGNIZED_METHODS:
        raise ClassificationError(f"unknown http method: {method}")

    return RequestObservation(
        elapsed_ms=max(int(elapsed_seconds * 1000), 0),
        status_family=family,
        method=method,
        path=path if path in _RECOGNIZED_PATHS else INVALID_PATH,
    )
