from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import Response

from users_service.observability.classifier import METRICS_PATH
from users_service.observability.exporters import MetricsExporter
from users_service.services.dependencies import get_exporter

router = APIRouter(tags=["metrics"])


@router.get(METRICS_PATH, include_in_schema=False)
async def metrics(exporter: MetricsExporter = Depends(get_exporter)) -> Response:
    """Prometheus text exposition of the request metrics."""
    return Response(content=exporter.export(), media_type=exporter.content_type)
