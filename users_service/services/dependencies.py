from __future__ import annotations

from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from opentelemetry import trace
from pydantic import ValidationError

from users_service.config import Settings
from users_service.models.schemas import User
from users_service.observability.exporters import MetricsExporter
from users_service.services.user_store import UserStore


def get_settings_from_app(request: Request) -> Settings:
    return request.app.state.settings


def get_store(request: Request) -> UserStore:
    return request.app.state.store


def get_exporter(request: Request) -> MetricsExporter:
    return request.app.state.exporter


def get_tracer(request: Request) -> trace.Tracer:
    return request.app.state.tracer


async def read_user_body(request: Request) -> User:
    """Parse a User from the request body, refusing bodies over the configured limit."""

    limit = get_settings_from_app(request).max_body_bytes
    declared = request.headers.get("content-length")
    if declared is not None and declared.isdigit() and int(declared) > limit:
        raise HTTPException(status_code=413, detail=f"Request body exceeds {limit} bytes")

    body = bytearray()
    async for chunk in request.stream():
        body.extend(chunk)
        if len(body) > limit:
            raise HTTPException(status_code=413, detail=f"Request body exceeds {limit} bytes")

    try:
        return User.model_validate_json(bytes(body))
    except ValidationError as exc:
        raise RequestValidationError(exc.errors(include_url=False)) from exc
