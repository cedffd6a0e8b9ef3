from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse, Response
from opentelemetry import trace

from users_service.models.schemas import User
from users_service.services.dependencies import get_store, get_tracer, read_user_body
from users_service.services.user_store import UserStore

router = APIRouter(tags=["users"])

logger = structlog.get_logger(__name__)


@router.get("/users", response_model=list[User])
async def list_users(
    store: UserStore = Depends(get_store),
    tracer: trace.Tracer = Depends(get_tracer),
) -> JSONResponse:
    with tracer.start_as_current_span("list_users"):
        users = await store.list_users()
    # Serialize outside the store lock.
    return JSONResponse([user.to_wire() for user in users])


@router.post("/users", status_code=201, response_class=Response)
async def create_user(
    user: User = Depends(read_user_body),
    store: UserStore = Depends(get_store),
    tracer: trace.Tracer = Depends(get_tracer),
) -> Response:
    with tracer.start_as_current_span("create_user", attributes={"user.id": str(user.id)}):
        await store.append(user)
    logger.info("user.created", user_id=user.id)
    return Response(status_code=201)
