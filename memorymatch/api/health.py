"""
Health check endpoints.

Liveness, plus readiness that checks the card database and reports which
storage backend the game will read from.
"""

from typing import Annotated, Literal

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from memorymatch.config import appwrite_configured
from memorymatch.db.database import get_session

router = APIRouter(tags=["health"])

StorageBackend = Literal["appwrite", "local"]


class HealthResponse(BaseModel):
    """Probe result. Readiness also reports the database and storage backend."""

    status: str
    database: str | None = None
    storage: StorageBackend | None = None


@router.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    """Liveness probe: the process is up. Never queries the card database."""
    return HealthResponse(status="healthy")


@router.get(
    "/ready",
    response_model=HealthResponse,
    responses={503: {"model": HealthResponse}},
)
async def ready(
    response: Response,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> HealthResponse:
    """
    Readiness probe.

    Returns 503 if the card database cannot be queried.
    """
    storage: StorageBackend = "appwrite" if appwrite_configured() else "local"
    try:
        await session.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError):
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return HealthResponse(status="not ready", database="disconnected", storage=storage)
    return HealthResponse(status="ready", database="connected", storage=storage)
