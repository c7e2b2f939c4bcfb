"""Controller layer for liveness probes and admin login."""

from __future__ import annotations

import sqlite3
import time
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Request, status
from pydantic import BaseModel, Field

from hotel_backend.controllers.dependencies import get_auth_service
from hotel_backend.repository.data_repository import DataRepository
from hotel_backend.services.auth_service import (
    AdminTokenNotConfiguredError,
    AuthService,
    InvalidAdminTokenError,
)
from hotel_backend.utils.config import get_settings
from hotel_backend.utils.logger import get_logger


logger = get_logger(__name__)
settings = get_settings()

router = APIRouter(tags=["system"])


class LoginRequest(BaseModel):
    admin_token: str = Field(min_length=1)


class LoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"


class HealthResponse(BaseModel):
    status: str
    service: str
    version: str
    timestamp: str


class DatabaseHealthResponse(BaseModel):
    status: str
    database: str
    latency_ms: float = Field(ge=0.0)
    timestamp: str


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@router.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    return HealthResponse(
        status="ok",
        service=settings.app_name,
        version=settings.app_version,
        timestamp=_now(),
    )


@router.get("/health/db", response_model=DatabaseHealthResponse)
def database_health(request: Request) -> DatabaseHealthResponse:
    repository: DataRepository = request.app.state.repository
    started = time.perf_counter()
    try:
        repository.ping()
    except sqlite3.Error as exc:
        logger.exception("Database health check failed")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={"status": "error", "database": "disconnected"},
        ) from exc
    latency_ms = round((time.perf_counter() - started) * 1000, 3)
    return DatabaseHealthResponse(
        status="ok",
        database="connected",
        latency_ms=latency_ms,
        timestamp=_now(),
    )


@router.post("/login", response_model=LoginResponse, status_code=status.HTTP_200_OK)
async def login(
    payload: LoginRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> LoginResponse:
    try:
        bearer = auth_service.login(payload.admin_token)
    except (AdminTokenNotConfiguredError, InvalidAdminTokenError) as exc:
        logger.warning("Admin login rejected: %s", exc)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(exc),
        ) from exc
    return LoginResponse(access_token=bearer)
