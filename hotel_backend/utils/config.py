"""Environment-driven application settings."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, received: {raw!r}") from exc


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number, received: {raw!r}") from exc


@dataclass(frozen=True)
class Settings:
    app_name: str
    app_version: str
    log_level: str
    database_path: Path
    database_busy_timeout_seconds: float
    admin_token: str | None
    reservation_max_stay_nights: int
    reservation_max_advance_days: int
    reservation_allow_past_check_in: bool
    pagination_default_limit: int
    pagination_max_limit: int
    seed_demo_rooms: bool


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Build settings once per process from environment variables."""
    admin_token = os.getenv("ADMIN_TOKEN", "").strip() or None
    settings = Settings(
        app_name=os.getenv("APP_NAME", "Hotel Reservation Service"),
        app_version=os.getenv("APP_VERSION", "1.0.0"),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        database_path=Path(os.getenv("DATABASE_PATH", "data/hotel.db")),
        database_busy_timeout_seconds=_env_float("DATABASE_BUSY_TIMEOUT_SECONDS", 10.0),
        admin_token=admin_token,
        reservation_max_stay_nights=_env_int("RESERVATION_MAX_STAY_NIGHTS", 30),
        reservation_max_advance_days=_env_int("RESERVATION_MAX_ADVANCE_DAYS", 365),
        reservation_allow_past_check_in=_env_bool("RESERVATION_ALLOW_PAST_CHECK_IN", False),
        pagination_default_limit=_env_int("PAGINATION_DEFAULT_LIMIT", 10),
        pagination_max_limit=_env_int("PAGINATION_MAX_LIMIT", 100),
        seed_demo_rooms=_env_bool("SEED_DEMO_ROOMS", True),
    )
    if settings.database_busy_timeout_seconds <= 0:
        raise ValueError("DATABASE_BUSY_TIMEOUT_SECONDS must be > 0")
    if settings.reservation_max_stay_nights <= 0:
        raise ValueError("RESERVATION_MAX_STAY_NIGHTS must be > 0")
    if settings.reservation_max_advance_days < 0:
        raise ValueError("RESERVATION_MAX_ADVANCE_DAYS must be >= 0")
    if not 0 < settings.pagination_default_limit <= settings.pagination_max_limit:
        raise ValueError("PAGINATION_DEFAULT_LIMIT must be in (0, PAGINATION_MAX_LIMIT]")
    return settings
