from __future__ import annotations

from pathlib import Path

import pytest

from hotel_backend.utils.config import get_settings


@pytest.fixture(autouse=True)
def _fresh_settings():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def test_environment_overrides(monkeypatch) -> None:
    monkeypatch.setenv("DATABASE_PATH", "/tmp/hotel-test.db")
    monkeypatch.setenv("ADMIN_TOKEN", "  token  ")
    monkeypatch.setenv("RESERVATION_MAX_STAY_NIGHTS", "14")
    monkeypatch.setenv("RESERVATION_ALLOW_PAST_CHECK_IN", "yes")
    monkeypatch.setenv("SEED_DEMO_ROOMS", "false")

    settings = get_settings()

    assert settings.database_path == Path("/tmp/hotel-test.db")
    assert settings.admin_token == "token"
    assert settings.reservation_max_stay_nights == 14
    assert settings.reservation_allow_past_check_in is True
    assert settings.seed_demo_rooms is False


def test_blank_admin_token_means_unconfigured(monkeypatch) -> None:
    monkeypatch.setenv("ADMIN_TOKEN", "   ")
    assert get_settings().admin_token is None


def test_non_numeric_value_raises(monkeypatch) -> None:
    monkeypatch.setenv("PAGINATION_MAX_LIMIT", "lots")
    with pytest.raises(ValueError):
        get_settings()


def test_default_limit_above_maximum_raises(monkeypatch) -> None:
    monkeypatch.setenv("PAGINATION_DEFAULT_LIMIT", "50")
    monkeypatch.setenv("PAGINATION_MAX_LIMIT", "20")
    with pytest.raises(ValueError):
        get_settings()
