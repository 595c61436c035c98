"""Tests for API Middleware."""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from . import middleware
from .middleware import RateLimitMiddleware


@pytest.fixture
def clock(monkeypatch: pytest.MonkeyPatch) -> list[float]:
    """Controllable wall clock for rate-limit windows."""
    now = [600.0]
    monkeypatch.setattr(middleware.time, "time", lambda: now[0])
    return now


@pytest.fixture
def limiter() -> RateLimitMiddleware:
    """Rate limiter wrapping a one-route app."""
    app = FastAPI()

    @app.get("/api/ping")
    async def ping() -> dict[str, str]:
        return {"status": "ok"}

    return RateLimitMiddleware(app, requests_per_minute=2)


# --- Rate Limit Tests ---


def test_limit_returns_429(limiter: RateLimitMiddleware, clock: list[float]) -> None:
    """Test requests beyond the window budget are refused."""
    client = TestClient(limiter)

    assert client.get("/api/ping").headers["x-ratelimit-remaining"] == "1"
    assert client.get("/api/ping").status_code == 200
    response = client.get("/api/ping")

    assert response.status_code == 429
    assert response.headers["retry-after"] == "60"


def test_new_window_refills_budget(limiter: RateLimitMiddleware, clock: list[float]) -> None:
    """Test the budget is restored once the minute rolls over."""
    client = TestClient(limiter)
    client.get("/api/ping")
    client.get("/api/ping")

    clock[0] += 60
    assert client.get("/api/ping").status_code == 200


def test_closed_window_buckets_are_dropped(
    limiter: RateLimitMiddleware, clock: list[float]
) -> None:
    """Test clients seen in a past window do not accumulate."""
    client = TestClient(limiter)
    client.get("/api/ping")
    for i in range(50):
        limiter.buckets[f"10.0.0.{i}"] = {"window": int(clock[0] // 60), "tokens": 0}
    assert len(limiter.buckets) == 51

    clock[0] += 60
    client.get("/api/ping")

    assert list(limiter.buckets) == ["testclient"]
