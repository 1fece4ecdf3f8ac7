"""Test cases for the per-client rate limit middleware."""

import time
from unittest.mock import patch

from fastapi import FastAPI
from fastapi.testclient import TestClient

from toolhub.core import security
from toolhub.core.security import (
    RATE_LIMIT_WINDOW_SECONDS,
    RateLimitMiddleware,
    prune_rate_limit_store,
    rate_limit_store,
)


def make_app() -> FastAPI:
    app = FastAPI()
    app.add_middleware(RateLimitMiddleware)

    @app.get("/ping")
    async def ping():
        return {"ok": True}

    return app


class TestPruneRateLimitStore:
    def test_idle_clients_dropped(self):
        now = time.time()
        with patch.dict(
            rate_limit_store,
            {
                "10.0.0.1": [now - RATE_LIMIT_WINDOW_SECONDS - 5],
                "10.0.0.2": [now - 5],
                "10.0.0.3": [],
            },
            clear=True,
        ):
            removed = prune_rate_limit_store(now)

            assert removed == 2
            assert list(rate_limit_store) == ["10.0.0.2"]


class TestRateLimitMiddleware:
    def test_sweep_removes_stale_clients(self):
        stale = time.time() - RATE_LIMIT_WINDOW_SECONDS - 5
        with (
            patch.dict(rate_limit_store, {"10.0.0.9": [stale]}, clear=True),
            patch.object(security, "_last_prune", 0.0),
        ):
            response = TestClient(make_app()).get("/ping")

            assert response.status_code == 200
            assert "10.0.0.9" not in rate_limit_store
            assert "testclient" in rate_limit_store

    def test_limit_exceeded(self):
        with (
            patch.dict(rate_limit_store, {}, clear=True),
            patch.object(security.settings, "RATE_LIMIT_PER_MINUTE", 2),
        ):
            client = TestClient(make_app())
            client.get("/ping")
            client.get("/ping")

            response = client.get("/ping")

            assert response.status_code == 429
            assert response.json()["error_code"] == "RATE_LIMITED"
