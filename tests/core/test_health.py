"""Smoke test for the assembled application."""

from fastapi.testclient import TestClient

from toolhub.main import SERVICE_VERSION, app


def test_health_check():
    response = TestClient(app).get("/api/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "healthy"
    assert body["version"] == SERVICE_VERSION
    assert response.headers["X-Content-Type-Options"] == "nosniff"


def test_routers_mounted():
    paths = {route.path for route in app.routes}

    for expected in (
        "/api/plans/",
        "/api/coupons/validate",
        "/api/orders/",
        "/api/payments/verify",
        "/api/payments/ws",
        "/api/notifications/",
        "/api/likes/",
        "/api/ai-tools/",
        "/api/useful-websites/",
        "/api/users/sync",
        "/api/admin/users-with-orders",
    ):
        assert expected in paths
