"""Test cases for order API endpoints."""

from unittest.mock import AsyncMock, patch

import pytest
from bson import ObjectId
from fastapi.testclient import TestClient

from toolhub.api.endpoints.order import router
from toolhub.core.auth_dependencies import get_current_user
from toolhub.core.exceptions import ValidationException
from toolhub.models.order import OrderStatus
from tests.conftest import create_test_app


@pytest.fixture
def app(sample_user):
    app = create_test_app(router, prefix="/api/orders")
    app.dependency_overrides[get_current_user] = lambda: sample_user
    return app


@pytest.fixture
def client(app):
    return TestClient(app)


class TestCreateOrderEndpoint:
    @patch("toolhub.api.endpoints.order.OrderService")
    def test_order_created(self, mock_service_class, client, factory):
        order = factory.create_order(couponCode="SAVE20", discountAmount=20.0, finalAmount=80.0)
        mock_service_class.return_value.create_order = AsyncMock(return_value=order)

        response = client.post(
            "/api/orders/",
            json={
                "planId": str(order.planId),
                "originalAmount": 100,
                "discountAmount": 20,
                "finalAmount": 80,
                "couponCode": "SAVE20",
                "gatewayOrderId": "order_ABC123",
            },
        )

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["status"] == OrderStatus.PENDING
        assert data["couponUsed"] == "SAVE20"
        assert data["finalAmount"] == 80.0

    @patch("toolhub.api.endpoints.order.OrderService")
    def test_mismatched_amounts_unprocessable(self, mock_service_class, client):
        mock_service_class.return_value.create_order = AsyncMock(
            side_effect=ValidationException("Final amount does not match")
        )

        response = client.post(
            "/api/orders/",
            json={"planId": str(ObjectId()), "originalAmount": 100, "finalAmount": 70},
        )

        assert response.status_code == 422
        assert response.json()["error_code"] == "VALIDATION_ERROR"

    def test_negative_amount_rejected(self, client):
        response = client.post(
            "/api/orders/",
            json={"planId": str(ObjectId()), "originalAmount": -1, "finalAmount": 0},
        )

        assert response.status_code == 422


class TestListOrdersEndpoint:
    @patch("toolhub.api.endpoints.order.OrderService")
    def test_user_sees_only_own_orders(self, mock_service_class, client, sample_user):
        mock_service_class.return_value.list_orders = AsyncMock(return_value=[])

        response = client.get("/api/orders/?status=success")

        assert response.status_code == 200
        mock_service_class.return_value.list_orders.assert_called_once_with(
            user_id=str(sample_user.id), status="success", order_id=None
        )

    def test_user_cannot_query_other_users(self, client):
        response = client.get(f"/api/orders/?userId={ObjectId()}")

        assert response.status_code == 403

    @patch("toolhub.api.endpoints.order.OrderService")
    def test_admin_filters_any_user(self, mock_service_class, app, admin_user, factory):
        other_user_id = str(ObjectId())
        app.dependency_overrides[get_current_user] = lambda: admin_user
        mock_service_class.return_value.list_orders = AsyncMock(
            return_value=[factory.create_order()]
        )

        response = TestClient(app).get(f"/api/orders/?userId={other_user_id}")

        assert response.status_code == 200
        assert len(response.json()["data"]) == 1
        mock_service_class.return_value.list_orders.assert_called_once_with(
            user_id=other_user_id, status=None, order_id=None
        )


class TestGetOrderEndpoint:
    @patch("toolhub.api.endpoints.order.OrderService")
    def test_owner_reads_order(self, mock_service_class, client, sample_user, factory):
        order = factory.create_order(userId=sample_user.id)
        mock_service_class.return_value.get_order = AsyncMock(return_value=order)

        response = client.get(f"/api/orders/{order.id}")

        assert response.status_code == 200
        assert response.json()["data"]["id"] == str(order.id)

    @patch("toolhub.api.endpoints.order.OrderService")
    def test_other_users_order_forbidden(self, mock_service_class, client, factory):
        order = factory.create_order(userId=ObjectId())
        mock_service_class.return_value.get_order = AsyncMock(return_value=order)

        response = client.get(f"/api/orders/{order.id}")

        assert response.status_code == 403
