"""Test cases for the Razorpay gateway adapter."""

import base64
import json

import httpx
import pytest

from toolhub.core.exceptions import ExternalServiceException, ValidationException
from toolhub.services.integrations.payment.razorpay_service import (
    RazorpayService,
    close_razorpay_service,
    compute_payment_signature,
    get_razorpay_service,
    to_minor_units,
    verify_payment_signature,
)
from toolhub.services.payment_service import PaymentService

KEY_ID = "rzp_test_key"
KEY_SECRET = "test_secret_value"


def make_service(handler, **kwargs) -> RazorpayService:
    return RazorpayService(
        key_id=kwargs.get("key_id", KEY_ID),
        key_secret=kwargs.get("key_secret", KEY_SECRET),
        base_url="https://gateway.test/v1",
        transport=httpx.MockTransport(handler),
    )


class TestSignature:
    def test_matching_signature_verifies(self):
        signature = compute_payment_signature("order_1", "pay_1", KEY_SECRET)

        assert verify_payment_signature("order_1", "pay_1", signature, KEY_SECRET)

    def test_single_character_mutation_fails(self):
        signature = compute_payment_signature("order_1", "pay_1", KEY_SECRET)
        flipped = ("0" if signature[-1] != "0" else "1")
        mutated = signature[:-1] + flipped

        assert not verify_payment_signature("order_1", "pay_1", mutated, KEY_SECRET)

    def test_swapped_ids_fail(self):
        signature = compute_payment_signature("order_1", "pay_1", KEY_SECRET)

        assert not verify_payment_signature("pay_1", "order_1", signature, KEY_SECRET)

    def test_wrong_secret_fails(self):
        signature = compute_payment_signature("order_1", "pay_1", "other_secret")

        assert not verify_payment_signature("order_1", "pay_1", signature, KEY_SECRET)

    def test_missing_secret_fails(self):
        signature = compute_payment_signature("order_1", "pay_1", KEY_SECRET)

        assert not verify_payment_signature("order_1", "pay_1", signature, "")

    def test_signature_is_hex_sha256(self):
        signature = compute_payment_signature("order_1", "pay_1", KEY_SECRET)

        assert len(signature) == 64
        int(signature, 16)


class TestCreateOrder:
    def test_minor_units(self):
        assert to_minor_units(499) == 49900
        assert to_minor_units(19.99) == 1999

    @pytest.mark.asyncio
    async def test_order_created_in_paise_with_basic_auth(self):
        captured = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["url"] = str(request.url)
            captured["auth"] = request.headers["Authorization"]
            captured["body"] = json.loads(request.content)
            return httpx.Response(
                200,
                json={"id": "order_XYZ", "amount": 49900, "currency": "INR"},
            )

        service = make_service(handler)
        result = await service.create_order(499, "INR")

        assert result["id"] == "order_XYZ"
        assert captured["url"] == "https://gateway.test/v1/orders"
        expected_auth = base64.b64encode(f"{KEY_ID}:{KEY_SECRET}".encode()).decode()
        assert captured["auth"] == f"Basic {expected_auth}"
        assert captured["body"]["amount"] == 49900
        assert captured["body"]["currency"] == "INR"
        assert captured["body"]["receipt"].startswith("rcpt_")

    @pytest.mark.asyncio
    async def test_gateway_error_is_external_service_error(self):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(500, json={"error": {"description": "boom"}})

        service = make_service(handler)

        with pytest.raises(ExternalServiceException) as exc_info:
            await service.create_order(100, "INR")

        assert exc_info.value.status_code == 502
        assert KEY_SECRET not in exc_info.value.message
        # Order creation is not idempotent, so it is never retried
        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_network_error_is_external_service_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused")

        service = make_service(handler)

        with pytest.raises(ExternalServiceException):
            await service.create_order(100, "INR")

    @pytest.mark.asyncio
    async def test_missing_keys(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise AssertionError("gateway must not be called")

        service = make_service(handler, key_id="", key_secret="")

        with pytest.raises(ExternalServiceException):
            await service.create_order(100, "INR")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("amount", [0, -5, "100", True])
    async def test_invalid_amount(self, amount):
        def handler(request: httpx.Request) -> httpx.Response:
            raise AssertionError("gateway must not be called")

        service = make_service(handler)

        with pytest.raises(ValidationException):
            await service.create_order(amount, "INR")

    @pytest.mark.asyncio
    async def test_empty_currency(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise AssertionError("gateway must not be called")

        service = make_service(handler)

        with pytest.raises(ValidationException):
            await service.create_order(100, "")


class TestSharedService:
    @pytest.mark.asyncio
    async def test_payment_services_share_gateway_client(self, mock_database):
        first = PaymentService(mock_database)
        second = PaymentService(mock_database)

        try:
            assert first.razorpay_service is second.razorpay_service
            assert first.razorpay_service is get_razorpay_service()
            assert (
                first.razorpay_service.client.circuit_breaker
                is second.razorpay_service.client.circuit_breaker
            )
        finally:
            await close_razorpay_service()

    @pytest.mark.asyncio
    async def test_close_releases_shared_service(self):
        service = get_razorpay_service()
        http_client = service.client.client

        await close_razorpay_service()

        assert http_client.is_closed
        assert get_razorpay_service() is not service
        await close_razorpay_service()
