from __future__ import annotations

import hashlib
import hmac
import logging
import time
from typing import Any

import httpx

from toolhub.core.config import settings
from toolhub.core.exceptions import ExternalServiceException, ValidationException
from toolhub.core.resilience import ResilientHttpClient

logger = logging.getLogger(__name__)

SERVICE_NAME = "Razorpay"


def to_minor_units(amount: float) -> int:
    """Rupees to paise (or dollars to cents)."""
    return int(round(amount * 100))


def compute_payment_signature(order_id: str, payment_id: str, secret: str) -> str:
    """Hex HMAC-SHA256 of ``order_id|payment_id`` keyed with the key secret."""
    return hmac.new(
        secret.encode("utf-8"),
        f"{order_id}|{payment_id}".encode("utf-8"),
        hashlib.sha256,
    ).hexdigest()


def verify_payment_signature(
    order_id: str, payment_id: str, signature: str, secret: str
) -> bool:
    """Constant-time check of a checkout signature."""
    if not secret or not signature:
        return False
    expected_signature = compute_payment_signature(order_id, payment_id, secret)
    return hmac.compare_digest(expected_signature, signature)


class RazorpayService:
    """Service for Razorpay payment gateway integration."""

    def __init__(
        self,
        key_id: str | None = None,
        key_secret: str | None = None,
        base_url: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.name = "RazorpayService"
        self.key_id = settings.RAZORPAY_KEY_ID if key_id is None else key_id
        self.key_secret = (
            settings.RAZORPAY_KEY_SECRET if key_secret is None else key_secret
        )
        self.base_url = (base_url or settings.RAZORPAY_BASE_URL).rstrip("/")
        self.client = ResilientHttpClient(
            timeout_seconds=settings.RAZORPAY_TIMEOUT_SECONDS,
            auth=(self.key_id, self.key_secret),
            transport=transport,
        )

    @property
    def is_configured(self) -> bool:
        return bool(self.key_id and self.key_secret)

    def generate_receipt(self) -> str:
        """Receipt id attached to every gateway order."""
        return f"rcpt_{int(time.time() * 1000)}"

    async def create_order(self, amount: float, currency: str) -> dict[str, Any]:
        """
        Create an order at the gateway.

        Args:
            amount: Amount in the major currency unit
            currency: ISO currency code

        Returns:
            The gateway's order object; ``id`` is the gateway order id

        Raises:
            ValidationException: Amount not positive or currency empty
            ExternalServiceException: Keys missing or the gateway call failed
        """
        if not isinstance(amount, (int, float)) or isinstance(amount, bool) or amount <= 0:
            raise ValidationException(
                "Amount must be a positive number", details={"amount": amount}
            )
        if not currency or not isinstance(currency, str):
            raise ValidationException(
                "Currency is required", details={"currency": currency}
            )

        if not self.is_configured:
            logger.error("Razorpay keys are not configured")
            raise ExternalServiceException(
                SERVICE_NAME, "Payment gateway is not configured"
            )

        payload = {
            "amount": to_minor_units(amount),
            "currency": currency.upper(),
            "receipt": self.generate_receipt(),
        }

        logger.info(
            "Creating Razorpay order",
            extra={
                "amount": payload["amount"],
                "currency": payload["currency"],
                "receipt": payload["receipt"],
            },
        )

        try:
            response = await self.client.request(
                "POST",
                f"{self.base_url}/orders",
                json=payload,
                headers={"Content-Type": "application/json"},
                circuit_key="razorpay_api",
            )
            response_data = response.json()
        except httpx.HTTPStatusError as e:
            logger.error(
                "Razorpay rejected order creation",
                extra={"status": e.response.status_code, "receipt": payload["receipt"]},
            )
            raise ExternalServiceException(
                SERVICE_NAME,
                "Failed to create payment order",
                details={"status": e.response.status_code},
            ) from e
        except (httpx.HTTPError, ValueError) as e:
            logger.error(
                "Failed to create Razorpay order",
                extra={"receipt": payload["receipt"], "error": type(e).__name__},
                exc_info=True,
            )
            raise ExternalServiceException(
                SERVICE_NAME, "Failed to create payment order"
            ) from e

        if not response_data.get("id"):
            raise ExternalServiceException(
                SERVICE_NAME, "Gateway response did not include an order id"
            )

        logger.info(
            "Razorpay order created",
            extra={"gateway_order_id": response_data["id"], "receipt": payload["receipt"]},
        )
        return response_data

    def verify_payment_signature(
        self, order_id: str, payment_id: str, signature: str
    ) -> bool:
        """Verify a checkout signature with the configured key secret."""
        is_valid = verify_payment_signature(
            order_id, payment_id, signature, self.key_secret
        )

        if not is_valid:
            logger.warning(
                "Payment signature verification failed",
                extra={
                    "gateway_order_id": order_id,
                    "gateway_payment_id": payment_id,
                    "received_signature": (signature or "")[:8] + "...",
                },
            )

        return is_valid

    async def aclose(self) -> None:
        await self.client.aclose()


_razorpay_service: RazorpayService | None = None


def get_razorpay_service() -> RazorpayService:
    """Process-wide gateway service, sharing one HTTP client and circuit breaker."""
    global _razorpay_service
    if _razorpay_service is None:
        _razorpay_service = RazorpayService()
    return _razorpay_service


async def close_razorpay_service() -> None:
    global _razorpay_service
    if _razorpay_service is not None:
        await _razorpay_service.aclose()
        _razorpay_service = None
