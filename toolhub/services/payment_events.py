"""In-process fan-out of payment results to WebSocket subscribers.

Delivery is at-most-once and push-only: there is no replay for clients
that connect late, and subscribers are tracked per process only.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Protocol

logger = logging.getLogger(__name__)


class Subscriber(Protocol):
    async def send_json(self, data: Any) -> None: ...


class PaymentStatusBroadcaster:
    """Set of open subscribers guarded by a lock."""

    def __init__(self):
        self._subscribers: set[Subscriber] = set()
        self._lock = asyncio.Lock()

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    async def subscribe(self, subscriber: Subscriber) -> None:
        async with self._lock:
            self._subscribers.add(subscriber)
        logger.info(
            "Payment status subscriber connected",
            extra={"subscribers": self.subscriber_count},
        )

    async def unsubscribe(self, subscriber: Subscriber) -> None:
        async with self._lock:
            self._subscribers.discard(subscriber)
        logger.info(
            "Payment status subscriber disconnected",
            extra={"subscribers": self.subscriber_count},
        )

    async def publish(self, event: dict[str, Any]) -> int:
        """
        Send an event to every subscriber.

        Subscribers whose send fails are dropped.

        Returns:
            Number of subscribers the event was delivered to
        """
        async with self._lock:
            subscribers = list(self._subscribers)

        delivered = 0
        dead: list[Subscriber] = []
        for subscriber in subscribers:
            try:
                await subscriber.send_json(event)
                delivered += 1
            except Exception as e:
                logger.warning(
                    "Dropping payment status subscriber",
                    extra={"error": str(e)},
                )
                dead.append(subscriber)

        if dead:
            async with self._lock:
                for subscriber in dead:
                    self._subscribers.discard(subscriber)

        logger.info(
            "Payment status published",
            extra={
                "gateway_order_id": event.get("orderId"),
                "status": event.get("status"),
                "delivered": delivered,
            },
        )
        return delivered


payment_status_broadcaster = PaymentStatusBroadcaster()
