"""Payment API endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect

from toolhub.core.auth_dependencies import get_current_user, require_admin
from toolhub.core.database import get_database
from toolhub.models.user import User
from toolhub.schemas.payment import (
    PaymentRecordResponse,
    PaymentVerifyRequest,
    PaymentVerifyResponse,
    RemoteOrderCreate,
    RemoteOrderResponse,
)
from toolhub.schemas.response import SuccessResponse
from toolhub.services.payment_events import payment_status_broadcaster
from toolhub.services.payment_service import PaymentService

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/create-order", response_model=SuccessResponse[RemoteOrderResponse])
async def create_payment_order(
    order_data: RemoteOrderCreate,
    current_user: User = Depends(get_current_user),
    db=Depends(get_database),
):
    """Create a gateway order to open the checkout against."""
    try:
        payment_service = PaymentService(db)
        remote_order = await payment_service.create_remote_order(order_data)

        logger.info(
            "Payment order created",
            extra={
                "user_id": str(current_user.id),
                "gateway_order_id": remote_order.orderId,
                "amount": remote_order.amount,
            },
        )

        return SuccessResponse(
            message="Payment order created successfully",
            data=remote_order,
        )

    except Exception as e:
        logger.error(
            "Error creating payment order",
            extra={"user_id": str(current_user.id), "error": str(e)},
        )
        raise


@router.post("/verify", response_model=SuccessResponse[PaymentVerifyResponse])
async def verify_payment(
    verify_data: PaymentVerifyRequest,
    current_user: User = Depends(get_current_user),
    db=Depends(get_database),
):
    """
    Verify the checkout signature returned by the gateway.

    A failed verification is not an error: the outcome is reported in
    ``data.status``.
    """
    payment_service = PaymentService(db)
    status = await payment_service.verify_payment(verify_data, current_user)

    return SuccessResponse(
        message="Payment verified" if status == "success" else "Payment verification failed",
        data=PaymentVerifyResponse(status=status, orderId=verify_data.razorpay_order_id),
    )


@router.get("/", response_model=SuccessResponse[list[PaymentRecordResponse]])
async def list_payments(
    limit: int = Query(100, ge=1, le=500),
    current_user: User = Depends(require_admin),
    db=Depends(get_database),
):
    """List payment verification attempts (admin only)."""
    payment_service = PaymentService(db)
    payments = await payment_service.list_payments(limit=limit)

    return SuccessResponse(
        message="Payments retrieved successfully",
        data=[PaymentRecordResponse.from_document(payment) for payment in payments],
    )


@router.websocket("/ws")
async def payment_status_socket(websocket: WebSocket):
    """Push payment results to the client until it disconnects."""
    await websocket.accept()
    await payment_status_broadcaster.subscribe(websocket)
    try:
        while True:
            # Inbound messages are ignored; receiving detects the disconnect
            await websocket.receive_text()
    except WebSocketDisconnect:
        pass
    finally:
        await payment_status_broadcaster.unsubscribe(websocket)
