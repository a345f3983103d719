# services/payment_gateway.py
# ============================================================================
# BOOKING PAYMENT RELAY: RAZORPAY GATEWAY
# ============================================================================
# Thin async wrapper over the (blocking) Razorpay SDK client
# ============================================================================

import asyncio
import time
from typing import Any, Dict, Optional

import razorpay
import structlog
from pydantic import BaseModel

from services.errors import GatewayError


class GatewayOrder(BaseModel):
    """Order as returned by Razorpay"""
    id: str
    amount: int
    currency: str
    receipt: Optional[str] = None
    status: Optional[str] = None


def make_receipt() -> str:
    return f"receipt_{int(time.time() * 1000)}"


class RazorpayGateway:
    """
    Order creation against Razorpay.

    The SDK client is built once and shared; it is a requests session
    underneath, so calls are pushed to the default executor.

    Example:
        gateway = RazorpayGateway(key_id, key_secret)
        order = await gateway.create_order(50000, "INR", notes={"name": "Asha"})
    """

    def __init__(self, key_id: str, key_secret: str, client: Optional[Any] = None):
        self.key_id = key_id
        self._client = client or razorpay.Client(auth=(key_id, key_secret))
        self._logger = structlog.get_logger().bind(component="razorpay_gateway")

    async def create_order(
        self,
        amount_minor: int,
        currency: str,
        notes: Optional[Dict[str, str]] = None,
        receipt: Optional[str] = None,
    ) -> GatewayOrder:
        """Create an order for ``amount_minor`` (paise for INR)."""
        payload = {
            "amount": amount_minor,
            "currency": currency,
            "receipt": receipt or make_receipt(),
            "notes": notes or {},
        }

        def create():
            return self._client.order.create(data=payload)

        try:
            result = await asyncio.get_event_loop().run_in_executor(None, create)
        except Exception as e:
            self._logger.error("order_create_failed",
                               error=str(e),
                               error_type=type(e).__name__,
                               amount=amount_minor,
                               currency=currency)
            raise GatewayError(str(e)) from e

        order = GatewayOrder.model_validate(result)
        self._logger.info("order_created_upstream",
                          order_id=order.id,
                          amount=order.amount,
                          currency=order.currency)
        return order
