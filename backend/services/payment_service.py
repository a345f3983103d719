"""
Payment Intake Service
======================
Orchestrates the three payment flows behind the HTTP layer:

- Order creation (Razorpay order with bounded booking notes)
- Client-reported verification (HMAC check -> normalize -> store -> email)
- Gateway webhook (HMAC over raw body -> route by event -> store -> email)

Collaborators (gateway, store, mailer) are constructed once and injected, so
tests substitute fakes and email is switched off by passing ``mailer=None``.
"""

import json
import math
import uuid
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Dict, Optional

import structlog
from pydantic import BaseModel

from schemas.booking import (
    DEFAULT_ROOM_TYPE,
    BookingRecord,
    build_order_notes,
    is_present,
    normalize_booking_data,
    safe_to_string,
)
from schemas.payments import (
    CreateOrderRequest,
    CreateOrderResponse,
    DiagnosticEmailRequest,
    DiagnosticEmailResponse,
    VerifiedPaymentDocument,
    VerifyPaymentRequest,
    VerifyPaymentResponse,
    WebhookPaymentDocument,
    utc_now_iso,
)
from services.errors import InvalidRequestError
from services.notifications import ConfirmationMailer, EmailResult, PaymentDetails
from services.payment_gateway import RazorpayGateway
from services.signatures import verify_payment_signature, verify_webhook_signature

if TYPE_CHECKING:
    from storage.payment_store import IPaymentStore


PAYMENT_CAPTURED = "payment.captured"


class WebhookSignatureError(InvalidRequestError):
    """Webhook body does not match X-Razorpay-Signature"""


class WebhookResult(BaseModel):
    event: str
    handled: bool
    document_id: Optional[str] = None
    email_sent: Optional[bool] = None


def to_minor_units(amount: Any) -> int:
    """Major currency units (number or numeric string) to integer minor units."""
    if not is_present(amount):
        raise InvalidRequestError("Amount required")
    if isinstance(amount, bool) or not isinstance(amount, (int, float, str)):
        raise InvalidRequestError("Amount must be a number")
    try:
        value = Decimal(str(amount).strip())
    except InvalidOperation:
        raise InvalidRequestError("Amount must be a number")
    if not value.is_finite() or value <= 0:
        raise InvalidRequestError("Amount must be a positive number")
    return int((value * 100).quantize(Decimal(1), rounding=ROUND_HALF_UP))


def major_amount(amount_minor: Any) -> str:
    """Gateway minor units (number or numeric string) as a major-unit string, "0" when unusable."""
    if isinstance(amount_minor, bool):
        return "0"
    if isinstance(amount_minor, str):
        try:
            amount_minor = float(amount_minor.strip() or 0)
        except ValueError:
            return "0"
    if not isinstance(amount_minor, (int, float)) or not math.isfinite(amount_minor):
        return "0"
    return safe_to_string(amount_minor / 100)


def _dig(data: Any, *keys: str) -> Any:
    for key in keys:
        if not isinstance(data, dict):
            return None
        data = data.get(key)
    return data


# =============================================================================
# WEBHOOK ROUTER
# =============================================================================

WebhookHandler = Callable[[Dict[str, Any], str], Awaitable[WebhookResult]]


class WebhookRouter:
    """Maps Razorpay event names to handlers"""

    def __init__(self):
        self._handlers: Dict[str, WebhookHandler] = {}
        self._logger = structlog.get_logger().bind(component="webhook_router")

    def register(self, event_type: str):
        """Decorator to register handler for event type"""
        def decorator(handler: WebhookHandler):
            self._handlers[event_type] = handler
            self._logger.debug("handler_registered", event_type=event_type)
            return handler
        return decorator

    async def route(self, payload: Dict[str, Any], correlation_id: str) -> WebhookResult:
        event_type = safe_to_string(payload.get("event")) or "unknown"

        handler = self._handlers.get(event_type)
        if not handler:
            self._logger.info("webhook_ignored", event_type=event_type,
                              correlation_id=correlation_id)
            return WebhookResult(event=event_type, handled=False)

        return await handler(payload, correlation_id)

    @property
    def supported_events(self) -> list:
        return list(self._handlers.keys())


# =============================================================================
# PAYMENT INTAKE SERVICE
# =============================================================================

class PaymentIntakeService:
    """
    Example:
        service = PaymentIntakeService(gateway, store, mailer, key_secret, webhook_secret)
        order = await service.create_order(CreateOrderRequest(amount=500))
        result = await service.verify_payment(VerifyPaymentRequest(...))
        await service.handle_webhook(raw_body, signature_header)
    """

    def __init__(
        self,
        gateway: RazorpayGateway,
        store: "IPaymentStore",
        key_secret: str,
        webhook_secret: str,
        mailer: Optional[ConfirmationMailer] = None,
        public_key: Optional[str] = None,
    ):
        self.gateway = gateway
        self.store = store
        self.mailer = mailer
        self._key_secret = key_secret
        self._webhook_secret = webhook_secret
        self.public_key = public_key if public_key is not None else gateway.key_id

        self.router = WebhookRouter()
        self._register_handlers()

        self._base_logger = structlog.get_logger()

    @property
    def email_enabled(self) -> bool:
        return self.mailer is not None

    def _get_logger(self, correlation_id: Optional[str] = None):
        """Get logger bound with correlation context"""
        return self._base_logger.bind(
            component="payment_intake",
            correlation_id=correlation_id or str(uuid.uuid4()),
        )

    async def _send_confirmation(self, booking: BookingRecord, payment: PaymentDetails) -> EmailResult:
        if self.mailer is None:
            return EmailResult(success=False, message="Email sending disabled")
        return await self.mailer.send_payment_confirmation(booking, payment)

    # =========================================================================
    # ORDER CREATION
    # =========================================================================

    async def create_order(self, request: CreateOrderRequest) -> CreateOrderResponse:
        log = self._get_logger()

        amount_minor = to_minor_units(request.amount)
        notes = build_order_notes(request.bookingData)
        log.info("order_requested", amount=amount_minor, currency=request.currency,
                 note_keys=sorted(notes))

        order = await self.gateway.create_order(amount_minor, request.currency, notes=notes)

        log.info("order_created", order_id=order.id, amount=order.amount)
        return CreateOrderResponse(
            id=order.id,
            amount=order.amount,
            currency=order.currency,
            key=self.public_key,
        )

    # =========================================================================
    # CLIENT-REPORTED VERIFICATION
    # =========================================================================

    async def verify_payment(self, request: VerifyPaymentRequest) -> VerifyPaymentResponse:
        order_id = request.razorpay_order_id
        payment_id = request.razorpay_payment_id
        signature = request.razorpay_signature
        log = self._get_logger().bind(order_id=order_id, payment_id=payment_id)

        if not (order_id and payment_id and signature):
            log.warning("verification_incomplete",
                        has_order_id=bool(order_id),
                        has_payment_id=bool(payment_id),
                        has_signature=bool(signature))
            raise InvalidRequestError("Missing required Razorpay payment details")

        if not verify_payment_signature(order_id, payment_id, signature, self._key_secret):
            log.warning("payment_signature_invalid")
            raise InvalidRequestError("Invalid Signature")

        booking = normalize_booking_data(request.bookingData).model_copy(update={
            "processedAt": utc_now_iso(),
            "paymentId": payment_id,
            "orderId": order_id,
        })
        input_keys = sorted(request.bookingData) if isinstance(request.bookingData, dict) else []
        log.info("booking_normalized", data_format=booking.dataFormat, input_keys=input_keys)

        document = VerifiedPaymentDocument(
            orderId=order_id,
            paymentId=payment_id,
            bookingData=booking,
        )
        doc_id = await self.store.add(document.model_dump(mode="json"))

        email = await self._send_confirmation(
            booking, PaymentDetails(payment_id=payment_id, order_id=order_id)
        )

        if email.success:
            email_message = "Confirmation email sent"
        elif not self.email_enabled:
            email_message = "Email sending disabled"
        else:
            email_message = "Email sending failed"

        log.info("payment_verified", doc_id=doc_id, email_sent=email.success)
        return VerifyPaymentResponse(
            bookingId=booking.bookingId,
            paymentId=payment_id,
            emailSent=email.success,
            emailMessage=email_message,
        )

    # =========================================================================
    # WEBHOOK
    # =========================================================================

    async def handle_webhook(self, body: bytes, signature: Optional[str]) -> WebhookResult:
        """
        Verify and process a Razorpay webhook.

        ``body`` must be the raw request bytes. Signature is checked before
        the body is parsed.

        Raises:
            WebhookSignatureError: signature missing or wrong
            ValueError: body is not JSON, or is JSON null
        """
        log = self._get_logger()

        if not verify_webhook_signature(body, signature, self._webhook_secret):
            log.warning("webhook_signature_invalid", body_bytes=len(body))
            raise WebhookSignatureError("Invalid Webhook Signature")

        payload = json.loads(body)
        if payload is None:
            raise ValueError("Webhook payload is null")
        if not isinstance(payload, dict):
            log.info("webhook_ignored", event_type="unknown", payload_type=type(payload).__name__)
            return WebhookResult(event="unknown", handled=False)

        correlation_id = safe_to_string(_dig(payload, "payload", "payment", "entity", "id")) or str(uuid.uuid4())
        log = self._get_logger(correlation_id)
        log.info("webhook_received", event_type=payload.get("event"))

        return await self.router.route(payload, correlation_id)

    def _register_handlers(self):
        """Register all webhook handlers"""

        @self.router.register(PAYMENT_CAPTURED)
        async def handle_payment_captured(payload: Dict[str, Any], correlation_id: str):
            return await self._on_payment_captured(payload, correlation_id)

    async def _on_payment_captured(self, payload: Dict[str, Any], correlation_id: str) -> WebhookResult:
        log = self._get_logger(correlation_id)
        event = payload["event"]
        entity = _dig(payload, "payload", "payment", "entity")

        if not isinstance(entity, dict):
            log.warning("webhook_entity_missing", event_type=event)
            return WebhookResult(event=event, handled=False)

        document = WebhookPaymentDocument(razorpayData=entity, event=event)
        doc_id = await self.store.add(document.model_dump(mode="json"))

        email_sent = None
        notes = entity.get("notes")
        if isinstance(notes, dict) and is_present(notes.get("email")):
            booking = self._booking_from_entity(entity, notes)
            result = await self._send_confirmation(
                booking,
                PaymentDetails(
                    payment_id=safe_to_string(entity.get("id")),
                    order_id=safe_to_string(entity.get("order_id")),
                ),
            )
            email_sent = result.success

        log.info("webhook_processed", event_type=event, doc_id=doc_id, email_sent=email_sent)
        return WebhookResult(event=event, handled=True, document_id=doc_id, email_sent=email_sent)

    @staticmethod
    def _booking_from_entity(entity: Dict[str, Any], notes: Dict[str, Any]) -> BookingRecord:
        """Booking details for the email, rebuilt from order notes."""
        def note(key: str, default: str = "") -> str:
            value = notes.get(key)
            return safe_to_string(value) if is_present(value) else default

        return BookingRecord(
            name=note("name", "Customer"),
            email=note("email"),
            phone=note("phone"),
            roomType=note("roomType", DEFAULT_ROOM_TYPE),
            fromDate=note("fromDate"),
            toDate=note("toDate"),
            guests=note("guests", "1"),
            totalAmount=major_amount(entity.get("amount")),
            bookingId=note("bookingId", safe_to_string(entity.get("id"))),
            numberOfNights=note("nights", "1"),
        )

    # =========================================================================
    # DIAGNOSTICS
    # =========================================================================

    async def send_test_email(self, request: DiagnosticEmailRequest) -> DiagnosticEmailResponse:
        """Send a fixed sample confirmation to check SMTP settings."""
        if not request.email:
            raise InvalidRequestError("Email required")

        booking = BookingRecord(
            name=request.name,
            email=request.email,
            roomType=DEFAULT_ROOM_TYPE,
            fromDate="2025-01-15",
            toDate="2025-01-17",
            guests="2",
            totalAmount="5000",
            bookingId="TEST123",
            numberOfNights="2",
        )
        result = await self._send_confirmation(
            booking, PaymentDetails(payment_id="pay_test123", order_id="order_test123")
        )

        return DiagnosticEmailResponse(
            success=result.success,
            message="Test email sent successfully" if result.success else "Failed to send test email",
            error=result.error or (None if result.success else result.message),
        )
