"""
Payment Schemas
===============
HTTP request/response models and the two stored payment document shapes.

Stored documents are discriminated by ``source``:

- ``verify-payment``: written after a client-reported signature check
- ``webhook``: written for a gateway ``payment.captured`` event

There is no shared schema between the two, so readers must branch on
``source`` (see ``parse_payment_document``).
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Any, Dict, Literal, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter, ValidationError

from schemas.booking import BookingRecord


def utc_now_iso() -> str:
    """ISO-8601 UTC timestamp with millisecond precision and a Z suffix."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class PaymentSource(str, Enum):
    VERIFY_PAYMENT = "verify-payment"
    WEBHOOK = "webhook"


# =============================================================================
# REQUEST MODELS
# =============================================================================

class CreateOrderRequest(BaseModel):
    """Order creation request. ``amount`` is in major currency units."""
    amount: Optional[Any] = None
    currency: str = "INR"
    bookingData: Optional[Any] = None


class VerifyPaymentRequest(BaseModel):
    """Client-reported checkout result"""
    razorpay_order_id: Optional[str] = None
    razorpay_payment_id: Optional[str] = None
    razorpay_signature: Optional[str] = None
    bookingData: Optional[Any] = None


class DiagnosticEmailRequest(BaseModel):
    """Diagnostic email request"""
    email: Optional[str] = None
    name: str = "Test User"


# =============================================================================
# RESPONSE MODELS
# =============================================================================

class CreateOrderResponse(BaseModel):
    success: bool = True
    id: str
    amount: int
    currency: str
    key: Optional[str] = None


class VerifyPaymentResponse(BaseModel):
    success: bool = True
    message: str = "Payment Verified Successfully"
    bookingId: str = ""
    paymentId: str = ""
    emailSent: bool = False
    emailMessage: str = ""


class DiagnosticEmailResponse(BaseModel):
    success: bool
    message: str
    error: Optional[str] = None


class HealthResponse(BaseModel):
    """Health check response"""
    status: str
    version: str
    uptime_seconds: float
    email_enabled: bool
    store_backend: str


# =============================================================================
# STORED DOCUMENTS
# =============================================================================

class VerifiedPaymentDocument(BaseModel):
    """Document written by /verify-payment"""
    orderId: str
    paymentId: str
    verified: bool = True
    bookingData: BookingRecord
    source: Literal["verify-payment"] = PaymentSource.VERIFY_PAYMENT.value
    timestamp: str = Field(default_factory=utc_now_iso)


class WebhookPaymentDocument(BaseModel):
    """Document written by /webhook for a captured payment"""
    razorpayData: Dict[str, Any]
    event: str
    source: Literal["webhook"] = PaymentSource.WEBHOOK.value
    timestamp: str = Field(default_factory=utc_now_iso)


PaymentDocument = Annotated[
    Union[VerifiedPaymentDocument, WebhookPaymentDocument],
    Field(discriminator="source"),
]

_document_adapter = TypeAdapter(PaymentDocument)


def parse_payment_document(data: Dict[str, Any]) -> Union[VerifiedPaymentDocument, WebhookPaymentDocument]:
    """Load a stored document into the model matching its ``source`` tag."""
    source = data.get("source") if isinstance(data, dict) else None
    if source not in {s.value for s in PaymentSource}:
        raise ValueError(f"Unknown payment document source: {source!r}")
    try:
        return _document_adapter.validate_python(data)
    except ValidationError as e:
        raise ValueError(f"Malformed {source} document: {e.error_count()} error(s)") from e
