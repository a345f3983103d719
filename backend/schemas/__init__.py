# schemas/__init__.py
# ============================================================================
# BOOKING PAYMENT RELAY: SCHEMAS
# ============================================================================
# Booking normalization, HTTP models and stored document shapes
# ============================================================================

from schemas.booking import (
    BookingRecord,
    build_order_notes,
    normalize_booking_data,
    safe_to_string,
)
from schemas.payments import (
    CreateOrderRequest,
    CreateOrderResponse,
    DiagnosticEmailRequest,
    DiagnosticEmailResponse,
    HealthResponse,
    PaymentSource,
    VerifiedPaymentDocument,
    VerifyPaymentRequest,
    VerifyPaymentResponse,
    WebhookPaymentDocument,
    parse_payment_document,
)

__all__ = [
    # Booking
    "BookingRecord",
    "build_order_notes",
    "normalize_booking_data",
    "safe_to_string",
    # HTTP
    "CreateOrderRequest",
    "CreateOrderResponse",
    "DiagnosticEmailRequest",
    "DiagnosticEmailResponse",
    "HealthResponse",
    "VerifyPaymentRequest",
    "VerifyPaymentResponse",
    # Documents
    "PaymentSource",
    "VerifiedPaymentDocument",
    "WebhookPaymentDocument",
    "parse_payment_document",
]
