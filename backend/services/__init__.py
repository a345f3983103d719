# services/__init__.py
# ============================================================================
# BOOKING PAYMENT RELAY: SERVICES MODULE
# ============================================================================
# Gateway client, signature checks, confirmation email and orchestration
# ============================================================================

from services.errors import (
    PaymentIntakeError,
    InvalidRequestError,
    GatewayError,
    StorageError,
    ConfigurationError,
)

from services.signatures import (
    payment_signature,
    webhook_signature,
    verify_payment_signature,
    verify_webhook_signature,
)

from services.payment_gateway import (
    RazorpayGateway,
    GatewayOrder,
)

from services.notifications import (
    ConfirmationMailer,
    EmailResult,
    PaymentDetails,
    SmtpSettings,
    BusinessProfile,
    render_confirmation_email,
)

from services.payment_service import (
    PaymentIntakeService,
    WebhookRouter,
    WebhookResult,
    WebhookSignatureError,
    to_minor_units,
)

__all__ = [
    # Errors
    "PaymentIntakeError",
    "InvalidRequestError",
    "GatewayError",
    "StorageError",
    "ConfigurationError",
    # Signatures
    "payment_signature",
    "webhook_signature",
    "verify_payment_signature",
    "verify_webhook_signature",
    # Gateway
    "RazorpayGateway",
    "GatewayOrder",
    # Email
    "ConfirmationMailer",
    "EmailResult",
    "PaymentDetails",
    "SmtpSettings",
    "BusinessProfile",
    "render_confirmation_email",
    # Orchestration
    "PaymentIntakeService",
    "WebhookRouter",
    "WebhookResult",
    "WebhookSignatureError",
    "to_minor_units",
]
