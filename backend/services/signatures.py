"""Razorpay signature checks (constant-time HMAC-SHA256).

Two schemes, both hex digests:

- Checkout: HMAC(key_secret, "<order_id>|<payment_id>")
- Webhook:  HMAC(webhook_secret, raw request body)

The webhook digest is computed over the exact bytes received. Parsing the
body and re-serializing it changes whitespace and key order, so callers must
hand in ``await request.body()`` untouched.
"""

import hashlib
import hmac
from typing import Optional, Union

import structlog

from services.errors import ConfigurationError

logger = structlog.get_logger(component="signatures")


def _hex_hmac(secret: str, message: bytes) -> str:
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).hexdigest()


def _matches(expected: str, supplied: Optional[str]) -> bool:
    if not supplied:
        return False
    return hmac.compare_digest(expected.encode("utf-8"), supplied.encode("utf-8"))


def payment_signature(order_id: str, payment_id: str, key_secret: str) -> str:
    """Signature Razorpay Checkout returns for a successful payment."""
    return _hex_hmac(key_secret, f"{order_id}|{payment_id}".encode("utf-8"))


def webhook_signature(body: Union[bytes, str], webhook_secret: str) -> str:
    """Signature Razorpay sends in X-Razorpay-Signature."""
    if isinstance(body, str):
        body = body.encode("utf-8")
    return _hex_hmac(webhook_secret, body)


def verify_payment_signature(
    order_id: str,
    payment_id: str,
    signature: Optional[str],
    key_secret: str,
) -> bool:
    """
    Check a client-reported payment signature.

    Raises:
        ConfigurationError: RAZORPAY_KEY_SECRET is not set
    """
    if not key_secret:
        raise ConfigurationError("RAZORPAY_KEY_SECRET is not configured")
    return _matches(payment_signature(order_id, payment_id, key_secret), signature)


def verify_webhook_signature(
    body: bytes,
    signature: Optional[str],
    webhook_secret: str,
) -> bool:
    """
    Check a webhook body against its X-Razorpay-Signature header.

    Raises:
        ConfigurationError: RAZORPAY_WEBHOOK_SECRET is not set
    """
    if not webhook_secret:
        raise ConfigurationError("RAZORPAY_WEBHOOK_SECRET is not configured")
    if not signature:
        logger.warning("webhook_signature_missing")
        return False
    return _matches(webhook_signature(body, webhook_secret), signature)
