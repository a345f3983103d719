"""Error taxonomy for the payment relay.

Client mistakes carry status 400; everything upstream or internal is 500.
Email failures are never raised, they come back as ``EmailResult`` data.
"""


class PaymentIntakeError(Exception):
    """Base error. Maps to HTTP 500 unless a subclass says otherwise."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidRequestError(PaymentIntakeError):
    """Missing field, unusable amount or signature mismatch"""

    status_code = 400


class GatewayError(PaymentIntakeError):
    """Razorpay call failed"""


class StorageError(PaymentIntakeError):
    """Document store write failed"""


class ConfigurationError(PaymentIntakeError):
    """A required secret or credential is not configured"""
