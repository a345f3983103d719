"""Shared fixtures for the payment relay test suite.

Every external collaborator is faked:
- Razorpay SDK client -> MagicMock with ``order.create``
- Document store      -> InMemoryPaymentStore
- Mailer              -> MagicMock with an AsyncMock ``send_payment_confirmation``
"""

from __future__ import annotations

import hashlib
import hmac
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from api.config import ServerConfig
from api.server import create_app
from services.notifications import ConfirmationMailer, EmailResult
from services.payment_gateway import RazorpayGateway
from services.payment_service import PaymentIntakeService
from storage.payment_store import InMemoryPaymentStore

KEY_ID = "rzp_test_key"
KEY_SECRET = "test_key_secret"
WEBHOOK_SECRET = "test_webhook_secret"


def sign_payment(order_id: str, payment_id: str, secret: str = KEY_SECRET) -> str:
    """Signature Razorpay Checkout would hand the browser."""
    return hmac.new(secret.encode(), f"{order_id}|{payment_id}".encode(), hashlib.sha256).hexdigest()


def sign_body(body: bytes, secret: str = WEBHOOK_SECRET) -> str:
    """X-Razorpay-Signature for a webhook body."""
    return hmac.new(secret.encode(), body, hashlib.sha256).hexdigest()


@pytest.fixture()
def razorpay_client() -> MagicMock:
    client = MagicMock()
    client.order.create.return_value = {
        "id": "order_TEST123",
        "entity": "order",
        "amount": 50000,
        "currency": "INR",
        "receipt": "receipt_1700000000000",
        "status": "created",
    }
    return client


@pytest.fixture()
def gateway(razorpay_client: MagicMock) -> RazorpayGateway:
    return RazorpayGateway(KEY_ID, KEY_SECRET, client=razorpay_client)


@pytest.fixture()
def store() -> InMemoryPaymentStore:
    return InMemoryPaymentStore()


@pytest.fixture()
def mailer() -> MagicMock:
    fake = MagicMock(spec=ConfirmationMailer)
    fake.send_payment_confirmation = AsyncMock(
        return_value=EmailResult(success=True, message_id="<abc@test>", message="Confirmation email sent")
    )
    return fake


@pytest.fixture()
def service(gateway: RazorpayGateway, store: InMemoryPaymentStore, mailer: MagicMock) -> PaymentIntakeService:
    return PaymentIntakeService(
        gateway=gateway,
        store=store,
        mailer=mailer,
        key_secret=KEY_SECRET,
        webhook_secret=WEBHOOK_SECRET,
    )


@pytest.fixture()
def config() -> ServerConfig:
    return ServerConfig(
        ENV="test",
        RAZORPAY_KEY_ID=KEY_ID,
        RAZORPAY_KEY_SECRET=KEY_SECRET,
        RAZORPAY_WEBHOOK_SECRET=WEBHOOK_SECRET,
        STORE_BACKEND="memory",
    )


@pytest.fixture()
def app(config: ServerConfig, service: PaymentIntakeService):
    return create_app(config=config, service=service)


@pytest.fixture()
def client(app):
    with TestClient(app, raise_server_exceptions=False) as c:
        yield c
