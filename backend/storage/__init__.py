# storage/__init__.py
# ============================================================================
# BOOKING PAYMENT RELAY: STORAGE MODULE
# ============================================================================
# Append-only payment document stores
# ============================================================================

from storage.payment_store import (
    IPaymentStore,
    InMemoryPaymentStore,
    FirestorePaymentStore,
)

__all__ = [
    "IPaymentStore",
    "InMemoryPaymentStore",
    "FirestorePaymentStore",
]
