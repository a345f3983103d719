# storage/payment_store.py
# ============================================================================
# BOOKING PAYMENT RELAY: PAYMENT DOCUMENT STORE
# ============================================================================
# Append-only payment collection: Firestore in production, in-memory for dev
# ============================================================================

import asyncio
import uuid
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import structlog

from services.errors import ConfigurationError, StorageError

logger = structlog.get_logger(component="payment_store")


class IPaymentStore(ABC):
    """Append-only payment document store"""

    backend_name = "abstract"

    async def initialize(self) -> bool:
        return True

    @abstractmethod
    async def add(self, document: Dict[str, Any]) -> str:
        """Append a document. Returns the generated document ID."""
        pass


class InMemoryPaymentStore(IPaymentStore):
    """Process-local store for development and tests"""

    backend_name = "memory"

    def __init__(self):
        self._documents: Dict[str, Dict[str, Any]] = {}
        self._lock = asyncio.Lock()

    async def add(self, document: Dict[str, Any]) -> str:
        async with self._lock:
            doc_id = uuid.uuid4().hex[:20]
            self._documents[doc_id] = {
                **document,
                "createdAt": datetime.now(timezone.utc),
            }
        logger.info("payment_stored", backend=self.backend_name, doc_id=doc_id,
                    source=document.get("source"))
        return doc_id

    async def find(self, source: Optional[str] = None) -> List[Dict[str, Any]]:
        async with self._lock:
            docs = list(self._documents.values())
        if source is None:
            return docs
        return [d for d in docs if d.get("source") == source]

    def __len__(self) -> int:
        return len(self._documents)


class FirestorePaymentStore(IPaymentStore):
    """
    Firestore-backed store using the Firebase Admin SDK.

    The Firebase app is initialized lazily so the service can start (and
    serve health checks) before credentials are verified.
    """

    backend_name = "firestore"

    def __init__(
        self,
        credentials: Optional[Dict[str, Any]],
        collection: str = "payments",
        client: Optional[Any] = None,
    ):
        self.collection = collection
        self._credentials = credentials
        self._client = client
        self._initialized = client is not None

    async def initialize(self) -> bool:
        """Initialize the Firebase app and Firestore client."""
        if self._initialized:
            return True

        if not self._credentials:
            logger.warning("firestore_credentials_missing")
            return False

        try:
            import firebase_admin
            from firebase_admin import credentials, firestore

            try:
                app = firebase_admin.get_app()
            except ValueError:
                app = firebase_admin.initialize_app(
                    credentials.Certificate(self._credentials)
                )
            self._client = firestore.client(app)
            self._initialized = True
            logger.info("firestore_initialized", collection=self.collection)
            return True

        except Exception as e:
            logger.error("firestore_init_failed", error=str(e))
            return False

    async def add(self, document: Dict[str, Any]) -> str:
        if not self._initialized:
            await self.initialize()

        if not self._initialized:
            raise ConfigurationError("Firestore is not configured")

        from firebase_admin import firestore

        data = {**document, "createdAt": firestore.SERVER_TIMESTAMP}

        def write():
            _, doc_ref = self._client.collection(self.collection).add(data)
            return doc_ref.id

        try:
            doc_id = await asyncio.get_event_loop().run_in_executor(None, write)
        except Exception as e:
            logger.error("payment_store_failed", error=str(e),
                         source=document.get("source"))
            raise StorageError(str(e)) from e

        logger.info("payment_stored", backend=self.backend_name, doc_id=doc_id,
                    source=document.get("source"))
        return doc_id
