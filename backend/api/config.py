# api/config.py
# ============================================================================
# BOOKING PAYMENT RELAY: CONFIGURATION
# ============================================================================
# Environment-driven settings, read once when the app is built
# ============================================================================

import os
from typing import Any, Dict, Optional


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


class ServerConfig:
    """Server configuration from environment"""

    def __init__(self, **overrides: Any):
        # Server
        self.HOST = os.getenv("HOST", "0.0.0.0")
        self.PORT = int(os.getenv("PORT", "8081"))
        self.ENV = os.getenv("ENV", "development")

        # CORS
        self.CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*").split(",")

        # Razorpay
        self.RAZORPAY_KEY_ID = os.getenv("RAZORPAY_KEY_ID", "")
        self.RAZORPAY_KEY_SECRET = os.getenv("RAZORPAY_KEY_SECRET", "")
        self.RAZORPAY_WEBHOOK_SECRET = os.getenv("RAZORPAY_WEBHOOK_SECRET", "")

        # Email
        self.ENABLE_EMAIL = _env_bool("ENABLE_EMAIL", True)
        self.SMTP_HOST = os.getenv("SMTP_HOST", "")
        self.SMTP_PORT = int(os.getenv("SMTP_PORT", "587"))
        self.SMTP_USER = os.getenv("SMTP_USER", "")
        self.SMTP_PASS = os.getenv("SMTP_PASS", "")
        self.SMTP_TIMEOUT = float(os.getenv("SMTP_TIMEOUT", "15"))

        # Business details shown in emails
        self.BUSINESS_NAME = os.getenv("BUSINESS_NAME", "Your Hotel")
        self.BUSINESS_EMAIL = os.getenv("BUSINESS_EMAIL", "")
        self.BUSINESS_PHONE = os.getenv("BUSINESS_PHONE", "")

        # Document store
        self.STORE_BACKEND = os.getenv("STORE_BACKEND", "firestore").lower()
        self.FIRESTORE_COLLECTION = os.getenv("FIRESTORE_COLLECTION", "payments")

        for key, value in overrides.items():
            if not hasattr(self, key):
                raise AttributeError(f"Unknown config setting: {key}")
            setattr(self, key, value)

    @property
    def is_production(self) -> bool:
        return self.ENV == "production"

    @property
    def contact_email(self) -> str:
        return self.BUSINESS_EMAIL or self.SMTP_USER

    def firebase_credentials(self) -> Optional[Dict[str, Any]]:
        """Service-account dict from FIREBASE_* variables, None when unset."""
        project_id = os.getenv("FIREBASE_PROJECT_ID")
        if not project_id:
            return None

        private_key = os.getenv("FIREBASE_PRIVATE_KEY", "")
        return {
            "type": os.getenv("FIREBASE_TYPE", "service_account"),
            "project_id": project_id,
            "private_key_id": os.getenv("FIREBASE_PRIVATE_KEY_ID"),
            # .env files carry the PEM with literal \n sequences
            "private_key": private_key.replace("\\n", "\n"),
            "client_email": os.getenv("FIREBASE_CLIENT_EMAIL"),
            "client_id": os.getenv("FIREBASE_CLIENT_ID"),
            "auth_uri": os.getenv("FIREBASE_AUTH_URI", "https://accounts.google.com/o/oauth2/auth"),
            "token_uri": os.getenv("FIREBASE_TOKEN_URI", "https://oauth2.googleapis.com/token"),
            "auth_provider_x509_cert_url": os.getenv("FIREBASE_AUTH_PROVIDER_X509_CERT_URL"),
            "client_x509_cert_url": os.getenv("FIREBASE_CLIENT_X509_CERT_URL"),
        }
