"""
Booking Payment Relay Server
============================
FastAPI server in front of Razorpay, Firestore and SMTP:

- POST /create-orderId   create a Razorpay order for a booking
- POST /verify-payment   check a Checkout signature, store, email
- POST /webhook          check a webhook signature over the raw body, store, email
- POST /test-email       send a sample confirmation (diagnostics)
- GET  /health, /ready, /live

pip install fastapi uvicorn pydantic structlog razorpay firebase-admin
"""

import logging
import time
import traceback
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional
from uuid import uuid4

import structlog
import uvicorn
from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.config import ServerConfig
from schemas.payments import (
    CreateOrderRequest,
    CreateOrderResponse,
    DiagnosticEmailRequest,
    DiagnosticEmailResponse,
    HealthResponse,
    VerifyPaymentRequest,
    VerifyPaymentResponse,
)
from services.errors import PaymentIntakeError
from services.notifications import BusinessProfile, ConfirmationMailer, SmtpSettings
from services.payment_gateway import RazorpayGateway
from services.payment_service import PaymentIntakeService, WebhookSignatureError
from storage.payment_store import FirestorePaymentStore, InMemoryPaymentStore, IPaymentStore

VERSION = "1.0.0"


def configure_logging(config: ServerConfig) -> None:
    """Console output in development, JSON lines in production."""
    renderer = (
        structlog.processors.JSONRenderer()
        if config.is_production
        else structlog.dev.ConsoleRenderer(colors=True)
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(logging.INFO),
    )


logger = structlog.get_logger(component="server")


# =============================================================================
# SERVICE WIRING
# =============================================================================

def build_store(config: ServerConfig) -> IPaymentStore:
    if config.STORE_BACKEND == "memory":
        logger.warning("payment_store_in_memory", reason="STORE_BACKEND=memory")
        return InMemoryPaymentStore()
    return FirestorePaymentStore(
        credentials=config.firebase_credentials(),
        collection=config.FIRESTORE_COLLECTION,
    )


def build_mailer(config: ServerConfig) -> Optional[ConfirmationMailer]:
    if not config.ENABLE_EMAIL:
        return None
    return ConfirmationMailer(
        smtp=SmtpSettings(
            host=config.SMTP_HOST,
            port=config.SMTP_PORT,
            user=config.SMTP_USER,
            password=config.SMTP_PASS,
            timeout=config.SMTP_TIMEOUT,
        ),
        business=BusinessProfile(
            name=config.BUSINESS_NAME,
            contact_email=config.contact_email,
            phone=config.BUSINESS_PHONE,
        ),
    )


def build_service(config: ServerConfig) -> PaymentIntakeService:
    """Construct every collaborator once from configuration."""
    return PaymentIntakeService(
        gateway=RazorpayGateway(config.RAZORPAY_KEY_ID, config.RAZORPAY_KEY_SECRET),
        store=build_store(config),
        mailer=build_mailer(config),
        key_secret=config.RAZORPAY_KEY_SECRET,
        webhook_secret=config.RAZORPAY_WEBHOOK_SECRET,
    )


def get_service(request: Request) -> PaymentIntakeService:
    return request.app.state.service


def get_config(request: Request) -> ServerConfig:
    return request.app.state.config


# =============================================================================
# ERROR RESPONSES
# =============================================================================

def error_response(
    config: ServerConfig,
    status_code: int,
    message: str,
    exc: Optional[BaseException] = None,
) -> JSONResponse:
    body = {"success": False, "message": message}
    if exc is not None and not config.is_production:
        body["error"] = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    return JSONResponse(body, status_code=status_code)


def intake_error_response(
    config: ServerConfig,
    exc: PaymentIntakeError,
    prefix: str,
) -> JSONResponse:
    if exc.status_code < 500:
        return error_response(config, exc.status_code, exc.message)
    return error_response(config, exc.status_code, f"{prefix}: {exc.message}", exc)


def register_exception_handlers(app: FastAPI) -> None:

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        # Unknown path or unsupported method
        if exc.status_code in (404, 405):
            return JSONResponse({"success": False, "message": "Endpoint not found"}, status_code=404)
        return JSONResponse({"success": False, "message": str(exc.detail)}, status_code=exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        logger.info("request_invalid", path=request.url.path, error_count=len(errors))
        field = ".".join(str(p) for p in errors[0].get("loc", ())[1:]) if errors else ""
        message = f"Invalid request body: {field}" if field else "Invalid request body"
        return JSONResponse({"success": False, "message": message}, status_code=400)

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.error("unhandled_error", path=request.url.path, error=str(exc),
                     error_type=type(exc).__name__)
        return error_response(get_config(request), 500, f"Internal Server Error: {exc}", exc)


# =============================================================================
# ROUTES
# =============================================================================

def register_routes(app: FastAPI) -> None:

    @app.get("/health", response_model=HealthResponse)
    async def health_check(
        request: Request,
        service: PaymentIntakeService = Depends(get_service),
    ):
        """Health check endpoint"""
        uptime = (datetime.now(timezone.utc) - request.app.state.started_at).total_seconds()
        return HealthResponse(
            status="healthy",
            version=VERSION,
            uptime_seconds=uptime,
            email_enabled=service.email_enabled,
            store_backend=service.store.backend_name,
        )

    @app.get("/ready")
    async def readiness_check():
        """Kubernetes readiness probe"""
        return {"ready": True}

    @app.get("/live")
    async def liveness_check():
        """Kubernetes liveness probe"""
        return {"live": True}

    @app.post("/create-orderId", response_model=CreateOrderResponse)
    async def create_order(
        payload: Optional[CreateOrderRequest] = None,
        service: PaymentIntakeService = Depends(get_service),
        config: ServerConfig = Depends(get_config),
    ):
        """Create a Razorpay order; amount is in major units."""
        payload = payload or CreateOrderRequest()
        try:
            return await service.create_order(payload)
        except PaymentIntakeError as e:
            logger.error("create_order_error", error=e.message, status=e.status_code)
            return intake_error_response(config, e, "Failed to create order")
        except Exception as e:
            logger.error("create_order_error", error=str(e), error_type=type(e).__name__)
            return error_response(config, 500, f"Failed to create order: {e}", e)

    @app.post("/verify-payment", response_model=VerifyPaymentResponse)
    async def verify_payment(
        payload: Optional[VerifyPaymentRequest] = None,
        service: PaymentIntakeService = Depends(get_service),
        config: ServerConfig = Depends(get_config),
    ):
        """
        Verify a Checkout signature, store the booking and send the
        confirmation email.
        """
        payload = payload or VerifyPaymentRequest()
        try:
            return await service.verify_payment(payload)
        except Exception as e:
            logger.error("verify_payment_error",
                         error=str(e),
                         error_type=type(e).__name__,
                         has_order_id=bool(payload.razorpay_order_id),
                         has_payment_id=bool(payload.razorpay_payment_id),
                         has_signature=bool(payload.razorpay_signature),
                         has_booking_data=payload.bookingData is not None)
            if isinstance(e, PaymentIntakeError):
                return intake_error_response(config, e, "Payment verification failed")
            return error_response(config, 500, f"Payment verification failed: {e}", e)

    @app.post("/webhook", response_class=PlainTextResponse)
    async def razorpay_webhook(
        request: Request,
        service: PaymentIntakeService = Depends(get_service),
    ):
        """
        Razorpay webhook. The signature covers the exact request bytes,
        so the body is read raw and never parsed before verification.
        """
        body = await request.body()
        signature = request.headers.get("x-razorpay-signature")

        try:
            await service.handle_webhook(body, signature)
        except WebhookSignatureError:
            return PlainTextResponse("Invalid Webhook Signature", status_code=400)
        except Exception as e:
            logger.error("webhook_error", error=str(e), error_type=type(e).__name__)
            return PlainTextResponse("Internal Server Error", status_code=500)

        return PlainTextResponse("Webhook verified and processed", status_code=200)

    @app.post("/test-email", response_model=DiagnosticEmailResponse)
    async def test_email(
        payload: Optional[DiagnosticEmailRequest] = None,
        service: PaymentIntakeService = Depends(get_service),
        config: ServerConfig = Depends(get_config),
    ):
        """Send a sample confirmation to check SMTP settings."""
        payload = payload or DiagnosticEmailRequest()
        try:
            return await service.send_test_email(payload)
        except PaymentIntakeError as e:
            return intake_error_response(config, e, "Failed to send test email")


# =============================================================================
# APP FACTORY
# =============================================================================

def create_app(
    config: Optional[ServerConfig] = None,
    service: Optional[PaymentIntakeService] = None,
) -> FastAPI:
    """
    Build the FastAPI app. Pass ``service`` to inject fakes in tests;
    otherwise collaborators are built from ``config``.
    """
    config = config or ServerConfig()
    configure_logging(config)
    service = service or build_service(config)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Startup and shutdown logic"""
        logger.info("server_starting", version=VERSION, env=config.ENV,
                    email_enabled=service.email_enabled,
                    store_backend=service.store.backend_name)

        if not await service.store.initialize():
            logger.warning("payment_store_unavailable",
                           backend=service.store.backend_name,
                           note="writes will fail until configured")

        yield

        logger.info("server_shutting_down")

    app = FastAPI(
        title="Booking Payment Relay",
        description="Razorpay order creation, payment verification and webhook intake",
        version=VERSION,
        lifespan=lifespan,
    )
    app.state.config = config
    app.state.service = service
    app.state.started_at = datetime.now(timezone.utc)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def add_timing_header(request: Request, call_next):
        """Add response timing and request ID headers"""
        request_id = str(uuid4())[:8]
        start = time.perf_counter()

        response = await call_next(request)

        duration = (time.perf_counter() - start) * 1000
        response.headers["X-Response-Time-Ms"] = f"{duration:.2f}"
        response.headers["X-Request-ID"] = request_id

        return response

    register_exception_handlers(app)
    register_routes(app)
    return app


app = create_app()


# =============================================================================
# MAIN
# =============================================================================

if __name__ == "__main__":
    settings = app.state.config
    uvicorn.run(
        "api.server:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.ENV == "development",
        log_level="info",
    )
