# services/notifications.py
# ============================================================================
# BOOKING PAYMENT RELAY: CONFIRMATION EMAIL
# ============================================================================
# Renders the payment confirmation and sends it over SMTP. Never raises.
# ============================================================================

import asyncio
import smtplib
from datetime import datetime
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formataddr, make_msgid
from html import escape
from typing import Optional

import structlog
from pydantic import BaseModel

from schemas.booking import BookingRecord

SMTP_SSL_PORT = 465


class PaymentDetails(BaseModel):
    payment_id: str
    order_id: str


class EmailResult(BaseModel):
    """Outcome of a send attempt, reported to callers as data"""
    success: bool
    message_id: Optional[str] = None
    message: str = ""
    error: Optional[str] = None


class RenderedEmail(BaseModel):
    sender: str
    recipient: str
    subject: str
    html: str
    text: str


class SmtpSettings(BaseModel):
    host: str = ""
    port: int = 587
    user: str = ""
    password: str = ""
    timeout: float = 15.0

    @property
    def is_configured(self) -> bool:
        return bool(self.host and self.user)


class BusinessProfile(BaseModel):
    name: str = "Your Hotel"
    contact_email: str = ""
    phone: str = ""


def _payment_date(now: Optional[datetime] = None) -> str:
    # en-IN short date
    return (now or datetime.now()).strftime("%d/%m/%Y")


def render_confirmation_email(
    booking: BookingRecord,
    payment: PaymentDetails,
    business: BusinessProfile,
    sender_address: str,
    now: Optional[datetime] = None,
) -> RenderedEmail:
    """Build the HTML and plain-text confirmation for a booking."""
    paid_on = _payment_date(now)
    e = {k: escape(v) for k, v in booking.model_dump().items()}
    payment_id = escape(payment.payment_id)
    order_id = escape(payment.order_id)

    html = f"""<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>Payment Confirmation</title>
    <style>
        body {{ font-family: Arial, sans-serif; line-height: 1.6; color: #333; }}
        .container {{ max-width: 600px; margin: 0 auto; padding: 20px; }}
        .header {{ background: #4CAF50; color: white; padding: 20px; text-align: center; }}
        .content {{ padding: 20px; background: #f9f9f9; }}
        .booking-details {{ background: white; padding: 15px; margin: 15px 0; border-radius: 5px; }}
        .footer {{ text-align: center; padding: 20px; color: #666; font-size: 12px; }}
        table {{ width: 100%; border-collapse: collapse; }}
        th, td {{ text-align: left; padding: 8px; border-bottom: 1px solid #ddd; }}
        th {{ background-color: #f2f2f2; }}
    </style>
</head>
<body>
    <div class="container">
        <div class="header">
            <h1>Payment Confirmed!</h1>
            <p>Thank you for your booking</p>
        </div>
        <div class="content">
            <h2>Dear {e["name"]},</h2>
            <p>Your payment has been successfully processed. Here are your booking details:</p>
            <div class="booking-details">
                <h3>Booking Information</h3>
                <table>
                    <tr><th>Booking ID</th><td>#{e["bookingId"]}</td></tr>
                    <tr><th>Room Type</th><td>{e["roomType"]}</td></tr>
                    <tr><th>Check-in Date</th><td>{e["fromDate"]}</td></tr>
                    <tr><th>Check-out Date</th><td>{e["toDate"]}</td></tr>
                    <tr><th>Number of Nights</th><td>{e["numberOfNights"]}</td></tr>
                    <tr><th>Guests</th><td>{e["guests"]}</td></tr>
                    <tr><th>Total Amount</th><td>&#8377;{e["totalAmount"]}</td></tr>
                </table>
            </div>
            <div class="booking-details">
                <h3>Payment Information</h3>
                <table>
                    <tr><th>Payment ID</th><td>{payment_id}</td></tr>
                    <tr><th>Order ID</th><td>{order_id}</td></tr>
                    <tr><th>Payment Status</th><td><span style="color: #4CAF50; font-weight: bold;">SUCCESS</span></td></tr>
                    <tr><th>Payment Date</th><td>{paid_on}</td></tr>
                </table>
            </div>
            <p><strong>What's Next?</strong></p>
            <ul>
                <li>You will receive a detailed booking confirmation shortly</li>
                <li>Please keep this email for your records</li>
                <li>Contact us if you have any questions</li>
            </ul>
        </div>
        <div class="footer">
            <p>Thank you for choosing us!</p>
            <p>If you have any questions, please contact us at {escape(business.contact_email)}</p>
            <p>Phone: {escape(business.phone or "Contact us")}</p>
        </div>
    </div>
</body>
</html>
"""

    text = f"""Payment Confirmation - Booking #{booking.bookingId}

Dear {booking.name},

Your payment has been successfully processed!

Booking Details:
- Booking ID: #{booking.bookingId}
- Room Type: {booking.roomType}
- Check-in: {booking.fromDate}
- Check-out: {booking.toDate}
- Nights: {booking.numberOfNights}
- Guests: {booking.guests}
- Total Amount: ₹{booking.totalAmount}

Payment Details:
- Payment ID: {payment.payment_id}
- Order ID: {payment.order_id}
- Status: SUCCESS
- Date: {paid_on}

Thank you for choosing us!
"""

    return RenderedEmail(
        sender=formataddr((business.name, sender_address)),
        recipient=booking.email,
        subject=f"Payment Confirmation - Booking #{booking.bookingId}",
        html=html,
        text=text,
    )


class ConfirmationMailer:
    """
    Sends payment confirmations over SMTP.

    Port 465 uses implicit TLS; any other port upgrades with STARTTLS.
    A failed send is logged and returned as ``EmailResult(success=False)``.
    """

    def __init__(self, smtp: SmtpSettings, business: BusinessProfile):
        self.smtp = smtp
        self.business = business
        self._logger = structlog.get_logger().bind(component="mailer")

    def _open(self) -> smtplib.SMTP:
        if self.smtp.port == SMTP_SSL_PORT:
            return smtplib.SMTP_SSL(self.smtp.host, self.smtp.port, timeout=self.smtp.timeout)
        return smtplib.SMTP(self.smtp.host, self.smtp.port, timeout=self.smtp.timeout)

    def _deliver(self, rendered: RenderedEmail) -> str:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = rendered.subject
        msg["From"] = rendered.sender
        msg["To"] = rendered.recipient
        message_id = make_msgid()
        msg["Message-ID"] = message_id
        msg.attach(MIMEText(rendered.text, "plain", "utf-8"))
        msg.attach(MIMEText(rendered.html, "html", "utf-8"))

        with self._open() as server:
            if self.smtp.port != SMTP_SSL_PORT:
                server.starttls()
            if self.smtp.user and self.smtp.password:
                server.login(self.smtp.user, self.smtp.password)
            server.send_message(msg)
        return message_id

    async def send_payment_confirmation(
        self,
        booking: BookingRecord,
        payment: PaymentDetails,
    ) -> EmailResult:
        """Render and send; failures come back as data."""
        if not booking.email:
            self._logger.info("email_skipped", reason="no_recipient")
            return EmailResult(success=False, message="No email provided")

        if not self.smtp.is_configured:
            self._logger.warning("email_skipped", reason="smtp_not_configured")
            return EmailResult(
                success=False,
                message="Email sending failed",
                error="SMTP not configured (missing SMTP_HOST/SMTP_USER)",
            )

        try:
            rendered = render_confirmation_email(
                booking, payment, self.business, sender_address=self.smtp.user
            )
            message_id = await asyncio.get_event_loop().run_in_executor(
                None, self._deliver, rendered
            )
        except Exception as e:
            self._logger.error("email_failed",
                               error=str(e),
                               error_type=type(e).__name__,
                               payment_id=payment.payment_id)
            return EmailResult(success=False, message="Email sending failed", error=str(e))

        self._logger.info("email_sent", message_id=message_id, payment_id=payment.payment_id)
        return EmailResult(success=True, message_id=message_id, message="Confirmation email sent")
