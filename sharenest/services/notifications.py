"""
Outbound notifications.

A ``Notifier`` delivers a rendered template to one recipient. The application
builds one notifier at startup and services receive it through dependency
injection. Delivery is best-effort: the helpers in this module log failures
and never raise them into the operation that triggered the message.
"""

from email.message import EmailMessage
from typing import Any, Dict, Optional, Protocol
import logging
import smtplib

from fastapi.concurrency import run_in_threadpool
from jinja2 import DictLoader, Environment, select_autoescape

from sharenest.config import Settings
from sharenest.models.booking import Booking, BookingStatus
from sharenest.models.property import Property
from sharenest.models.user import User

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    """Delivers one templated message."""

    async def send(self, to: str, subject: str, template: str, context: Dict[str, Any]) -> None:
        ...


_BUTTON_STYLE = (
    "background-color: #3498db; color: white; padding: 12px 24px; "
    "text-decoration: none; border-radius: 4px; font-weight: bold;"
)

TEMPLATES = {
    "base.html": """\
<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
  <h2 style="color: #2c3e50;">{% block heading %}{% endblock %}</h2>
  <p>Hello {{ name }},</p>
  {% block body %}{% endblock %}
  <div style="margin-top: 40px; padding-top: 20px; border-top: 1px solid #eee; color: #7f8c8d; font-size: 12px;">
    <p>&copy; ShareNest. All rights reserved.</p>
  </div>
</div>
""",
    "verification": """\
{% extends "base.html" %}
{% block heading %}Welcome to ShareNest!{% endblock %}
{% block body %}
  <p>Please verify your email address to complete your registration.</p>
  <p style="text-align: center;"><a href="{{ verification_url }}" style="{{ button_style }}">Verify Email Address</a></p>
  <p>This link will expire in {{ expires_hours }} hours.</p>
  <p>If you didn't sign up for ShareNest, you can safely ignore this email.</p>
{% endblock %}
""",
    "password_reset": """\
{% extends "base.html" %}
{% block heading %}Reset Your Password{% endblock %}
{% block body %}
  <p>We received a request to reset your ShareNest password.</p>
  <p style="text-align: center;"><a href="{{ reset_url }}" style="{{ button_style }}">Reset Password</a></p>
  <p>This link will expire in {{ expires_minutes }} minutes.</p>
  <p>If you didn't request a password reset, your password will remain unchanged.</p>
{% endblock %}
""",
    "booking_request": """\
{% extends "base.html" %}
{% block heading %}New Booking Request{% endblock %}
{% block body %}
  <p>You have received a new booking request for <strong>{{ property_title }}</strong>.</p>
  <p><strong>Tenant:</strong> {{ tenant_name }}</p>
  <p><strong>Dates:</strong> {{ dates.check_in }} to {{ dates.check_out }}</p>
  {% if message %}<p><strong>Message:</strong> {{ message }}</p>{% endif %}
  <p style="text-align: center;"><a href="{{ view_url }}" style="{{ button_style }}">View Booking Request</a></p>
{% endblock %}
""",
    "booking_confirmation": """\
{% extends "base.html" %}
{% block heading %}Booking Request Sent{% endblock %}
{% block body %}
  <p>Your booking request for <strong>{{ property_title }}</strong> has been sent to the landlord.</p>
  <p><strong>Dates:</strong> {{ dates.check_in }} to {{ dates.check_out }}</p>
  <p>We will let you know as soon as the landlord responds.</p>
  <p style="text-align: center;"><a href="{{ view_url }}" style="{{ button_style }}">View Booking</a></p>
{% endblock %}
""",
    "booking_status": """\
{% extends "base.html" %}
{% block heading %}Booking {{ status_text }}{% endblock %}
{% block body %}
  <p>Your booking request for <strong>{{ property_title }}</strong> has been <strong>{{ status }}</strong>.</p>
  <p><strong>Dates:</strong> {{ dates.check_in }} to {{ dates.check_out }}</p>
  {% if landlord %}
  <div style="background-color: #e8f5e9; padding: 15px; border-radius: 4px; margin: 20px 0;">
    <p style="font-weight: bold;">Landlord Contact Information:</p>
    <p><strong>Name:</strong> {{ landlord.name }}</p>
    {% if landlord.phone %}<p><strong>Phone:</strong> {{ landlord.phone }}</p>{% endif %}
  </div>
  {% endif %}
  <p style="text-align: center;"><a href="{{ view_url }}" style="{{ button_style }}">View Booking Details</a></p>
{% endblock %}
""",
}


def build_template_environment() -> Environment:
    env = Environment(
        loader=DictLoader(TEMPLATES),
        autoescape=select_autoescape(default=True, default_for_string=True),
    )
    env.globals["button_style"] = _BUTTON_STYLE
    return env


class EmailNotifier:
    """Renders HTML templates and delivers them over SMTP."""

    def __init__(self, settings: Settings):
        self.settings = settings
        self.jinja_env = build_template_environment()

    def render(self, template: str, context: Dict[str, Any]) -> str:
        return self.jinja_env.get_template(template).render(**context)

    def _deliver(self, message: EmailMessage) -> None:
        with smtplib.SMTP(self.settings.mail_host, self.settings.mail_port, timeout=30) as smtp:
            if self.settings.mail_use_tls:
                smtp.starttls()
            if self.settings.mail_username:
                smtp.login(self.settings.mail_username, self.settings.mail_password)
            smtp.send_message(message)

    async def send(self, to: str, subject: str, template: str, context: Dict[str, Any]) -> None:
        message = EmailMessage()
        message["From"] = f"ShareNest <{self.settings.mail_from}>"
        message["To"] = to
        message["Subject"] = subject
        message.set_content(f"{subject}\n\nOpen this message in an HTML capable mail client.")
        message.add_alternative(self.render(template, context), subtype="html")

        # smtplib blocks, keep it off the event loop
        await run_in_threadpool(self._deliver, message)
        logger.info(f"Sent '{template}' mail to {to}")


class LoggingNotifier:
    """Notifier that only logs; used when mail delivery is disabled."""

    async def send(self, to: str, subject: str, template: str, context: Dict[str, Any]) -> None:
        logger.info(f"Mail delivery disabled, skipping '{template}' to {to}: {subject}")


def create_notifier(settings: Settings) -> Notifier:
    """Pick the notifier implementation for the configured environment."""
    if settings.mail_enabled:
        return EmailNotifier(settings)
    return LoggingNotifier()


async def dispatch(notifier: Notifier, to: str, subject: str, template: str, context: Dict[str, Any]) -> bool:
    """
    Send through the notifier, swallowing delivery errors.

    Returns:
        True when the notifier accepted the message
    """
    try:
        await notifier.send(to, subject, template, context)
        return True
    except Exception as e:
        logger.warning(f"Failed to send '{template}' notification to {to}: {e}", exc_info=True)
        return False


def _dates(booking: Booking) -> Dict[str, str]:
    return {"check_in": booking.start_date.isoformat(), "check_out": booking.end_date.isoformat()}


class BookingNotifications:
    """Builds and dispatches the messages of the booking workflow."""

    def __init__(self, notifier: Notifier, frontend_url: str):
        self.notifier = notifier
        self.frontend_url = frontend_url.rstrip("/")

    def booking_url(self, booking: Booking) -> str:
        return f"{self.frontend_url}/bookings/{booking.id}"

    def status_payload(self, booking: Booking, property_obj: Property, tenant: User,
                       landlord: User) -> Optional[Dict[str, Any]]:
        """
        Context of the status update mail, or None for statuses that send nothing.
        Landlord contact details are present only for approvals.
        """
        if booking.status not in (BookingStatus.APPROVED, BookingStatus.REJECTED):
            return None

        approved = booking.status == BookingStatus.APPROVED
        context = {
            "name": tenant.first_name,
            "property_title": property_obj.title,
            "status": booking.status.value,
            "status_text": "Approved" if approved else "Declined",
            "dates": _dates(booking),
            "view_url": self.booking_url(booking),
        }
        if approved:
            context["landlord"] = {"name": landlord.full_name, "phone": landlord.phone}
        return context

    async def booking_requested(self, booking: Booking, property_obj: Property, tenant: User,
                                landlord: User) -> None:
        """Tell the landlord about the request and confirm it to the tenant."""
        view_url = self.booking_url(booking)
        await dispatch(
            self.notifier,
            landlord.email,
            f"New Booking Request for {property_obj.title}",
            "booking_request",
            {
                "name": landlord.first_name,
                "property_title": property_obj.title,
                "tenant_name": tenant.full_name,
                "dates": _dates(booking),
                "message": booking.message,
                "view_url": view_url,
            },
        )
        await dispatch(
            self.notifier,
            tenant.email,
            f"Booking Request Sent: {property_obj.title}",
            "booking_confirmation",
            {
                "name": tenant.first_name,
                "property_title": property_obj.title,
                "dates": _dates(booking),
                "view_url": view_url,
            },
        )

    async def status_changed(self, booking: Booking, property_obj: Property, tenant: User,
                             landlord: User) -> None:
        """Tell the tenant their request was approved or declined."""
        context = self.status_payload(booking, property_obj, tenant, landlord)
        if context is None:
            return
        await dispatch(
            self.notifier,
            tenant.email,
            f"Booking {context['status_text']}: {property_obj.title}",
            "booking_status",
            context,
        )


class AccountNotifications:
    """Verification and password reset mails."""

    def __init__(self, notifier: Notifier, settings: Settings):
        self.notifier = notifier
        self.settings = settings
        self.frontend_url = settings.frontend_url.rstrip("/")

    async def verification(self, user: User, token: str) -> bool:
        return await dispatch(
            self.notifier,
            user.email,
            "Verify your ShareNest account",
            "verification",
            {
                "name": user.first_name,
                "verification_url": f"{self.frontend_url}/verify-email?token={token}",
                "expires_hours": self.settings.email_verification_expire_hours,
            },
        )

    async def password_reset(self, user: User, token: str) -> bool:
        return await dispatch(
            self.notifier,
            user.email,
            "Reset your ShareNest password",
            "password_reset",
            {
                "name": user.first_name,
                "reset_url": f"{self.frontend_url}/reset-password?token={token}",
                "expires_minutes": self.settings.password_reset_expire_minutes,
            },
        )
