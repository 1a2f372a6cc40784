"""
Booking Email Notifications

Sends host/guest emails for booking events through the Resend HTTP API.
Handles:
- Suppression of test-account domains
- Log-only delivery when no API key is configured
- Best-effort dispatch: callers use notify_safely() after commit so a
  failed send never undoes a committed state change
"""

import html
import logging
from dataclasses import dataclass
from datetime import date, timedelta, datetime
from decimal import Decimal
from typing import Callable, Dict, List, Optional, Protocol

import httpx

from ..config import settings

logger = logging.getLogger(__name__)


class NotificationError(Exception):
    """Raised when an email could not be handed to the provider"""


@dataclass
class EmailMessage:
    to: str
    subject: str
    html: str
    sender: str

    def to_payload(self) -> Dict:
        return {
            "from": self.sender,
            "to": [self.to],
            "subject": self.subject,
            "html": self.html,
        }


class EmailTransport(Protocol):
    def send(self, message: EmailMessage) -> Optional[str]:
        ...


class ResendTransport:
    """POSTs messages to the Resend /emails endpoint"""

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.resend.com",
        timeout_seconds: int = 10,
        client: Optional[httpx.Client] = None
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.client = client or httpx.Client(timeout=timeout_seconds)

    def send(self, message: EmailMessage) -> Optional[str]:
        try:
            response = self.client.post(
                f"{self.base_url}/emails",
                json=message.to_payload(),
                headers={
                    "Authorization": f"Bearer {self.api_key}",
                    "Content-Type": "application/json",
                },
            )
        except httpx.HTTPError as e:
            raise NotificationError(f"Email provider unreachable: {e}") from e

        if response.status_code >= 400:
            raise NotificationError(
                f"Email provider returned {response.status_code}: {response.text[:200]}"
            )

        return response.json().get("id")


class LogOnlyTransport:
    """Used in development: writes the message to the log instead of sending"""

    def __init__(self):
        self.sent: List[EmailMessage] = []

    def send(self, message: EmailMessage) -> Optional[str]:
        self.sent.append(message)
        logger.info(f"[email not sent] to={message.to} subject={message.subject!r}")
        return None


class Notifier(Protocol):
    def send_booking_request_created(
        self, host_email: str, guest_name: str, listing_title: str,
        check_in: date, check_out: date, guests: int,
        total_price: Decimal, currency: str, listing_id: str
    ) -> None:
        ...

    def send_booking_request_decision(
        self, guest_email: str, guest_name: str, listing_title: str,
        check_in: date, check_out: date, status: str
    ) -> None:
        ...

    def send_booking_alteration(
        self, recipient_email: str, guest_name: str, listing_title: str,
        start_date: date, end_date: date, alteration_type: str = "modified"
    ) -> None:
        ...


def _fmt_date(value: date) -> str:
    return value.strftime("%a, %b %d, %Y")


class EmailNotifier:
    """Notifier that renders booking emails and hands them to a transport"""

    def __init__(
        self,
        transport: EmailTransport,
        sender: str,
        public_base_url: str = "",
        suppressed_domains: Optional[List[str]] = None
    ):
        self.transport = transport
        self.sender = sender
        self.public_base_url = public_base_url.rstrip("/")
        self.suppressed_domains = suppressed_domains or []

    def is_suppressed(self, email: str) -> bool:
        domain = email.rsplit("@", 1)[-1].lower()
        return domain in self.suppressed_domains

    def _send(self, to: str, subject: str, body: str) -> Optional[str]:
        if self.is_suppressed(to):
            logger.debug(f"Skipping email to suppressed address {to}")
            return None
        return self.transport.send(EmailMessage(to=to, subject=subject, html=body, sender=self.sender))

    def send_booking_request_created(
        self, host_email: str, guest_name: str, listing_title: str,
        check_in: date, check_out: date, guests: int,
        total_price: Decimal, currency: str, listing_id: str
    ) -> None:
        dashboard_url = f"{self.public_base_url}/listing/{listing_id}/manage"
        respond_by = datetime.utcnow() + timedelta(hours=24)
        body = (
            f"<h1>New booking request</h1>"
            f"<p>{html.escape(guest_name or 'A guest')} would like to stay at "
            f"<strong>{html.escape(listing_title)}</strong>.</p>"
            f"<ul>"
            f"<li>Check-in: {_fmt_date(check_in)}</li>"
            f"<li>Check-out: {_fmt_date(check_out)}</li>"
            f"<li>Guests: {guests}</li>"
            f"<li>Total: {total_price} {html.escape(currency)}</li>"
            f"</ul>"
            f"<p>Please respond before {respond_by:%b %d, %H:%M} UTC.</p>"
            f"<p><a href=\"{dashboard_url}\">Review the request</a></p>"
        )
        self._send(host_email, f"New Booking Request: {listing_title}", body)

    def send_booking_request_decision(
        self, guest_email: str, guest_name: str, listing_title: str,
        check_in: date, check_out: date, status: str
    ) -> None:
        accepted = status == "ACCEPTED"
        verb = "accepted" if accepted else "declined"
        body = (
            f"<p>Hi {html.escape(guest_name or 'there')},</p>"
            f"<p>Your booking request for <strong>{html.escape(listing_title)}</strong> "
            f"({_fmt_date(check_in)} to {_fmt_date(check_out)}) was {verb} by the host.</p>"
        )
        subject = f"Booking Request {'Accepted' if accepted else 'Declined'} - {listing_title}"
        self._send(guest_email, subject, body)

    def send_booking_alteration(
        self, recipient_email: str, guest_name: str, listing_title: str,
        start_date: date, end_date: date, alteration_type: str = "modified"
    ) -> None:
        cancelled = alteration_type == "cancelled"
        body = (
            f"<p>The booking of {html.escape(guest_name or 'a guest')} at "
            f"<strong>{html.escape(listing_title)}</strong> was {alteration_type}.</p>"
            f"<p>Dates: {_fmt_date(start_date)} to {_fmt_date(end_date)}</p>"
        )
        subject = f"Booking {'Cancelled' if cancelled else 'Modified'} - {listing_title}"
        self._send(recipient_email, subject, body)


def notify_safely(description: str, send: Callable[[], None]) -> bool:
    """
    Run a notification after the transaction has committed.

    Failures are logged and reported as False; they never propagate.
    """
    try:
        send()
        return True
    except Exception as e:
        logger.warning(f"Failed to send {description} email: {e}")
        return False


_notifier: Optional[EmailNotifier] = None


def get_notifier() -> EmailNotifier:
    """Process-wide notifier built from settings"""
    global _notifier
    if _notifier is None:
        if settings.email_transport_configured:
            transport = ResendTransport(
                api_key=settings.resend_api_key,
                base_url=settings.resend_base_url,
                timeout_seconds=settings.email_timeout_seconds,
            )
        else:
            transport = LogOnlyTransport()
        _notifier = EmailNotifier(
            transport=transport,
            sender=settings.booking_email_from,
            public_base_url=settings.public_base_url,
            suppressed_domains=settings.suppressed_email_domains,
        )
    return _notifier
