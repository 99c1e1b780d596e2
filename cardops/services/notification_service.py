"""
Email notifications

SMTP is tried first; when it is not configured or fails, the message is
posted to the HTTP mail relay (``MAIL_RELAY_URL``). Sending never raises:
callers run it as a background task after the data is committed.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from email.message import EmailMessage
from typing import Optional
import logging
import smtplib

import httpx

from cardops.core.config import Settings, settings as default_settings
from cardops.models.progress import STEP_NAMES, StepNumber

logger = logging.getLogger(__name__)


@dataclass
class EmailContent:
    recipient: str
    subject: str
    body: str


class Notifier(ABC):
    """Outbound message channel"""

    @abstractmethod
    def send(self, recipient: str, subject: str, body: str) -> bool:
        ...


class EmailNotifier(Notifier):

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or default_settings

    def send(self, recipient: str, subject: str, body: str) -> bool:
        """
        Send a plain-text email

        Returns:
            True if SMTP or the relay accepted the message
        """
        if not recipient:
            logger.warning(f"Attempted to send email '{subject}' without recipient")
            return False

        if self.settings.SMTP_HOST:
            try:
                self._send_smtp(recipient, subject, body)
                logger.info(f"Email sent via SMTP to {recipient}: {subject}")
                return True
            except (smtplib.SMTPException, OSError) as e:
                logger.warning(f"SMTP send to {recipient} failed: {e}")

        if self.settings.MAIL_RELAY_URL:
            try:
                if self._send_relay(recipient, subject, body):
                    logger.info(f"Email sent via relay to {recipient}: {subject}")
                    return True
            except httpx.HTTPError as e:
                logger.warning(f"Mail relay send to {recipient} failed: {e}")

        logger.error(f"Email to {recipient} not delivered: {subject}")
        return False

    def _send_smtp(self, recipient: str, subject: str, body: str) -> None:
        message = EmailMessage()
        message["From"] = self.settings.MAIL_FROM
        message["To"] = recipient
        message["Subject"] = subject
        message.set_content(body)

        with smtplib.SMTP(
            self.settings.SMTP_HOST,
            self.settings.SMTP_PORT,
            timeout=self.settings.SMTP_TIMEOUT
        ) as server:
            server.starttls()
            if self.settings.SMTP_USER:
                server.login(self.settings.SMTP_USER, self.settings.SMTP_PASSWORD or "")
            server.send_message(message)

    def _send_relay(self, recipient: str, subject: str, body: str) -> bool:
        url = f"{self.settings.MAIL_RELAY_URL.rstrip('/')}/api/send-email"
        with httpx.Client(timeout=self.settings.MAIL_RELAY_TIMEOUT) as client:
            response = client.post(url, json={"to": recipient, "subject": subject, "text": body})
            response.raise_for_status()
            result = response.json()

        if not result.get("success"):
            logger.warning(f"Mail relay rejected message to {recipient}: {result}")
            return False
        return True


def deliver(notifier: Notifier, email: Optional[EmailContent]) -> bool:
    """Background task entry point"""
    if email is None:
        return False
    try:
        return notifier.send(email.recipient, email.subject, email.body)
    except Exception as e:
        logger.error(f"Notifier failed for {email.recipient}: {e}")
        return False


# ============ Message builders ============

def _progress_url(request_id: str, base_url: str) -> str:
    return f"{base_url.rstrip('/')}/progress/{request_id}"


def build_request_received(
    recipient: str,
    customer_name: Optional[str],
    request_id: str,
    card_count: int,
    base_url: str = default_settings.BASE_URL
) -> EmailContent:
    body = (
        f"Dear {customer_name or 'customer'},\n\n"
        f"We have received your grading request ({card_count} card(s)).\n"
        f"Request ID: {request_id}\n\n"
        f"You can follow its progress here:\n{_progress_url(request_id, base_url)}\n"
    )
    return EmailContent(recipient=recipient, subject="Grading request received", body=body)


def build_step_updated(
    recipient: str,
    customer_name: Optional[str],
    request_id: str,
    step_number: int,
    status: str,
    notes: Optional[str] = None,
    base_url: str = default_settings.BASE_URL
) -> EmailContent:
    step_name = STEP_NAMES[StepNumber(step_number)]
    body = (
        f"Dear {customer_name or 'customer'},\n\n"
        f"Your grading request {request_id} has been updated.\n"
        f"Step {step_number} ({step_name}): {status}\n"
    )
    if notes:
        body += f"\n{notes}\n"
    body += f"\nProgress: {_progress_url(request_id, base_url)}\n"
    return EmailContent(recipient=recipient, subject=f"Progress update: {step_name}", body=body)


def build_approval_requested(
    recipient: str,
    customer_name: str,
    approval_key: str,
    total_price: float,
    expires_at=None,
    base_url: str = default_settings.BASE_URL
) -> EmailContent:
    url = f"{base_url.rstrip('/')}/approval/{approval_key}"
    body = (
        f"Dear {customer_name},\n\n"
        f"Our buyback offer for your cards is ready. Total: {total_price:,.0f}\n"
        f"Please review each card and answer here:\n{url}\n"
    )
    if expires_at is not None:
        body += f"\nThis link is valid until {expires_at:%Y-%m-%d %H:%M} UTC.\n"
    return EmailContent(recipient=recipient, subject="Buyback offer awaiting your approval", body=body)


def build_approval_answered(
    recipient: str,
    customer_name: str,
    approval_id: int,
    approved: int,
    rejected: int,
    comment: Optional[str] = None
) -> EmailContent:
    body = (
        f"{customer_name} answered approval #{approval_id}.\n"
        f"Approved: {approved}\nRejected: {rejected}\n"
    )
    if comment:
        body += f"\nComment: {comment}\n"
    return EmailContent(recipient=recipient, subject=f"Approval #{approval_id} answered", body=body)
