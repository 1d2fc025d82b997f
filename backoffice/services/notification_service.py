"""Email notification service.

Notifications are best effort: a failed send is logged and reported to the
caller as ``False`` but never raised, so the state change that triggered it
stands.
"""

import asyncio
import html
import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Any, Dict, Iterable, List, Optional

from backoffice.config import settings
from backoffice.monitoring.metrics import notifications_total

logger = logging.getLogger(__name__)


def unique_recipients(addresses: Iterable[Optional[str]]) -> List[str]:
    """Drop empty and duplicate addresses, keeping first-seen order"""
    seen = []
    for address in addresses:
        if address and address not in seen:
            seen.append(address)
    return seen


def render_html(subject: str, template_params: Dict[str, Any], text: str) -> str:
    """Minimal HTML body built from the template parameters"""
    rows = "".join(
        f"<tr><td><b>{html.escape(str(key))}</b></td><td>{html.escape(str(value))}</td></tr>"
        for key, value in template_params.items()
        if value is not None and key not in ("action_url", "logo_url")
    )
    action_url = template_params.get("action_url")
    link = (
        f'<p><a href="{html.escape(action_url)}">View project</a></p>' if action_url else ""
    )
    paragraphs = "".join(f"<p>{html.escape(line)}</p>" for line in text.split("\n\n"))
    return (
        f"<html><body><h2>{html.escape(subject)}</h2>{paragraphs}"
        f"<table>{rows}</table>{link}</body></html>"
    )


class NotificationService:
    """Sends stakeholder emails over SMTP"""

    def __init__(self, smtp_factory=smtplib.SMTP):
        self.smtp_factory = smtp_factory

    def _build_message(
        self,
        recipients: List[str],
        subject: str,
        template_params: Dict[str, Any],
        text: str,
        bcc: Optional[List[str]] = None,
    ) -> MIMEMultipart:
        msg = MIMEMultipart("alternative")
        msg["From"] = settings.mail_from
        msg["To"] = ", ".join(recipients)
        msg["Subject"] = subject
        msg["X-Priority"] = "1"
        msg["Importance"] = "high"
        if bcc:
            msg["Bcc"] = ", ".join(bcc)

        msg.attach(MIMEText(text, "plain"))
        msg.attach(MIMEText(render_html(subject, template_params, text), "html"))
        return msg

    def _send_sync(self, msg: MIMEMultipart) -> None:
        with self.smtp_factory(settings.smtp_host, settings.smtp_port) as server:
            if settings.smtp_use_tls:
                server.starttls()
            if settings.smtp_user:
                server.login(settings.smtp_user, settings.smtp_password or "")
            server.send_message(msg)

    async def send(
        self,
        recipients: List[str],
        subject: str,
        template_params: Dict[str, Any],
        text: str,
        bcc: Optional[List[str]] = None,
    ) -> bool:
        """
        Send a notification email.

        Args:
            recipients: To addresses
            subject: Email subject
            template_params: Values rendered into the HTML body
            text: Plain-text fallback body
            bcc: Blind-copied addresses

        Returns:
            True if the email was handed to the SMTP server
        """
        recipients = unique_recipients(recipients)
        bcc = unique_recipients(bcc or [])

        if not recipients and not bcc:
            logger.info(f"No recipients for notification '{subject}', skipping")
            notifications_total.labels(status="skipped").inc()
            return False

        if not settings.notifications_enabled:
            logger.info(f"SMTP not configured, skipping notification '{subject}'")
            notifications_total.labels(status="skipped").inc()
            return False

        msg = self._build_message(recipients, subject, template_params, text, bcc)

        try:
            await asyncio.to_thread(self._send_sync, msg)
        except Exception as e:
            logger.error(f"Failed to send notification '{subject}': {e}")
            notifications_total.labels(status="failed").inc()
            return False

        notifications_total.labels(status="sent").inc()
        logger.info(f"Sent notification '{subject}' to {len(recipients) + len(bcc)} recipients")
        return True


def get_notification_service() -> NotificationService:
    """FastAPI dependency for the notification service"""
    return NotificationService()
