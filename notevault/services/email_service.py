"""
Email notification service for the registration workflow.

Sends emails via SMTP (STARTTLS on 587, implicit TLS on 465). Notifications
are fire-and-forget: the SMTP exchange runs in a worker thread inside a
detached task, so a slow or failing mail server never blocks or fails the
request that triggered it.

Typical usage:
    notify_admin_of_registration(email="new@example.com", name="New User")
"""

import asyncio
import logging
import smtplib
import ssl
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Optional, Set

from ..config import settings

logger = logging.getLogger(__name__)

# Strong references to in-flight notification tasks
_background_tasks: Set[asyncio.Task] = set()


class EmailService:
    """SMTP email sender with TLS support.

    Args:
        smtp_host: SMTP server hostname.
        smtp_port: SMTP port (587 for STARTTLS, 465 for SSL).
        username: SMTP login username, also used as the sender address.
        password: SMTP login password.
        from_name: Display name for the sender.
    """

    def __init__(
        self,
        smtp_host: str,
        smtp_port: int,
        username: str,
        password: str,
        from_name: str = "Notevault",
    ):
        self.smtp_host = smtp_host
        self.smtp_port = smtp_port
        self.username = username
        self.password = password
        self.from_name = from_name

    def _build_message(
        self,
        to: str,
        subject: str,
        body: str,
        html_body: Optional[str] = None,
    ) -> MIMEMultipart:
        """Build a MIME message with a plain text part and an optional HTML part."""
        msg = MIMEMultipart("alternative")
        msg["From"] = f"{self.from_name} <{self.username}>"
        msg["To"] = to
        msg["Subject"] = subject
        msg.attach(MIMEText(body, "plain", "utf-8"))
        if html_body:
            msg.attach(MIMEText(html_body, "html", "utf-8"))
        return msg

    def _send_sync(
        self,
        to: str,
        subject: str,
        body: str,
        html_body: Optional[str] = None,
    ) -> bool:
        """Synchronous SMTP send (runs in a thread via asyncio).

        Returns:
            True if sent successfully, False otherwise.
        """
        msg = self._build_message(to, subject, body, html_body)
        context = ssl.create_default_context()

        try:
            if self.smtp_port == 465:
                with smtplib.SMTP_SSL(self.smtp_host, self.smtp_port, context=context) as server:
                    server.login(self.username, self.password)
                    server.send_message(msg)
            else:
                with smtplib.SMTP(self.smtp_host, self.smtp_port) as server:
                    server.ehlo()
                    server.starttls(context=context)
                    server.ehlo()
                    server.login(self.username, self.password)
                    server.send_message(msg)

            logger.info(f"Email sent to {to}: {subject}")
            return True

        except smtplib.SMTPAuthenticationError as e:
            logger.error(f"SMTP auth failed, check smtp_username/smtp_password: {e}")
            return False
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Failed to send email to {to}: {e}")
            return False

    async def send(
        self,
        to: str,
        subject: str,
        body: str,
        html_body: Optional[str] = None,
    ) -> bool:
        """Send an email asynchronously (runs SMTP in a thread).

        Returns:
            True if sent successfully, False otherwise.
        """
        return await asyncio.to_thread(self._send_sync, to, subject, body, html_body)


def get_email_service() -> Optional[EmailService]:
    """EmailService built from settings, or None when email is disabled."""
    if not settings.email_enabled or not settings.smtp_username:
        return None
    return EmailService(
        smtp_host=settings.smtp_host,
        smtp_port=settings.smtp_port,
        username=settings.smtp_username,
        password=settings.smtp_password,
        from_name=settings.smtp_from_name,
    )


def _send_in_background(to: str, subject: str, body: str) -> None:
    """Schedule a send without awaiting it. Failures are logged, never raised."""
    service = get_email_service()
    if service is None:
        logger.debug(f"Email disabled, skipping '{subject}' to {to}")
        return

    async def _deliver() -> None:
        try:
            sent = await service.send(to, subject, body)
            if not sent:
                logger.warning(f"Notification '{subject}' to {to} was not delivered")
        except Exception as e:
            logger.error(f"Notification '{subject}' to {to} failed: {e}")

    task = asyncio.create_task(_deliver())
    _background_tasks.add(task)
    task.add_done_callback(_background_tasks.discard)


def notify_admin_of_registration(email: str, name: str) -> None:
    """Tell the configured admin address about a new registration request."""
    if not settings.admin_email:
        logger.debug("admin_email not configured, skipping registration notice")
        return
    _send_in_background(
        settings.admin_email,
        f"New registration request: {name}",
        (
            f"{name} <{email}> has requested an account.\n\n"
            "Review pending requests in the admin panel."
        ),
    )


def notify_applicant_of_decision(
    email: str,
    name: str,
    approved: bool,
    admin_notes: Optional[str] = None,
) -> None:
    """Tell an applicant whether their registration was approved."""
    if approved:
        subject = "Your account has been approved"
        body = f"Hello {name},\n\nYour account request was approved. You can now sign in."
    else:
        subject = "Your account request was not approved"
        body = f"Hello {name},\n\nYour account request was not approved."
    if admin_notes:
        body += f"\n\nNotes from the administrator:\n{admin_notes}"
    _send_in_background(email, subject, body)
