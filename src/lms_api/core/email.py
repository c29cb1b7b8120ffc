"""
Email Service using Resend

Notification sink for the identity and instructor onboarding flows.

Delivery contract:
- ``EmailNotifier.send`` raises DeliveryError when the provider call fails
- Callers decide whether a failure matters: application notifications are
  best-effort, the forgot-password email is required
- Without a RESEND_API_KEY the notifier logs the recipient and subject
  instead of sending (development mode); message bodies are never logged
- Required emails (the temporary password) raise DeliveryError instead of
  falling back to logging
"""

import asyncio
import logging
from dataclasses import dataclass
from functools import lru_cache
from html import escape

import resend

from lms_api.core.config import settings
from lms_api.core.errors import DeliveryError

logger = logging.getLogger(__name__)

_BASE_STYLES = """
            body { font-family: system-ui, -apple-system, sans-serif; line-height: 1.6; color: #1f2937; }
            .container { max-width: 600px; margin: 0 auto; padding: 40px 20px; }
            .header { color: #1a365d; margin-bottom: 24px; }
            .box { background-color: #f9fafb; border: 1px solid #e5e7eb; padding: 16px; border-radius: 8px; margin: 16px 0; }
            .footer { margin-top: 40px; padding-top: 20px; border-top: 1px solid #e5e7eb; color: #6b7280; font-size: 14px; }
"""


def _wrap_html(title: str, body: str) -> str:
    """Wrap an email body in the shared layout."""
    return f"""
    <!DOCTYPE html>
    <html>
    <head>
        <style>{_BASE_STYLES}</style>
    </head>
    <body>
        <div class="container">
            <h1 class="header">{title}</h1>
            {body}
            <div class="footer">
                <p>Best regards,</p>
                <p>LMS Platform Team</p>
            </div>
        </div>
    </body>
    </html>
    """


@dataclass(frozen=True)
class NotificationConfig:
    """Delivery configuration for the email notifier."""

    api_key: str | None
    email_from: str
    admin_email: str | None = None
    frontend_url: str = "http://localhost:3000"


class EmailNotifier:
    """Sends transactional emails through Resend."""

    def __init__(self, config: NotificationConfig):
        self.config = config
        if config.api_key:
            resend.api_key = config.api_key

    async def send(
        self,
        to_email: str,
        subject: str,
        html_content: str,
        required: bool = False,
    ) -> None:
        """
        Send an email.

        Args:
            to_email: Recipient email address
            subject: Email subject line
            html_content: HTML content of the email
            required: The caller depends on the message arriving, so the
                log-only development mode counts as a failure

        Raises:
            DeliveryError: If the provider rejects or fails the request, or if
                a required email cannot be sent because no API key is set
        """
        if not self.config.api_key:
            if required:
                logger.error(f"RESEND_API_KEY not set - cannot deliver required email to {to_email}")
                raise DeliveryError()
            logger.warning("RESEND_API_KEY not set - logging email instead of sending")
            logger.info(f"EMAIL TO: {to_email} | SUBJECT: {subject}")
            return

        params: resend.Emails.SendParams = {
            "from": self.config.email_from,
            "to": [to_email],
            "subject": subject,
            "html": html_content,
        }

        try:
            # Run sync Resend call in thread pool to avoid blocking event loop
            email = await asyncio.to_thread(resend.Emails.send, params)
        except Exception as e:
            logger.error(f"Failed to send email to {to_email}: {e}")
            raise DeliveryError() from e

        logger.info(f"Email sent successfully to {to_email}, id: {email['id']}")

    async def send_application_submitted(
        self,
        applicant_name: str,
        applicant_email: str,
        expertise: str,
        experience: str,
    ) -> None:
        """Tell the admin mailbox that a new instructor application arrived."""
        if not self.config.admin_email:
            logger.warning("ADMIN_NOTIFICATION_EMAIL not set - skipping admin notification")
            return

        body = f"""
            <p>A new instructor application has been submitted:</p>
            <div class="box">
                <ul>
                    <li><strong>Name:</strong> {escape(applicant_name)}</li>
                    <li><strong>Email:</strong> {escape(applicant_email)}</li>
                    <li><strong>Expertise:</strong> {escape(expertise)}</li>
                    <li><strong>Experience:</strong> {escape(experience)}</li>
                </ul>
            </div>
            <p>Please review the application in the admin dashboard.</p>
        """
        await self.send(
            to_email=self.config.admin_email,
            subject="New Instructor Application - LMS Platform",
            html_content=_wrap_html("New Instructor Application", body),
        )

    async def send_application_approved(self, to_email: str, applicant_name: str) -> None:
        """Tell an applicant that their application was approved."""
        login_url = f"{self.config.frontend_url}/login"
        body = f"""
            <p>Dear {escape(applicant_name)},</p>
            <p>We're excited to inform you that your instructor application has been approved!</p>
            <p>You can now log in to your account and start creating courses:</p>
            <div class="box">
                <ul>
                    <li><strong>Email:</strong> {escape(to_email)}</li>
                    <li><strong>Login URL:</strong> <a href="{login_url}">{login_url}</a></li>
                </ul>
            </div>
            <p>Log in with the password you chose when you applied.</p>
            <p>Welcome to the LMS Platform instructor community!</p>
        """
        await self.send(
            to_email=to_email,
            subject="Instructor Application Approved - LMS Platform",
            html_content=_wrap_html(
                "Congratulations! Your Instructor Application has been Approved", body
            ),
        )

    async def send_application_rejected(
        self,
        to_email: str,
        applicant_name: str,
        rejection_reason: str | None,
    ) -> None:
        """Tell an applicant that their application was rejected."""
        reason_html = (
            f'<div class="box"><p><strong>Reason:</strong> {escape(rejection_reason)}</p></div>'
            if rejection_reason
            else ""
        )
        body = f"""
            <p>Dear {escape(applicant_name)},</p>
            <p>Thank you for your interest in becoming an instructor on our platform.</p>
            <p>After careful review, we regret to inform you that we cannot approve your application at this time.</p>
            {reason_html}
            <p>We encourage you to reapply in the future as our requirements may change.</p>
        """
        await self.send(
            to_email=to_email,
            subject="Instructor Application Update - LMS Platform",
            html_content=_wrap_html("Instructor Application Update", body),
        )

    async def send_temporary_password(
        self,
        to_email: str,
        user_name: str,
        temp_password: str,
        expires_in_hours: int,
    ) -> None:
        """Deliver a temporary password for the forgot-password flow."""
        body = f"""
            <p>Hello {escape(user_name)},</p>
            <p>You requested a password reset. Please use the following temporary password to log in:</p>
            <div class="box">
                <p><strong>Temporary Password:</strong> <code>{escape(temp_password)}</code></p>
            </div>
            <p>This password expires in {expires_in_hours} hours. You will be required to change it upon login.</p>
            <p>If you didn't request this, please contact support immediately.</p>
        """
        await self.send(
            to_email=to_email,
            subject="Password Reset - LMS Platform",
            html_content=_wrap_html("Password Reset Request", body),
            required=True,
        )


@lru_cache
def get_notifier() -> EmailNotifier:
    """Process-wide notifier built from settings."""
    return EmailNotifier(
        NotificationConfig(
            api_key=settings.resend_api_key,
            email_from=settings.email_from,
            admin_email=settings.admin_notification_email,
            frontend_url=settings.frontend_url,
        )
    )


__all__ = ["EmailNotifier", "NotificationConfig", "get_notifier"]
