"""
Notification Service
Builds and sends the transactional emails the storefront needs

Author: Water Junction
Date: 2025-06-02
"""
import html
import logging

from waterjunction.connectors.email_connector import EmailSender
from waterjunction.core.config import settings
from waterjunction.core.exceptions import ServiceError
from waterjunction.domain.contact import Contact


logger = logging.getLogger(__name__)


class NotificationService:
    """Contact-form alerts to the shop admin and password reset links"""

    def __init__(self, email_sender: EmailSender = None):
        self.email_sender = email_sender or EmailSender()

    async def notify_contact_received(self, contact: Contact) -> bool:
        """
        Email the admin about a new contact message.

        Best effort: a missing admin address or provider failure is logged
        and reported as False, never raised.
        """
        if not settings.ADMIN_EMAIL:
            logger.warning(f"ADMIN_EMAIL not set, skipping notification for contact {contact.id}")
            return False

        body = (
            "<h2>New contact form submission</h2>"
            f"<p><strong>Name:</strong> {html.escape(contact.name)}</p>"
            f"<p><strong>Email:</strong> {html.escape(contact.email)}</p>"
            f"<p><strong>Phone:</strong> {html.escape(contact.phone or '-')}</p>"
            f"<p><strong>Message:</strong></p><p>{html.escape(contact.message)}</p>"
        )

        try:
            await self.email_sender.send(
                to=settings.ADMIN_EMAIL,
                subject=f"New contact message from {contact.name}",
                html=body,
            )
            return True
        except ServiceError as e:
            logger.error(f"Contact notification failed for contact {contact.id}: {e.message}")
            return False

    async def send_password_reset(self, email: str, reset_url: str) -> None:
        """Raises ServiceError when the email cannot be sent"""
        body = (
            "<h2>Password Reset Request</h2>"
            "<p>You requested a password reset. Click the link below:</p>"
            f'<a href="{reset_url}">{reset_url}</a>'
            "<p>This link will expire in 10 minutes.</p>"
        )
        await self.email_sender.send(
            to=email,
            subject="Password Reset Request - WaterJunction",
            html=body,
        )
