"""
Email Connector
Sends transactional email through an HTTP mail provider
"""
import logging

import httpx

from waterjunction.core.config import settings
from waterjunction.core.exceptions import ConfigurationError, ExternalServiceError


logger = logging.getLogger(__name__)


class EmailSender:
    """
    JSON mail API client (SendGrid-style payload, Bearer auth)

    EMAIL_API_URL: provider endpoint, e.g. https://api.sendgrid.com/v3/mail/send
    EMAIL_API_KEY: provider secret
    EMAIL_FROM: sender address
    """

    def __init__(self, api_url: str = None, api_key: str = None, sender: str = None):
        self.api_url = api_url or settings.EMAIL_API_URL
        self.api_key = api_key or settings.EMAIL_API_KEY
        self.sender = sender or settings.EMAIL_FROM

    @property
    def is_configured(self) -> bool:
        return bool(self.api_url and self.api_key)

    async def send(self, to: str, subject: str, html: str) -> None:
        """
        Send one HTML email

        Raises:
            ConfigurationError: provider not configured
            ExternalServiceError: provider answered with a non-2xx status
        """
        if not self.is_configured:
            raise ConfigurationError("Email provider not configured")

        payload = {
            "from": {"email": self.sender, "name": "WaterJunction"},
            "personalizations": [{"to": [{"email": to}], "subject": subject}],
            "content": [{"type": "text/html", "value": html}],
        }
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

        try:
            async with httpx.AsyncClient(timeout=10.0) as client:
                response = await client.post(self.api_url, json=payload, headers=headers)
        except httpx.HTTPError as e:
            raise ExternalServiceError(f"Email provider unreachable: {e}")

        if not 200 <= response.status_code < 300:
            raise ExternalServiceError(
                f"Email send failed {response.status_code}: {response.text[:200]}"
            )

        logger.info(f"Email sent to {to}: {subject}")
