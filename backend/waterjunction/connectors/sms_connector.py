"""
SMS Connector
Delivers phone OTPs through the Twilio Messages API
"""
import logging

import httpx

from waterjunction.core.config import settings


logger = logging.getLogger(__name__)


class SmsSender:
    """
    Twilio REST client for OTP delivery

    When Twilio is not configured the OTP is written to the log instead,
    which keeps phone login usable in development.
    """

    def __init__(self, account_sid: str = None, auth_token: str = None, from_number: str = None, api_url: str = None):
        self.account_sid = account_sid or settings.TWILIO_ACCOUNT_SID
        self.auth_token = auth_token or settings.TWILIO_AUTH_TOKEN
        self.from_number = from_number or settings.TWILIO_PHONE_NUMBER
        self.api_url = (api_url or settings.TWILIO_API_URL).rstrip('/')

    @property
    def is_configured(self) -> bool:
        return bool(self.account_sid and self.auth_token and self.from_number)

    async def send_otp(self, phone: str, otp: str) -> bool:
        """
        Send an OTP message

        Returns:
            True when delivered (or logged in development), False on provider error
        """
        if not self.is_configured:
            logger.warning(f"Twilio not configured - OTP for {phone}: {otp}")
            return True

        try:
            async with httpx.AsyncClient() as client:
                response = await client.post(
                    f"{self.api_url}/Accounts/{self.account_sid}/Messages.json",
                    data={
                        'To': phone,
                        'From': self.from_number,
                        'Body': f"Your WaterJunction OTP is: {otp}. Valid for 10 minutes.",
                    },
                    auth=(self.account_sid, self.auth_token),
                    timeout=30.0
                )
                response.raise_for_status()
            return True

        except httpx.HTTPError as e:
            logger.error(f"Twilio error sending OTP to {phone}: {e}")
            return False
