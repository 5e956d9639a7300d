"""
Razorpay Connector
Creates payment orders and verifies checkout signatures

Author: Water Junction
Date: 2025-06-09
"""
import hmac
import hashlib
import logging
from typing import Dict, Optional

import httpx

from waterjunction.core.config import settings
from waterjunction.core.exceptions import ConfigurationError, ExternalServiceError


logger = logging.getLogger(__name__)


class RazorpayConnector:
    """
    Connector for the Razorpay Orders API

    Handles:
    - Order creation (amount in paise)
    - Payment signature verification (HMAC-SHA256 of "order_id|payment_id")
    """

    def __init__(self, key_id: str = None, key_secret: str = None, api_url: str = None):
        """
        Initialize Razorpay connector

        Args:
            key_id: Razorpay key id (public, also sent to the browser checkout)
            key_secret: Razorpay key secret
        """
        self.key_id = key_id or settings.RAZORPAY_KEY_ID
        self.key_secret = key_secret or settings.RAZORPAY_KEY_SECRET
        self.api_url = (api_url or settings.RAZORPAY_API_URL).rstrip('/')

        if not self.key_id or not self.key_secret:
            raise ConfigurationError(
                "Razorpay credentials not configured. Set RAZORPAY_KEY_ID and RAZORPAY_KEY_SECRET"
            )

    async def create_order(
        self,
        amount_paise: int,
        receipt: str,
        notes: Optional[Dict[str, str]] = None,
        currency: str = "INR"
    ) -> Dict:
        """
        Create a Razorpay order

        Args:
            amount_paise: Amount in the smallest currency unit
            receipt: Our order number
            notes: Free-form key/values stored with the Razorpay order

        Returns:
            Razorpay order payload (id, amount, currency, receipt, status, ...)
        """
        payload = {
            'amount': amount_paise,
            'currency': currency,
            'receipt': receipt,
            'notes': notes or {},
        }

        try:
            async with httpx.AsyncClient() as client:
                response = await client.post(
                    f"{self.api_url}/orders",
                    json=payload,
                    auth=(self.key_id, self.key_secret),
                    timeout=30.0
                )
                response.raise_for_status()
                razorpay_order = response.json()

        except httpx.HTTPStatusError as e:
            logger.error(f"Razorpay order creation failed for {receipt}: {e.response.status_code} {e.response.text[:200]}")
            raise ExternalServiceError("Failed to create Razorpay order")
        except httpx.HTTPError as e:
            logger.error(f"Razorpay unreachable for {receipt}: {e}")
            raise ExternalServiceError("Failed to create Razorpay order")
        except ValueError:
            logger.error(f"Razorpay returned a non-JSON body for {receipt}")
            raise ExternalServiceError("Failed to create Razorpay order")

        if not isinstance(razorpay_order, dict) or not razorpay_order.get('id'):
            logger.error(f"Razorpay order for {receipt} came back without an id: {razorpay_order!r:.200}")
            raise ExternalServiceError("Failed to create Razorpay order")

        return razorpay_order

    def verify_payment_signature(self, order_id: str, payment_id: str, signature: str) -> bool:
        """Constant-time check of the checkout signature"""
        if not order_id or not payment_id or not signature:
            return False

        expected = hmac.new(
            self.key_secret.encode(),
            f"{order_id}|{payment_id}".encode(),
            hashlib.sha256
        ).hexdigest()
        return hmac.compare_digest(expected, signature)
