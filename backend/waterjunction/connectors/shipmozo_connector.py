"""
Shipmozo Connector
Creates and tracks courier shipments

Author: Water Junction
Date: 2025-06-16
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Optional, Any

import httpx

from waterjunction.core.config import settings
from waterjunction.domain.order import Order


logger = logging.getLogger(__name__)

# Per order line, in kg
DEFAULT_ITEM_WEIGHT = 0.5

INVALID_RESPONSE = "Invalid response from Shipmozo"


@dataclass
class ShipmentResult:
    """Outcome of a shipment creation request"""
    success: bool
    awb: Optional[str] = None
    courier_name: Optional[str] = None
    tracking_url: Optional[str] = None
    shipment_id: Optional[str] = None
    status: Optional[str] = None
    error: Optional[str] = None


@dataclass
class TrackingResult:
    """Latest tracking information for an AWB"""
    success: bool
    awb: Optional[str] = None
    status: Optional[str] = None
    courier_name: Optional[str] = None
    tracking_url: Optional[str] = None
    events: List[Dict[str, Any]] = field(default_factory=list)
    estimated_delivery: Optional[str] = None
    current_location: Optional[str] = None
    error: Optional[str] = None


class ShipmozoConnector:
    """
    Connector for the Shipmozo shipping API

    Failures are returned as results with success=False instead of raised,
    callers decide whether a failed shipment blocks them.
    """

    def __init__(self, public_key: str = None, private_key: str = None, base_url: str = None):
        self.public_key = public_key or settings.SHIPMOZO_PUBLIC_KEY
        self.private_key = private_key or settings.SHIPMOZO_PRIVATE_KEY
        self.base_url = (base_url or settings.SHIPMOZO_BASE_URL).rstrip('/')

    @property
    def is_configured(self) -> bool:
        return bool(self.public_key and self.private_key)

    @property
    def headers(self) -> Dict[str, str]:
        return {
            'Content-Type': 'application/json',
            'X-Public-Key': self.public_key,
            'X-Private-Key': self.private_key,
        }

    @staticmethod
    def build_shipment_payload(order: Order, customer_email: Optional[str] = None) -> Dict[str, Any]:
        """Map an order onto Shipmozo's create-order body"""
        address = order.shipping_address
        total = float(order.total)
        return {
            'order_id': order.order_number,
            'order_date': datetime.now(timezone.utc).isoformat(),
            'payment_mode': 'Prepaid' if order.is_paid else 'COD',
            'customer_name': address.name,
            'customer_phone': address.phone,
            'customer_email': customer_email or address.email or '',
            'address_line1': address.address_line1,
            'address_line2': address.address_line2 or '',
            'city': address.city,
            'state': address.state,
            'pincode': address.pincode,
            'country': address.country or 'India',
            'order_amount': total,
            'cod_amount': 0 if order.is_paid else total,
            'items': [
                {
                    'name': item.name,
                    'sku': str(item.product_id) if item.product_id else '',
                    'quantity': item.quantity,
                    'price': float(item.price),
                }
                for item in order.items
            ],
            'weight': len(order.items) * DEFAULT_ITEM_WEIGHT,
            'product_type': 'Standard',
        }

    async def create_shipment(self, order: Order, customer_email: Optional[str] = None) -> ShipmentResult:
        """
        Create a shipment for a paid order

        Returns:
            ShipmentResult with AWB, courier and tracking URL on success
        """
        if not self.is_configured:
            return ShipmentResult(success=False, error="Shipmozo API keys are not configured")

        payload = self.build_shipment_payload(order, customer_email)

        try:
            async with httpx.AsyncClient() as client:
                response = await client.post(
                    f"{self.base_url}/v1/orders/create",
                    json=payload,
                    headers=self.headers,
                    timeout=30.0
                )
                response.raise_for_status()
                body = response.json()

        except httpx.HTTPStatusError as e:
            message = _error_message(e.response)
            logger.error(f"Shipmozo create shipment failed for {order.order_number}: {message}")
            return ShipmentResult(success=False, error=message)
        except httpx.HTTPError as e:
            logger.error(f"Shipmozo unreachable for {order.order_number}: {e}")
            return ShipmentResult(success=False, error=str(e))
        except ValueError:
            logger.error(f"Shipmozo returned a non-JSON body for {order.order_number}")
            return ShipmentResult(success=False, error=INVALID_RESPONSE)

        if not isinstance(body, dict):
            logger.error(f"Shipmozo returned an unexpected body for {order.order_number}: {body!r:.200}")
            return ShipmentResult(success=False, error=INVALID_RESPONSE)

        if not body.get('success'):
            message = body.get('message') or 'Failed to create shipment'
            logger.error(f"Shipmozo rejected shipment for {order.order_number}: {message}")
            return ShipmentResult(success=False, error=message)

        data = body.get('data') or body
        if not isinstance(data, dict):
            data = {}
        return ShipmentResult(
            success=True,
            awb=data.get('awb'),
            courier_name=data.get('courier_name'),
            tracking_url=data.get('tracking_url'),
            shipment_id=_as_str(data.get('shipment_id')),
            status=data.get('status') or 'created',
        )

    async def track_shipment(self, awb: str) -> TrackingResult:
        """Fetch the current tracking status for an AWB"""
        if not self.is_configured:
            return TrackingResult(success=False, awb=awb, error="Shipmozo API keys are not configured")
        if not awb:
            return TrackingResult(success=False, error="AWB number is required")

        try:
            async with httpx.AsyncClient() as client:
                response = await client.get(
                    f"{self.base_url}/v1/track/{awb}",
                    headers=self.headers,
                    timeout=30.0
                )
                response.raise_for_status()
                body = response.json()

        except httpx.HTTPStatusError as e:
            message = _error_message(e.response)
            logger.error(f"Shipmozo tracking failed for {awb}: {message}")
            return TrackingResult(success=False, awb=awb, error=message)
        except httpx.HTTPError as e:
            logger.error(f"Shipmozo unreachable while tracking {awb}: {e}")
            return TrackingResult(success=False, awb=awb, error=str(e))
        except ValueError:
            logger.error(f"Shipmozo returned a non-JSON tracking body for {awb}")
            return TrackingResult(success=False, awb=awb, error=INVALID_RESPONSE)

        if not isinstance(body, dict):
            return TrackingResult(success=False, awb=awb, error=INVALID_RESPONSE)

        if not body.get('success'):
            return TrackingResult(
                success=False,
                awb=awb,
                error=body.get('message') or 'Failed to fetch tracking information'
            )

        data = body.get('data') or body
        if not isinstance(data, dict):
            data = {}
        return TrackingResult(
            success=True,
            awb=data.get('awb') or awb,
            status=data.get('status') or data.get('current_status') or 'unknown',
            courier_name=data.get('courier_name') or data.get('courier'),
            tracking_url=data.get('tracking_url') or data.get('url'),
            events=data.get('events') or data.get('tracking_history') or [],
            estimated_delivery=data.get('estimated_delivery'),
            current_location=data.get('current_location') or data.get('location'),
        )


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return f"HTTP {response.status_code}"
    if isinstance(body, dict) and body.get('message'):
        return body['message']
    return f"HTTP {response.status_code}"


def _as_str(value) -> Optional[str]:
    return str(value) if value is not None else None
