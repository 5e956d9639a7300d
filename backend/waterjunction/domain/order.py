"""
Order Domain Model

Orders are created from a cart at checkout, paid through Razorpay and
shipped through Shipmozo. Items and the shipping address are snapshots
taken when the order is placed.

Author: Water Junction
Date: 2025-06-09
"""
import secrets
import string
import time
from pydantic import BaseModel, Field, ConfigDict
from typing import Optional, List, Dict, Iterable
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP


ORDER_STATUSES = ("pending", "paid", "packed", "shipped", "delivered", "returned", "cancelled")
PAYMENT_STATUSES = ("pending", "paid", "failed", "refunded")
PAYMENT_METHODS = ("razorpay",)
CANCELLABLE_STATUSES = ("pending", "paid")

# GST applied on the discounted subtotal
TAX_RATE = Decimal("0.18")
SHIPPING_COST = Decimal("0")

_ORDER_SUFFIX_ALPHABET = string.digits + string.ascii_uppercase


def generate_order_number(now_ms: Optional[int] = None) -> str:
    """
    WJ + last 6 digits of the epoch milliseconds + 3 random base-36 chars.

    Example: WJ482913K7Q
    """
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    suffix = "".join(secrets.choice(_ORDER_SUFFIX_ALPHABET) for _ in range(3))
    return f"WJ{str(now_ms)[-6:]}{suffix}"


class OrderTotals(BaseModel):
    subtotal: Decimal
    discount: Decimal
    shipping_cost: Decimal
    tax: Decimal
    total: Decimal

    @property
    def amount_in_paise(self) -> int:
        return int((self.total * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def calculate_order_totals(
    line_items: Iterable[tuple],
    discount: Decimal = Decimal("0")
) -> OrderTotals:
    """
    Price an order.

    Args:
        line_items: (unit_price, quantity) pairs
        discount: Coupon discount already computed for the subtotal

    tax = (subtotal - discount) * 18%, rounded to whole rupees;
    total = subtotal - discount + shipping + tax.
    """
    subtotal = sum((Decimal(price) * quantity for price, quantity in line_items), Decimal("0"))
    discount = Decimal(discount)
    tax = ((subtotal - discount) * TAX_RATE).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    total = subtotal - discount + SHIPPING_COST + tax
    return OrderTotals(
        subtotal=subtotal,
        discount=discount,
        shipping_cost=SHIPPING_COST,
        tax=tax,
        total=total,
    )


class ShippingAddress(BaseModel):
    name: str
    phone: str
    email: Optional[str] = None
    address_line1: str
    address_line2: Optional[str] = None
    city: str
    state: str
    pincode: str
    country: str = "India"


class OrderItem(BaseModel):
    id: Optional[int] = None
    product_id: Optional[int] = None
    name: str
    image: Optional[str] = None
    price: Decimal = Field(..., ge=0)
    quantity: int = Field(..., ge=1)
    variant: Dict[str, str] = Field(default_factory=dict)

    def to_dict(self) -> dict:
        data = self.model_dump()
        data["price"] = float(self.price)
        return data


class Order(BaseModel):
    """
    Order domain model

    status: pending -> paid -> packed -> shipped -> delivered
            (returned / cancelled as terminal branches)
    payment_status: pending -> paid | failed, paid -> refunded on cancel
    shipping_pending: payment succeeded but the shipment could not be created yet
    """

    id: int = Field(..., description="Order ID")
    order_number: str = Field(..., description="Human readable order number")
    user_id: int
    items: List[OrderItem] = Field(default_factory=list)
    shipping_address: ShippingAddress

    payment_method: str = "razorpay"
    payment_status: str = "pending"
    status: str = "pending"

    subtotal: Decimal
    shipping_cost: Decimal = Decimal("0")
    tax: Decimal = Decimal("0")
    discount: Decimal = Decimal("0")
    total: Decimal
    coupon_id: Optional[int] = None

    razorpay_order_id: Optional[str] = None
    razorpay_payment_id: Optional[str] = None
    razorpay_signature: Optional[str] = None

    shipment_awb: Optional[str] = None
    courier_name: Optional[str] = None
    tracking_url: Optional[str] = None
    shipment_id: Optional[str] = None
    shipment_status: Optional[str] = None
    shipping_pending: bool = False
    tracking_number: Optional[str] = None

    customer_notes: Optional[str] = Field(None, max_length=500)
    admin_notes: Optional[str] = Field(None, max_length=500)

    cancelled_at: Optional[datetime] = None
    cancellation_reason: Optional[str] = None
    delivered_at: Optional[datetime] = None

    # Joined from users for admin listings
    customer_name: Optional[str] = None
    customer_email: Optional[str] = None

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(
        from_attributes=True,
        json_encoders={
            Decimal: float,
            datetime: lambda v: v.isoformat()
        }
    )

    @property
    def is_paid(self) -> bool:
        return self.payment_status == "paid"

    @property
    def is_cancellable(self) -> bool:
        return self.status in CANCELLABLE_STATUSES

    @property
    def has_shipment(self) -> bool:
        return bool(self.shipment_awb)

    @property
    def total_items(self) -> int:
        return sum(item.quantity for item in self.items)

    def to_dict(self) -> dict:
        """Convert to dictionary, Decimal amounts as floats"""
        data = self.model_dump(exclude={"razorpay_signature"})
        data["items"] = [item.to_dict() for item in self.items]
        data["total_items"] = self.total_items
        for key in ("subtotal", "shipping_cost", "tax", "discount", "total"):
            data[key] = float(data[key])
        return data
