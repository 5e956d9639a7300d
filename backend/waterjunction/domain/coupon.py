"""
Coupon Domain Model

Author: Water Junction
Date: 2025-06-09
"""
from pydantic import BaseModel, Field, ConfigDict, field_validator
from typing import Optional, List
from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP


COUPON_TYPES = ("percentage", "fixed")


class Coupon(BaseModel):
    """
    Discount coupon applied to a cart at checkout

    usage_limit of None means unlimited redemptions.
    """

    id: int = Field(..., description="Coupon ID")
    code: str = Field(..., description="Uppercase coupon code")
    description: Optional[str] = None
    discount_type: str = Field(..., description="percentage or fixed")
    value: Decimal = Field(..., ge=0, description="Percent or rupee amount")
    min_order_value: Decimal = Field(Decimal("0"), ge=0)
    max_discount: Optional[Decimal] = Field(None, description="Cap for percentage coupons")
    valid_from: datetime
    valid_until: datetime
    usage_limit: Optional[int] = None
    used_count: int = 0
    user_limit: int = 1
    applicable_category_ids: List[int] = Field(default_factory=list)
    applicable_product_ids: List[int] = Field(default_factory=list)
    is_active: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    @field_validator("code")
    @classmethod
    def _uppercase_code(cls, value: str) -> str:
        return value.strip().upper()

    def is_valid(self, now: Optional[datetime] = None) -> bool:
        """Active, inside the validity window, and not used up"""
        now = now or datetime.now(timezone.utc)
        if not self.is_active:
            return False
        if now < _aware(self.valid_from) or now > _aware(self.valid_until):
            return False
        if self.usage_limit and self.used_count >= self.usage_limit:
            return False
        return True

    def calculate_discount(self, order_value: Decimal) -> Decimal:
        """
        Discount in rupees for an order value, rounded to 2 decimals.

        0 below min_order_value. Percentage coupons are capped at
        max_discount; fixed coupons never exceed the order value.
        """
        order_value = Decimal(order_value)
        if order_value < self.min_order_value:
            return Decimal("0.00")

        if self.discount_type == "percentage":
            discount = order_value * self.value / Decimal(100)
            if self.max_discount:
                discount = min(discount, self.max_discount)
        else:
            discount = min(self.value, order_value)

        return discount.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)

    def to_dict(self) -> dict:
        data = self.model_dump()
        data["type"] = data.pop("discount_type")
        for key in ("value", "min_order_value", "max_discount"):
            if data.get(key) is not None:
                data[key] = float(data[key])
        return data


def _aware(value: datetime) -> datetime:
    # Naive timestamps from the database are stored in UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
