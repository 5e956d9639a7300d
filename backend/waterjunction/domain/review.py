"""
Review Domain Model

Verified-purchase product reviews. New reviews stay hidden until an
admin approves them.

Author: Water Junction
Date: 2025-06-16
"""
from pydantic import BaseModel, Field, ConfigDict
from typing import Optional, List, Iterable, Tuple
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP


def summarize_ratings(ratings: Iterable[int]) -> Tuple[Decimal, int]:
    """Average rounded to one decimal and count, (0, 0) when there are none"""
    ratings = list(ratings)
    if not ratings:
        return Decimal("0"), 0
    average = Decimal(sum(ratings)) / Decimal(len(ratings))
    return average.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP), len(ratings)


class Review(BaseModel):
    id: int
    user_id: int
    product_id: int
    order_id: int
    rating: int = Field(..., ge=1, le=5)
    title: Optional[str] = None
    comment: Optional[str] = None
    images: List[str] = Field(default_factory=list)
    is_approved: bool = False
    is_reported: bool = False
    helpful_count: int = 0

    # Joined for display
    user_name: Optional[str] = None
    user_photo: Optional[str] = None
    product_name: Optional[str] = None
    order_number: Optional[str] = None

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    def to_dict(self) -> dict:
        data = self.model_dump(exclude={"user_name", "user_photo", "product_name", "order_number"})
        data["user"] = {"id": self.user_id, "name": self.user_name, "profilePhoto": self.user_photo}
        if self.product_name is not None:
            data["product"] = {"id": self.product_id, "name": self.product_name}
        if self.order_number is not None:
            data["order"] = {"id": self.order_id, "order_number": self.order_number}
        return data
