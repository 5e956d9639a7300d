"""
Cart and Wishlist Domain Models

Each user owns at most one cart and one wishlist. Items carry a joined
snapshot of the product so the API can render them without extra queries.

Author: Water Junction
Date: 2025-06-09
"""
from pydantic import BaseModel, Field, ConfigDict
from typing import Optional, List, Dict
from datetime import datetime
from decimal import Decimal


class ProductSnapshot(BaseModel):
    """Product columns joined onto cart and wishlist items"""

    id: int
    name: str
    slug: str
    price: Decimal
    mrp: Optional[Decimal] = None
    image: Optional[str] = None
    stock: int = 0
    is_active: bool = True

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "slug": self.slug,
            "price": float(self.price),
            "mrp": float(self.mrp) if self.mrp is not None else None,
            "images": [self.image] if self.image else [],
            "stock": self.stock,
            "is_active": self.is_active,
        }


class CartItem(BaseModel):
    id: int
    product_id: int
    quantity: int = Field(..., ge=1)
    variant: Dict[str, str] = Field(default_factory=dict)
    added_at: Optional[datetime] = None
    product: Optional[ProductSnapshot] = Field(None, description="None when the product was deleted")

    model_config = ConfigDict(from_attributes=True)

    def matches(self, product_id: int, variant: Optional[Dict[str, str]]) -> bool:
        """Same product and same variant selection means the same cart line"""
        return self.product_id == product_id and (self.variant or {}) == (variant or {})

    @property
    def line_total(self) -> Decimal:
        if not self.product:
            return Decimal("0")
        return self.product.price * self.quantity

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product_id": self.product_id,
            "product": self.product.to_dict() if self.product else None,
            "quantity": self.quantity,
            "variant": self.variant,
            "added_at": self.added_at,
        }


class Cart(BaseModel):
    id: int
    user_id: int
    items: List[CartItem] = Field(default_factory=list)
    coupon_id: Optional[int] = None
    coupon_code: Optional[str] = None
    last_updated: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    @property
    def total_items(self) -> int:
        return sum(item.quantity for item in self.items)

    @property
    def subtotal(self) -> Decimal:
        return sum((item.line_total for item in self.items), Decimal("0"))

    @property
    def is_empty(self) -> bool:
        return not self.items

    def find_item(self, product_id: int, variant: Optional[Dict[str, str]] = None) -> Optional[CartItem]:
        for item in self.items:
            if item.matches(product_id, variant):
                return item
        return None

    def get_item(self, item_id: int) -> Optional[CartItem]:
        for item in self.items:
            if item.id == item_id:
                return item
        return None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "items": [item.to_dict() for item in self.items],
            "coupon": {"id": self.coupon_id, "code": self.coupon_code} if self.coupon_id else None,
            "total_items": self.total_items,
            "subtotal": float(self.subtotal),
            "last_updated": self.last_updated,
        }


class WishlistItem(BaseModel):
    id: int
    product_id: int
    added_at: Optional[datetime] = None
    product: Optional[ProductSnapshot] = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product_id": self.product_id,
            "product": self.product.to_dict() if self.product else None,
            "added_at": self.added_at,
        }


class Wishlist(BaseModel):
    id: int
    user_id: int
    items: List[WishlistItem] = Field(default_factory=list)

    def contains(self, product_id: int) -> bool:
        return any(item.product_id == product_id for item in self.items)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "items": [item.to_dict() for item in self.items],
        }
