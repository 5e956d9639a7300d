"""
Flash Sale Domain Model
"""
from pydantic import BaseModel, Field, ConfigDict
from typing import Optional, List
from datetime import datetime, timezone
from decimal import Decimal


class FlashSaleProduct(BaseModel):
    product_id: int
    product_name: Optional[str] = None
    sale_price: Decimal = Field(..., ge=0)
    stock: int = Field(0, ge=0)
    sold: int = Field(0, ge=0)

    def to_dict(self) -> dict:
        data = self.model_dump()
        data["sale_price"] = float(self.sale_price)
        return data


class FlashSale(BaseModel):
    """Time-boxed sale prices on a set of products"""

    id: int
    name: str
    description: Optional[str] = None
    products: List[FlashSaleProduct] = Field(default_factory=list)
    start_time: datetime
    end_time: datetime
    is_active: bool = True
    banner_image: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    def is_currently_active(self, now: Optional[datetime] = None) -> bool:
        now = now or datetime.now(timezone.utc)
        start = self.start_time if self.start_time.tzinfo else self.start_time.replace(tzinfo=timezone.utc)
        end = self.end_time if self.end_time.tzinfo else self.end_time.replace(tzinfo=timezone.utc)
        return self.is_active and start <= now <= end

    def to_dict(self) -> dict:
        data = self.model_dump(exclude={"products"})
        data["products"] = [product.to_dict() for product in self.products]
        data["is_currently_active"] = self.is_currently_active()
        return data
