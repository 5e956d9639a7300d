"""
Product Domain Model

Represents a product in the Water Junction catalog (water purifiers,
filters, spares). This is the single source of truth for product data
structure.

Author: Water Junction
Date: 2025-06-02
"""
from pydantic import BaseModel, Field, ConfigDict
from typing import Optional, List, Dict, Any
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP


SPECIFICATION_SECTIONS = ("performanceFeatures", "warranty", "general", "dimensions")


def calculate_discount_percent(price: Optional[Decimal], mrp: Optional[Decimal]) -> int:
    """Whole-number percentage saved against MRP, 0 when either price is unset"""
    if not price or not mrp:
        return 0
    percent = (Decimal(mrp) - Decimal(price)) / Decimal(mrp) * 100
    return int(percent.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def normalize_specifications(raw: Optional[Dict[str, Any]]) -> Dict[str, Dict[str, str]]:
    """
    Keep only the known sections, each as a string->string map.

    Keys are trimmed and blank keys dropped; values are stringified.
    Sections that end up empty are omitted.
    """
    specs: Dict[str, Dict[str, str]] = {}
    if not isinstance(raw, dict):
        return specs

    for section in SPECIFICATION_SECTIONS:
        section_data = raw.get(section)
        if not isinstance(section_data, dict):
            continue

        cleaned = {}
        for key, value in section_data.items():
            clean_key = str(key).strip()
            if clean_key:
                cleaned[clean_key] = "" if value is None else str(value)

        if cleaned:
            specs[section] = cleaned

    return specs


class ProductVariant(BaseModel):
    name: str
    value: str
    price: Optional[Decimal] = None
    stock: Optional[int] = None
    image: Optional[str] = None


class ProductQuestion(BaseModel):
    """Customer question on a product page, answered by an admin"""

    id: int
    product_id: int
    question: str
    answer: Optional[str] = None
    asked_by: Optional[int] = None
    answered_by: Optional[int] = None
    answered_at: Optional[datetime] = None
    is_approved: bool = False
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class Product(BaseModel):
    """
    Product domain model

    Fields:
        slug: Unique URL slug generated from the name
        images: Image URLs, first one is the listing thumbnail
        price: Selling price (INR)
        mrp: Maximum retail price (INR), used for discount_percent
        stock: Units available, never negative
        ratings_average / ratings_count: Aggregated from approved reviews
        specifications: Section -> {label: value}
        views / sales: Counters maintained by product views and paid orders
    """

    id: int = Field(..., description="Product ID")
    name: str = Field(..., description="Product name")
    slug: str = Field(..., description="URL slug")
    category_id: Optional[int] = Field(None, description="Category ID")
    category_name: Optional[str] = Field(None, description="Category name (joined)")
    category_slug: Optional[str] = Field(None, description="Category slug (joined)")
    description: Optional[str] = None

    images: List[str] = Field(default_factory=list)
    video: Optional[str] = None

    price: Decimal = Field(..., description="Selling price", ge=0)
    mrp: Optional[Decimal] = Field(None, description="Maximum retail price", ge=0)
    discount_percent: int = Field(0, description="Derived from price and mrp")
    stock: int = Field(0, description="Units in stock", ge=0)

    ratings_average: Decimal = Field(Decimal("0"), ge=0, le=5)
    ratings_count: int = Field(0, ge=0)

    specifications: Dict[str, Dict[str, str]] = Field(default_factory=dict)
    variants: List[ProductVariant] = Field(default_factory=list)
    questions: List[ProductQuestion] = Field(default_factory=list)
    related_product_ids: List[int] = Field(default_factory=list)

    is_active: bool = True
    is_featured: bool = False
    views: int = 0
    sales: int = 0

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
    def thumbnail(self) -> Optional[str]:
        return self.images[0] if self.images else None

    @property
    def is_in_stock(self) -> bool:
        return self.stock > 0

    def has_stock_for(self, quantity: int) -> bool:
        return self.stock >= quantity

    def to_dict(self) -> dict:
        """
        Convert to dictionary with computed fields

        Decimal values become floats for JSON compatibility.
        """
        data = self.model_dump()

        data['is_in_stock'] = self.is_in_stock
        data['price'] = float(self.price)
        data['mrp'] = float(self.mrp) if self.mrp is not None else None
        data['ratings'] = {
            'average': float(self.ratings_average),
            'count': self.ratings_count,
        }
        data.pop('ratings_average')
        data.pop('ratings_count')
        for variant in data['variants']:
            if variant.get('price') is not None:
                variant['price'] = float(variant['price'])

        return data

    def to_summary_dict(self) -> dict:
        """Listing shape: only the first image and no heavy fields"""
        return {
            'id': self.id,
            'name': self.name,
            'slug': self.slug,
            'images': [self.thumbnail] if self.thumbnail else [],
            'price': float(self.price),
            'mrp': float(self.mrp) if self.mrp is not None else None,
            'discount_percent': self.discount_percent,
            'stock': self.stock,
            'ratings': {
                'average': float(self.ratings_average),
                'count': self.ratings_count,
            },
            'category': {
                'id': self.category_id,
                'name': self.category_name,
                'slug': self.category_slug,
            } if self.category_id else None,
            'is_featured': self.is_featured,
            'created_at': self.created_at,
        }
