"""
Catalog Domain Models

Categories and the slug rules shared by categories and products.

Author: Water Junction
Date: 2025-06-02
"""
import re
from pydantic import BaseModel, Field, ConfigDict
from typing import Optional
from datetime import datetime


_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def slugify(name: str) -> str:
    """
    Lowercase, collapse every run of non [a-z0-9] characters into a single
    dash and strip leading/trailing dashes.

    "Aqua Pure RO+UV (12L)" -> "aqua-pure-ro-uv-12l"
    """
    return _NON_ALNUM.sub("-", (name or "").lower()).strip("-")


def unique_slug(base_slug: str, exists) -> str:
    """
    Return base_slug, or base_slug-1, base_slug-2, ... whichever is free.

    Args:
        base_slug: Slug generated from the name
        exists: Callable returning True when a slug is already taken
    """
    slug = base_slug
    counter = 1
    while exists(slug):
        slug = f"{base_slug}-{counter}"
        counter += 1
    return slug


class Category(BaseModel):
    """Product category, optionally nested under a parent category"""

    id: int = Field(..., description="Category ID")
    name: str = Field(..., description="Unique category name")
    slug: str = Field(..., description="URL slug")
    description: Optional[str] = None
    image: Optional[str] = Field(None, description="Image URL")
    is_active: bool = True
    parent_category_id: Optional[int] = None
    display_order: int = Field(0, description="Sort position in menus")
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    def to_dict(self) -> dict:
        data = self.model_dump()
        data["order"] = data.pop("display_order")
        return data
