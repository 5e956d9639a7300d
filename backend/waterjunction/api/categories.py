"""
Categories API Endpoints
Public category listing (cached) and admin category management

Author: Water Junction
Date: 2025-06-02
"""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, ConfigDict, Field

from waterjunction.core.auth import get_current_user_optional, require_admin
from waterjunction.core.cache import categories_cache
from waterjunction.domain.catalog import slugify, unique_slug
from waterjunction.domain.user import User
from waterjunction.repositories.category_repository import CategoryRepository


router = APIRouter()


class CategoryCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    image: Optional[str] = None
    is_active: bool = Field(True, alias="isActive")
    parent_category_id: Optional[int] = Field(None, alias="parentCategory")
    display_order: int = Field(0, alias="order")


class CategoryUpdate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None
    image: Optional[str] = None
    is_active: Optional[bool] = Field(None, alias="isActive")
    parent_category_id: Optional[int] = Field(None, alias="parentCategory")
    display_order: Optional[int] = Field(None, alias="order")


@router.get("/")
async def get_categories(user: Optional[User] = Depends(get_current_user_optional)):
    """
    Active categories for the storefront

    Admins get every category, read straight from the database.
    """
    try:
        if user and user.is_admin:
            categories = CategoryRepository().find_all(active_only=False)
            return {"success": True, "categories": [c.to_dict() for c in categories]}

        cached = categories_cache.get()
        if cached is None:
            cached = [c.to_dict() for c in CategoryRepository().find_all(active_only=True)]
            categories_cache.set(cached)

        return {"success": True, "categories": cached}

    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching categories: {str(e)}")


@router.get("/{category_id}")
async def get_category(category_id: int):
    try:
        category = CategoryRepository().find_by_id(category_id)
        if not category:
            raise HTTPException(status_code=404, detail="Category not found")
        return {"success": True, "category": category.to_dict()}

    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching category: {str(e)}")


@router.post("/", status_code=status.HTTP_201_CREATED)
async def create_category(request: CategoryCreate, admin: User = Depends(require_admin)):
    try:
        repo = CategoryRepository()
        name = request.name.strip()
        if repo.find_by_name(name):
            raise HTTPException(status_code=400, detail="Category already exists")

        fields = request.model_dump()
        fields['name'] = name
        base_slug = slugify(name)
        if not base_slug:
            raise HTTPException(status_code=400, detail="Category name must contain letters or digits")
        fields['slug'] = unique_slug(base_slug, repo.slug_exists)

        category = repo.create(fields)
        categories_cache.clear()
        return {"success": True, "category": category.to_dict()}

    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error creating category: {str(e)}")


@router.put("/{category_id}")
async def update_category(category_id: int, request: CategoryUpdate, admin: User = Depends(require_admin)):
    try:
        repo = CategoryRepository()
        fields = request.model_dump(exclude_none=True)
        if 'name' in fields:
            fields['name'] = fields['name'].strip()
            existing = repo.find_by_name(fields['name'])
            if existing and existing.id != category_id:
                raise HTTPException(status_code=400, detail="Category already exists")
            base_slug = slugify(fields['name'])
            if not base_slug:
                raise HTTPException(status_code=400, detail="Category name must contain letters or digits")
            fields['slug'] = unique_slug(
                base_slug, lambda slug: repo.slug_exists(slug, exclude_id=category_id)
            )

        category = repo.update(category_id, fields)
        if not category:
            raise HTTPException(status_code=404, detail="Category not found")

        categories_cache.clear()
        return {"success": True, "category": category.to_dict()}

    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error updating category: {str(e)}")


@router.delete("/{category_id}")
async def delete_category(category_id: int, admin: User = Depends(require_admin)):
    try:
        if not CategoryRepository().delete(category_id):
            raise HTTPException(status_code=404, detail="Category not found")

        categories_cache.clear()
        return {"success": True, "message": "Category deleted successfully"}

    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error deleting category: {str(e)}")
