"""
Wishlist API Endpoints

Author: Water Junction
Date: 2025-06-09
"""
from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict, Field

from waterjunction.core.auth import get_current_user
from waterjunction.domain.user import User
from waterjunction.repositories.product_repository import ProductRepository
from waterjunction.repositories.wishlist_repository import WishlistRepository


router = APIRouter()


class WishlistAdd(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    product_id: int = Field(..., alias="productId")


@router.get("/")
async def get_wishlist(user: User = Depends(get_current_user)):
    try:
        wishlist = WishlistRepository().get_or_create(user.id)
        return {"success": True, "wishlist": wishlist.to_dict()}

    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching wishlist: {str(e)}")


@router.post("/")
async def add_to_wishlist(request: WishlistAdd, user: User = Depends(get_current_user)):
    try:
        product = ProductRepository().find_by_id(request.product_id)
        if not product or not product.is_active:
            raise HTTPException(status_code=404, detail="Product not found")

        repo = WishlistRepository()
        wishlist = repo.get_or_create(user.id)
        if wishlist.contains(request.product_id):
            raise HTTPException(status_code=400, detail="Product already in wishlist")

        repo.add_item(wishlist.id, request.product_id)
        return {"success": True, "wishlist": repo.find_by_user(user.id).to_dict()}

    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error adding to wishlist: {str(e)}")


@router.delete("/{item_id}")
async def remove_from_wishlist(item_id: int, user: User = Depends(get_current_user)):
    try:
        repo = WishlistRepository()
        wishlist = repo.find_by_user(user.id)
        if not wishlist:
            raise HTTPException(status_code=404, detail="Wishlist not found")

        if not repo.remove_item(wishlist.id, item_id):
            raise HTTPException(status_code=404, detail="Item not found in wishlist")

        return {"success": True, "wishlist": repo.find_by_user(user.id).to_dict()}

    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error removing from wishlist: {str(e)}")
