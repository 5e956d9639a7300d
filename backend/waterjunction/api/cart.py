"""
Cart API Endpoints
Per-user cart, coupons and guest cart merge after sign-in

Author: Water Junction
Date: 2025-06-09
"""
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict, Field

from waterjunction.core.auth import get_current_user
from waterjunction.core.exceptions import ServiceError
from waterjunction.domain.user import User
from waterjunction.services.cart_service import CartService


router = APIRouter()


class CartItemAdd(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    product_id: int = Field(..., alias="productId")
    quantity: int = Field(1, ge=1)
    variant: Optional[Dict[str, str]] = None


class CartItemUpdate(BaseModel):
    quantity: int = Field(..., ge=1)


class CouponApply(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    coupon_code: str = Field(..., alias="couponCode", min_length=1)


class GuestCartMerge(BaseModel):
    items: List[CartItemAdd] = Field(default_factory=list)


@router.get("/")
async def get_cart(user: User = Depends(get_current_user)):
    try:
        cart = CartService().get_cart(user.id)
        return {"success": True, "cart": cart.to_dict()}

    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching cart: {str(e)}")


@router.post("/")
async def add_to_cart(request: CartItemAdd, user: User = Depends(get_current_user)):
    try:
        cart = CartService().add_item(user.id, request.product_id, request.quantity, request.variant)
        return {"success": True, "cart": cart.to_dict()}

    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error adding to cart: {str(e)}")


@router.post("/merge")
async def merge_guest_cart(request: GuestCartMerge, user: User = Depends(get_current_user)):
    """
    Merge the client-held guest cart into the user's cart

    Items are added one by one; an item that cannot be added is reported
    in `skipped` and the rest are still merged.
    """
    try:
        cart, merged, skipped = CartService().merge_guest_cart(
            user.id,
            [item.model_dump() for item in request.items]
        )
        return {
            "success": True,
            "cart": cart.to_dict(),
            "merged": merged,
            "skipped": skipped,
        }

    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error merging cart: {str(e)}")


@router.post("/apply-coupon")
async def apply_coupon(request: CouponApply, user: User = Depends(get_current_user)):
    try:
        cart, coupon, discount = CartService().apply_coupon(user.id, request.coupon_code)
        return {
            "success": True,
            "cart": cart.to_dict(),
            "coupon": coupon.to_dict(),
            "discount": float(discount),
        }

    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error applying coupon: {str(e)}")


@router.delete("/remove-coupon")
async def remove_coupon(user: User = Depends(get_current_user)):
    try:
        cart = CartService().remove_coupon(user.id)
        return {"success": True, "cart": cart.to_dict()}

    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error removing coupon: {str(e)}")


@router.put("/{item_id}")
async def update_cart_item(item_id: int, request: CartItemUpdate, user: User = Depends(get_current_user)):
    try:
        cart = CartService().update_item(user.id, item_id, request.quantity)
        return {"success": True, "cart": cart.to_dict()}

    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error updating cart: {str(e)}")


@router.delete("/{item_id}")
async def remove_cart_item(item_id: int, user: User = Depends(get_current_user)):
    try:
        cart = CartService().remove_item(user.id, item_id)
        return {"success": True, "cart": cart.to_dict()}

    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error removing item: {str(e)}")


@router.delete("/")
async def clear_cart(user: User = Depends(get_current_user)):
    try:
        cart = CartService().clear(user.id)
        return {"success": True, "cart": cart.to_dict()}

    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error clearing cart: {str(e)}")
