"""
Coupons API Endpoints

Author: Water Junction
Date: 2025-06-09
"""
from datetime import datetime
from decimal import Decimal
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, ConfigDict, Field, model_validator

from waterjunction.core.auth import get_current_user, require_admin
from waterjunction.domain.user import User
from waterjunction.repositories.coupon_repository import CouponRepository


router = APIRouter()


class CouponCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    code: str = Field(..., min_length=1, max_length=50)
    description: Optional[str] = None
    discount_type: Literal["percentage", "fixed"] = Field(..., alias="type")
    value: Decimal = Field(..., ge=0)
    min_order_value: Decimal = Field(Decimal("0"), alias="minOrderValue", ge=0)
    max_discount: Optional[Decimal] = Field(None, alias="maxDiscount", ge=0)
    valid_from: datetime = Field(..., alias="validFrom")
    valid_until: datetime = Field(..., alias="validUntil")
    usage_limit: Optional[int] = Field(None, alias="usageLimit", ge=0)
    user_limit: int = Field(1, alias="userLimit", ge=1)
    applicable_category_ids: List[int] = Field(default_factory=list, alias="applicableCategories")
    applicable_product_ids: List[int] = Field(default_factory=list, alias="applicableProducts")
    is_active: bool = Field(True, alias="isActive")

    @model_validator(mode="after")
    def _check_window(self):
        if self.valid_until < self.valid_from:
            raise ValueError("validUntil must be after validFrom")
        return self


class CouponUpdate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    code: Optional[str] = Field(None, min_length=1, max_length=50)
    description: Optional[str] = None
    discount_type: Optional[Literal["percentage", "fixed"]] = Field(None, alias="type")
    value: Optional[Decimal] = Field(None, ge=0)
    min_order_value: Optional[Decimal] = Field(None, alias="minOrderValue", ge=0)
    max_discount: Optional[Decimal] = Field(None, alias="maxDiscount", ge=0)
    valid_from: Optional[datetime] = Field(None, alias="validFrom")
    valid_until: Optional[datetime] = Field(None, alias="validUntil")
    usage_limit: Optional[int] = Field(None, alias="usageLimit", ge=0)
    user_limit: Optional[int] = Field(None, alias="userLimit", ge=1)
    applicable_category_ids: Optional[List[int]] = Field(None, alias="applicableCategories")
    applicable_product_ids: Optional[List[int]] = Field(None, alias="applicableProducts")
    is_active: Optional[bool] = Field(None, alias="isActive")


@router.get("/")
async def get_coupons():
    """Coupons that can be applied right now"""
    try:
        coupons = CouponRepository().find_all(currently_valid=True)
        return {"success": True, "coupons": [coupon.to_dict() for coupon in coupons]}

    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching coupons: {str(e)}")


@router.get("/{code}")
async def validate_coupon(code: str, user: User = Depends(get_current_user)):
    try:
        coupon = CouponRepository().find_by_code(code)
        if not coupon:
            raise HTTPException(status_code=404, detail="Coupon not found")
        if not coupon.is_valid():
            raise HTTPException(status_code=400, detail="Coupon is invalid or expired")

        return {"success": True, "coupon": coupon.to_dict()}

    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching coupon: {str(e)}")


@router.post("/", status_code=status.HTTP_201_CREATED)
async def create_coupon(request: CouponCreate, admin: User = Depends(require_admin)):
    try:
        repo = CouponRepository()
        if repo.find_by_code(request.code):
            raise HTTPException(status_code=400, detail="Coupon code already exists")

        coupon = repo.create(request.model_dump())
        return {"success": True, "coupon": coupon.to_dict()}

    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error creating coupon: {str(e)}")


@router.put("/{coupon_id}")
async def update_coupon(coupon_id: int, request: CouponUpdate, admin: User = Depends(require_admin)):
    try:
        coupon = CouponRepository().update(coupon_id, request.model_dump(exclude_none=True))
        if not coupon:
            raise HTTPException(status_code=404, detail="Coupon not found")
        return {"success": True, "coupon": coupon.to_dict()}

    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error updating coupon: {str(e)}")


@router.delete("/{coupon_id}")
async def delete_coupon(coupon_id: int, admin: User = Depends(require_admin)):
    try:
        if not CouponRepository().delete(coupon_id):
            raise HTTPException(status_code=404, detail="Coupon not found")
        return {"success": True, "message": "Coupon deleted successfully"}

    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error deleting coupon: {str(e)}")
