"""
Flash Sales API Endpoints

Author: Water Junction
Date: 2025-06-23
"""
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, ConfigDict, Field

from waterjunction.core.auth import require_admin
from waterjunction.domain.user import User
from waterjunction.repositories.flash_sale_repository import FlashSaleRepository


router = APIRouter()


class FlashSaleProductInput(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    product_id: int = Field(..., alias="product")
    sale_price: Decimal = Field(..., alias="salePrice", ge=0)
    stock: int = Field(0, ge=0)
    sold: int = Field(0, ge=0)


class FlashSaleCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    products: List[FlashSaleProductInput] = Field(default_factory=list)
    start_time: datetime = Field(..., alias="startTime")
    end_time: datetime = Field(..., alias="endTime")
    is_active: bool = Field(True, alias="isActive")
    banner_image: Optional[str] = Field(None, alias="bannerImage")


class FlashSaleUpdate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    products: Optional[List[FlashSaleProductInput]] = None
    start_time: Optional[datetime] = Field(None, alias="startTime")
    end_time: Optional[datetime] = Field(None, alias="endTime")
    is_active: Optional[bool] = Field(None, alias="isActive")
    banner_image: Optional[str] = Field(None, alias="bannerImage")


@router.get("/")
async def get_flash_sales():
    """Sales running right now"""
    try:
        sales = FlashSaleRepository().find_all(currently_active=True)
        return {"success": True, "flashSales": [sale.to_dict() for sale in sales]}

    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching flash sales: {str(e)}")


@router.get("/{sale_id}")
async def get_flash_sale(sale_id: int):
    try:
        sale = FlashSaleRepository().find_by_id(sale_id)
        if not sale:
            raise HTTPException(status_code=404, detail="Flash sale not found")
        return {"success": True, "flashSale": sale.to_dict()}

    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching flash sale: {str(e)}")


@router.post("/", status_code=status.HTTP_201_CREATED)
async def create_flash_sale(request: FlashSaleCreate, admin: User = Depends(require_admin)):
    try:
        if request.end_time <= request.start_time:
            raise HTTPException(status_code=400, detail="End time must be after start time")

        fields = request.model_dump(exclude={"products"})
        products = [product.model_dump() for product in request.products]
        sale = FlashSaleRepository().create(fields, products)
        return {"success": True, "flashSale": sale.to_dict()}

    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error creating flash sale: {str(e)}")


@router.put("/{sale_id}")
async def update_flash_sale(sale_id: int, request: FlashSaleUpdate, admin: User = Depends(require_admin)):
    try:
        fields = request.model_dump(exclude={"products"}, exclude_none=True)
        products = None
        if request.products is not None:
            products = [product.model_dump() for product in request.products]

        sale = FlashSaleRepository().update(sale_id, fields, products)
        if not sale:
            raise HTTPException(status_code=404, detail="Flash sale not found")
        return {"success": True, "flashSale": sale.to_dict()}

    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error updating flash sale: {str(e)}")


@router.delete("/{sale_id}")
async def delete_flash_sale(sale_id: int, admin: User = Depends(require_admin)):
    try:
        if not FlashSaleRepository().delete(sale_id):
            raise HTTPException(status_code=404, detail="Flash sale not found")
        return {"success": True, "message": "Flash sale deleted successfully"}

    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error deleting flash sale: {str(e)}")
