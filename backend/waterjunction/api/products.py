"""
Products API Endpoints
Storefront catalog queries, admin product management and product Q&A

Author: Water Junction
Date: 2025-06-02
"""
import math
from decimal import Decimal
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, ConfigDict, Field

from waterjunction.core.auth import get_current_user, require_admin
from waterjunction.core.exceptions import ServiceError
from waterjunction.domain.user import User
from waterjunction.repositories.product_repository import ProductRepository, SORT_OPTIONS, DEFAULT_SORT
from waterjunction.services.product_service import ProductService


router = APIRouter()


# Request models
class VariantInput(BaseModel):
    name: str
    value: str
    price: Optional[Decimal] = Field(None, ge=0)
    stock: Optional[int] = Field(None, ge=0)
    image: Optional[str] = None


class ProductCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(..., min_length=1, max_length=200)
    slug: Optional[str] = None
    category_id: Optional[int] = Field(None, alias="category")
    description: Optional[str] = None
    images: List[str] = Field(default_factory=list)
    video: Optional[str] = None
    price: Decimal = Field(..., ge=0)
    mrp: Optional[Decimal] = Field(None, ge=0)
    stock: int = Field(0, ge=0)
    specifications: Dict[str, Any] = Field(default_factory=dict)
    variants: List[VariantInput] = Field(default_factory=list)
    related_product_ids: List[int] = Field(default_factory=list, alias="relatedProducts")
    is_active: bool = Field(True, alias="isActive")
    is_featured: bool = Field(False, alias="isFeatured")


class ProductUpdate(BaseModel):
    """Partial update; ratings, views and sales are not writable here"""
    model_config = ConfigDict(populate_by_name=True)

    name: Optional[str] = Field(None, min_length=1, max_length=200)
    slug: Optional[str] = None
    category_id: Optional[int] = Field(None, alias="category")
    description: Optional[str] = None
    images: Optional[List[str]] = None
    video: Optional[str] = None
    price: Optional[Decimal] = Field(None, ge=0)
    mrp: Optional[Decimal] = Field(None, ge=0)
    stock: Optional[int] = Field(None, ge=0)
    specifications: Optional[Dict[str, Any]] = None
    variants: Optional[List[VariantInput]] = None
    related_product_ids: Optional[List[int]] = Field(None, alias="relatedProducts")
    is_active: Optional[bool] = Field(None, alias="isActive")
    is_featured: Optional[bool] = Field(None, alias="isFeatured")


class QuestionCreate(BaseModel):
    question: str = Field(..., min_length=1, max_length=1000)


class AnswerCreate(BaseModel):
    answer: str = Field(..., min_length=1, max_length=2000)


def _json_ready(fields: Dict[str, Any]) -> Dict[str, Any]:
    """Variant prices go into JSONB, so they must be plain floats"""
    if fields.get('variants'):
        for variant in fields['variants']:
            if variant.get('price') is not None:
                variant['price'] = float(variant['price'])
    return fields


@router.get("/")
async def get_products(
    page: int = Query(1, ge=1),
    limit: int = Query(12, ge=1, le=100),
    category: Optional[str] = Query(None, description="Category ID or slug"),
    min_price: Optional[float] = Query(None, alias="minPrice", ge=0),
    max_price: Optional[float] = Query(None, alias="maxPrice", ge=0),
    search: Optional[str] = Query(None, description="Search name and description"),
    sort: str = Query(DEFAULT_SORT, description=f"One of {', '.join(SORT_OPTIONS)}")
):
    """
    Active products with filters and pagination

    List items carry only their first image.
    """
    try:
        products, total = ProductRepository().find_all(
            category=category,
            min_price=min_price,
            max_price=max_price,
            search=search,
            sort=sort,
            active_only=True,
            limit=limit,
            offset=(page - 1) * limit
        )

        return {
            "success": True,
            "products": [product.to_summary_dict() for product in products],
            "pagination": {
                "page": page,
                "limit": limit,
                "total": total,
                "pages": math.ceil(total / limit) if total else 0,
            }
        }

    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching products: {str(e)}")


@router.get("/slug/{slug}")
async def get_product_by_slug(slug: str):
    try:
        product = ProductService().get_public(slug=slug)
        return {"success": True, "product": product.to_dict()}

    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching product: {str(e)}")


@router.get("/{product_id}")
async def get_product(product_id: int):
    try:
        product = ProductService().get_public(product_id=product_id)
        return {"success": True, "product": product.to_dict()}

    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching product: {str(e)}")


@router.post("/", status_code=status.HTTP_201_CREATED)
async def create_product(request: ProductCreate, admin: User = Depends(require_admin)):
    try:
        product = ProductService().create(_json_ready(request.model_dump()))
        return {"success": True, "product": product.to_dict()}

    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error creating product: {str(e)}")


@router.put("/{product_id}")
async def update_product(product_id: int, request: ProductUpdate, admin: User = Depends(require_admin)):
    try:
        product = ProductService().update(product_id, _json_ready(request.model_dump(exclude_none=True)))
        return {"success": True, "product": product.to_dict()}

    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error updating product: {str(e)}")


@router.delete("/{product_id}")
async def delete_product(product_id: int, admin: User = Depends(require_admin)):
    try:
        ProductService().delete(product_id)
        return {"success": True, "message": "Product deleted successfully"}

    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error deleting product: {str(e)}")


@router.post("/{product_id}/questions", status_code=status.HTTP_201_CREATED)
async def ask_question(product_id: int, request: QuestionCreate, user: User = Depends(get_current_user)):
    try:
        repo = ProductRepository()
        if not repo.find_by_id(product_id):
            raise HTTPException(status_code=404, detail="Product not found")

        question = repo.add_question(product_id, request.question.strip(), user.id)
        return {"success": True, "question": question.model_dump()}

    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error adding question: {str(e)}")


@router.put("/{product_id}/questions/{question_id}")
async def answer_question(
    product_id: int,
    question_id: int,
    request: AnswerCreate,
    admin: User = Depends(require_admin)
):
    try:
        question = ProductRepository().answer_question(
            product_id, question_id, request.answer.strip(), admin.id
        )
        if not question:
            raise HTTPException(status_code=404, detail="Question not found")
        return {"success": True, "question": question.model_dump()}

    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error answering question: {str(e)}")
