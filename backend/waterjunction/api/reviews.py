"""
Reviews API Endpoints
Product reviews from verified buyers, moderated by admins

Author: Water Junction
Date: 2025-06-16
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, ConfigDict, Field

from waterjunction.core.auth import get_current_user, require_admin
from waterjunction.core.exceptions import ServiceError
from waterjunction.domain.user import User
from waterjunction.repositories.review_repository import ReviewRepository
from waterjunction.services.review_service import ReviewService


router = APIRouter()


class ReviewCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    product_id: int = Field(..., alias="productId")
    order_id: int = Field(..., alias="orderId")
    rating: int = Field(..., ge=1, le=5)
    title: Optional[str] = Field(None, max_length=200)
    comment: Optional[str] = Field(None, max_length=2000)
    images: List[str] = Field(default_factory=list)


@router.get("/product/{product_id}")
async def get_product_reviews(product_id: int):
    """Approved reviews, newest first"""
    try:
        reviews = ReviewRepository().find_approved_by_product(product_id)
        return {"success": True, "reviews": [review.to_dict() for review in reviews]}

    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching reviews: {str(e)}")


@router.get("/admin/pending")
async def get_pending_reviews(admin: User = Depends(require_admin)):
    try:
        reviews = ReviewRepository().find_pending()
        return {"success": True, "reviews": [review.to_dict() for review in reviews]}

    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching pending reviews: {str(e)}")


@router.post("/", status_code=status.HTTP_201_CREATED)
async def create_review(request: ReviewCreate, user: User = Depends(get_current_user)):
    try:
        review = ReviewService().create(
            user_id=user.id,
            product_id=request.product_id,
            order_id=request.order_id,
            rating=request.rating,
            title=request.title,
            comment=request.comment,
            images=request.images,
        )
        return {
            "success": True,
            "message": "Review submitted and awaiting approval",
            "review": review.to_dict(),
        }

    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error creating review: {str(e)}")


@router.put("/{review_id}/approve")
async def approve_review(review_id: int, admin: User = Depends(require_admin)):
    try:
        review = ReviewService().approve(review_id)
        return {"success": True, "review": review.to_dict()}

    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error approving review: {str(e)}")


@router.put("/{review_id}/reject")
async def reject_review(review_id: int, admin: User = Depends(require_admin)):
    try:
        ReviewService().reject(review_id)
        return {"success": True, "message": "Review rejected and removed"}

    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error rejecting review: {str(e)}")


@router.post("/{review_id}/report")
async def report_review(review_id: int, user: User = Depends(get_current_user)):
    try:
        added = ReviewService().report(review_id, user.id)
        message = "Review reported" if added else "You have already reported this review"
        return {"success": True, "message": message}

    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error reporting review: {str(e)}")


@router.post("/{review_id}/helpful")
async def mark_review_helpful(review_id: int, user: User = Depends(get_current_user)):
    try:
        review = ReviewService().mark_helpful(review_id, user.id)
        return {"success": True, "helpfulCount": review.helpful_count}

    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error marking review helpful: {str(e)}")
