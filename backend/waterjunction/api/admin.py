"""
Admin API Endpoints
Dashboard stats, customer management and product CSV export/import

All endpoints require an admin token.

Author: Water Junction
Date: 2025-06-23
"""
import math
from typing import Optional

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile
from fastapi.responses import Response

from waterjunction.core.auth import require_admin
from waterjunction.core.exceptions import ServiceError
from waterjunction.domain.user import User
from waterjunction.repositories.user_repository import UserRepository
from waterjunction.services.product_service import ProductService
from waterjunction.services.stats_service import StatsService


router = APIRouter(dependencies=[Depends(require_admin)])


@router.get("/stats")
async def get_stats():
    """
    Dashboard figures

    Returns:
    - Entity counts
    - Revenue (total, this month, today) from paid orders
    - Orders per status
    - Top 10 products by sales and the 10 latest orders
    - 12-month revenue and order charts
    """
    try:
        return {"success": True, "stats": StatsService().get_dashboard()}

    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching stats: {str(e)}")


@router.get("/users")
async def get_users(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    search: Optional[str] = Query(None, description="Match name, email or phone")
):
    try:
        users, total = UserRepository().find_all(search=search, limit=limit, offset=(page - 1) * limit)
        return {
            "success": True,
            "users": [user.to_dict() for user in users],
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
        raise HTTPException(status_code=500, detail=f"Error fetching users: {str(e)}")


@router.put("/users/{user_id}/block")
async def toggle_user_block(user_id: int, admin: User = Depends(require_admin)):
    """Block or unblock a customer"""
    try:
        if user_id == admin.id:
            raise HTTPException(status_code=400, detail="You cannot block your own account")

        repo = UserRepository()
        user = repo.find_by_id(user_id)
        if not user:
            raise HTTPException(status_code=404, detail="User not found")

        updated = repo.update(user_id, {'is_blocked': not user.is_blocked})
        state = "blocked" if updated.is_blocked else "unblocked"
        return {"success": True, "message": f"User {state} successfully", "user": updated.to_dict()}

    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error updating user: {str(e)}")


@router.get("/products/export")
async def export_products():
    try:
        content = ProductService().export_csv()
        return Response(
            content=content,
            media_type="text/csv",
            headers={"Content-Disposition": "attachment; filename=products.csv"}
        )

    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error exporting products: {str(e)}")


@router.post("/products/import")
async def import_products(file: UploadFile = File(...)):
    """
    Create products from a CSV in the export format

    Category is matched by name; rows that fail are listed in `errors`.
    """
    try:
        if not (file.filename or "").lower().endswith(".csv"):
            raise HTTPException(status_code=400, detail="File must be a CSV (.csv)")

        contents = await file.read()
        try:
            text = contents.decode("utf-8-sig")
        except UnicodeDecodeError:
            raise HTTPException(status_code=400, detail="CSV must be UTF-8 encoded")

        created, errors = ProductService().import_csv(text)
        return {
            "success": True,
            "message": f"Imported {created} products",
            "created": created,
            "errors": errors,
        }

    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error importing products: {str(e)}")
