"""
Users API Endpoints
Profile, saved addresses and password change for the signed-in user

Author: Water Junction
Date: 2025-06-02
"""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict, Field

from waterjunction.core.auth import get_current_user
from waterjunction.core.exceptions import ServiceError
from waterjunction.domain.user import User
from waterjunction.repositories.user_repository import UserRepository
from waterjunction.services.auth_service import AuthService


router = APIRouter()


class ProfileUpdate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: Optional[str] = Field(None, min_length=1, max_length=100)
    profile_photo: Optional[str] = Field(None, alias="profilePhoto", description="Photo URL")


class AddressCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str
    phone: str
    address_line1: str = Field(..., alias="addressLine1")
    address_line2: Optional[str] = Field(None, alias="addressLine2")
    city: str
    state: str
    pincode: str
    country: str = "India"
    is_default: bool = Field(False, alias="isDefault")


class AddressUpdate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: Optional[str] = None
    phone: Optional[str] = None
    address_line1: Optional[str] = Field(None, alias="addressLine1")
    address_line2: Optional[str] = Field(None, alias="addressLine2")
    city: Optional[str] = None
    state: Optional[str] = None
    pincode: Optional[str] = None
    country: Optional[str] = None
    is_default: Optional[bool] = Field(None, alias="isDefault")


class PasswordChange(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    current_password: str = Field(..., alias="currentPassword")
    new_password: str = Field(..., alias="newPassword", min_length=6)


def _addresses_response(repo: UserRepository, user_id: int) -> dict:
    return {
        "success": True,
        "addresses": [address.to_dict() for address in repo.list_addresses(user_id)],
    }


@router.get("/profile")
async def get_profile(user: User = Depends(get_current_user)):
    try:
        full_user = UserRepository().find_with_addresses(user.id) or user
        return {"success": True, "user": full_user.to_dict()}

    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching profile: {str(e)}")


@router.put("/profile")
async def update_profile(request: ProfileUpdate, user: User = Depends(get_current_user)):
    try:
        repo = UserRepository()
        updates = request.model_dump(exclude_none=True)
        if 'name' in updates:
            updates['name'] = updates['name'].strip()

        updated = repo.update(user.id, updates) if updates else user
        return {"success": True, "user": updated.to_public_dict()}

    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error updating profile: {str(e)}")


@router.post("/address")
async def add_address(request: AddressCreate, user: User = Depends(get_current_user)):
    """Add a saved address; the first one (or isDefault) becomes the only default"""
    try:
        repo = UserRepository()
        repo.add_address(user.id, request.model_dump())
        return _addresses_response(repo, user.id)

    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error adding address: {str(e)}")


@router.put("/address/{address_id}")
async def update_address(address_id: int, request: AddressUpdate, user: User = Depends(get_current_user)):
    try:
        repo = UserRepository()
        address = repo.update_address(user.id, address_id, request.model_dump(exclude_none=True))
        if not address:
            raise HTTPException(status_code=404, detail="Address not found")
        return _addresses_response(repo, user.id)

    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error updating address: {str(e)}")


@router.delete("/address/{address_id}")
async def delete_address(address_id: int, user: User = Depends(get_current_user)):
    try:
        repo = UserRepository()
        if not repo.delete_address(user.id, address_id):
            raise HTTPException(status_code=404, detail="Address not found")
        return _addresses_response(repo, user.id)

    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error deleting address: {str(e)}")


@router.put("/password")
async def change_password(request: PasswordChange, user: User = Depends(get_current_user)):
    try:
        AuthService().change_password(user, request.current_password, request.new_password)
        return {"success": True, "message": "Password updated successfully"}

    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error changing password: {str(e)}")
