"""
User Domain Model

Customers and admins. A user signs up with email/password, phone OTP, or
a Google/Facebook identity; auth_provider records which one created it.

Author: Water Junction
Date: 2025-06-02
"""
from pydantic import BaseModel, Field, ConfigDict
from typing import Optional, List
from datetime import datetime


USER_ROLES = ("user", "admin")
AUTH_PROVIDERS = ("email", "phone", "google", "facebook")


class Address(BaseModel):
    """Saved shipping address"""

    id: int = Field(..., description="Address ID")
    user_id: int = Field(..., description="Owner user ID")
    name: str = Field(..., description="Recipient name")
    phone: str = Field(..., description="Recipient phone")
    address_line1: str = Field(..., description="Street address")
    address_line2: Optional[str] = Field(None, description="Apartment, landmark")
    city: str
    state: str
    pincode: str
    country: str = Field("India", description="Country")
    is_default: bool = Field(False, description="Default shipping address")

    model_config = ConfigDict(from_attributes=True)

    def to_dict(self) -> dict:
        return self.model_dump()


class User(BaseModel):
    """
    User domain model

    Secrets (password hash, OTP, reset token, refresh token) live on the
    model so services can check them, but to_dict() never exposes them.
    """

    id: int = Field(..., description="User ID")
    name: str = Field(..., description="Display name")
    email: Optional[str] = Field(None, description="Lowercased email")
    phone: Optional[str] = Field(None, description="Phone number")
    password_hash: Optional[str] = Field(None, description="bcrypt hash, None for OTP/social accounts")
    role: str = Field("user", description="user or admin")
    auth_provider: str = Field("email", description="email, phone, google or facebook")
    google_id: Optional[str] = None
    facebook_id: Optional[str] = None
    profile_photo: Optional[str] = Field(None, description="Profile photo URL")

    is_email_verified: bool = False
    is_phone_verified: bool = False
    is_blocked: bool = False

    otp: Optional[str] = None
    otp_expires_at: Optional[datetime] = None
    reset_password_token: Optional[str] = None
    reset_password_expires_at: Optional[datetime] = None
    refresh_token: Optional[str] = None

    addresses: List[Address] = Field(default_factory=list)

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    @property
    def has_password(self) -> bool:
        return bool(self.password_hash)

    def to_public_dict(self) -> dict:
        """Shape returned alongside tokens"""
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "role": self.role,
            "profilePhoto": self.profile_photo,
        }

    def to_dict(self) -> dict:
        """Profile view with addresses and flags, no secrets"""
        data = self.model_dump(exclude={
            "password_hash", "otp", "otp_expires_at",
            "reset_password_token", "reset_password_expires_at",
            "refresh_token", "addresses",
        })
        data["addresses"] = [address.to_dict() for address in self.addresses]
        return data
