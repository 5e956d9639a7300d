"""
Authentication API endpoints
- Email/password registration and login
- Phone OTP login
- Google / Facebook login (identity posted by the client after OAuth)
- Password reset, token refresh, logout

Author: Water Junction
Date: 2025-06-02
"""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, EmailStr, Field

from waterjunction.core.auth import TOKEN_COOKIE_NAME, get_current_user
from waterjunction.core.exceptions import ServiceError
from waterjunction.domain.user import User
from waterjunction.repositories.user_repository import UserRepository
from waterjunction.services.auth_service import AuthService


router = APIRouter()

# Lifetime of the httpOnly token cookie
COOKIE_MAX_AGE = 30 * 24 * 60 * 60


# =============================================================================
# Pydantic Models
# =============================================================================

class RegisterRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=6)
    phone: Optional[str] = None


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class SendOtpRequest(BaseModel):
    phone: str = Field(..., min_length=6)


class VerifyOtpRequest(BaseModel):
    phone: str
    otp: str


class GoogleLoginRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    google_id: str = Field(..., alias="googleId")
    email: Optional[EmailStr] = None
    name: str
    profile_photo: Optional[str] = Field(None, alias="profilePhoto")


class FacebookLoginRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    facebook_id: str = Field(..., alias="facebookId")
    email: Optional[EmailStr] = None
    name: str
    profile_photo: Optional[str] = Field(None, alias="profilePhoto")


class ForgotPasswordRequest(BaseModel):
    email: EmailStr


class ResetPasswordRequest(BaseModel):
    password: str = Field(..., min_length=6)


class RefreshTokenRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    refresh_token: Optional[str] = Field(None, alias="refreshToken")


# =============================================================================
# Helpers
# =============================================================================

def token_response(service: AuthService, user: User, status_code: int = status.HTTP_200_OK) -> JSONResponse:
    """Token payload plus the httpOnly cookie used by the browser client"""
    payload = service.issue_tokens(user)
    response = JSONResponse(content=payload, status_code=status_code)
    response.set_cookie(
        key=TOKEN_COOKIE_NAME,
        value=payload["token"],
        max_age=COOKIE_MAX_AGE,
        httponly=True,
        samesite="lax",
    )
    return response


# =============================================================================
# Endpoints
# =============================================================================

@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(request: RegisterRequest):
    """Register with email and password"""
    try:
        service = AuthService()
        user = service.register(request.name, request.email, request.password, request.phone)
        return token_response(service, user, status.HTTP_201_CREATED)

    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error registering user: {str(e)}")


@router.post("/login")
async def login(request: LoginRequest):
    try:
        service = AuthService()
        user = service.login(request.email, request.password)
        return token_response(service, user)

    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error logging in: {str(e)}")


@router.post("/phone/send-otp")
async def send_otp(request: SendOtpRequest):
    """Send a 6-digit login code by SMS, creating the account on first use"""
    try:
        await AuthService().send_otp(request.phone.strip())
        return {"success": True, "message": "OTP sent successfully"}

    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error sending OTP: {str(e)}")


@router.post("/phone/verify-otp")
async def verify_otp(request: VerifyOtpRequest):
    try:
        service = AuthService()
        user = service.verify_otp(request.phone.strip(), request.otp.strip())
        return token_response(service, user)

    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error verifying OTP: {str(e)}")


@router.post("/google")
async def google_login(request: GoogleLoginRequest):
    try:
        service = AuthService()
        user = service.social_login(
            "google", request.google_id, request.name, request.email, request.profile_photo
        )
        return token_response(service, user)

    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error with Google login: {str(e)}")


@router.post("/facebook")
async def facebook_login(request: FacebookLoginRequest):
    try:
        service = AuthService()
        user = service.social_login(
            "facebook", request.facebook_id, request.name, request.email, request.profile_photo
        )
        return token_response(service, user)

    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error with Facebook login: {str(e)}")


@router.post("/forgot-password")
async def forgot_password(request: ForgotPasswordRequest):
    try:
        await AuthService().forgot_password(request.email)
        return {"success": True, "message": "Password reset email sent"}

    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error requesting password reset: {str(e)}")


@router.put("/reset-password/{token}")
async def reset_password(token: str, request: ResetPasswordRequest):
    try:
        service = AuthService()
        user = service.reset_password(token, request.password)
        return token_response(service, user)

    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error resetting password: {str(e)}")


@router.get("/me")
async def get_me(user: User = Depends(get_current_user)):
    """Current user with saved addresses"""
    try:
        full_user = UserRepository().find_with_addresses(user.id) or user
        data = full_user.to_public_dict()
        data["addresses"] = [address.to_dict() for address in full_user.addresses]
        return {"success": True, "user": data}

    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching user: {str(e)}")


@router.post("/refresh-token")
async def refresh_token(request: RefreshTokenRequest):
    try:
        token = AuthService().refresh(request.refresh_token)
        return {"success": True, "token": token}

    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error refreshing token: {str(e)}")


@router.post("/logout")
async def logout(user: User = Depends(get_current_user)):
    try:
        AuthService().logout(user)
        response = JSONResponse(content={"success": True, "message": "Logged out successfully"})
        response.delete_cookie(TOKEN_COOKIE_NAME)
        return response

    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error logging out: {str(e)}")
