"""
Authentication for the WaterJunction API
Issues and validates our own JWTs and provides user context to routes
"""
from typing import Optional
from datetime import datetime, timedelta, timezone

from fastapi import Depends, HTTPException, status, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError, ExpiredSignatureError
from passlib.context import CryptContext

from .config import settings
from waterjunction.domain.user import User
from waterjunction.repositories.user_repository import UserRepository


# Security scheme for bearer tokens
security = HTTPBearer(auto_error=False)

# Password hashing context
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

JWT_ALGORITHM = "HS256"
TOKEN_COOKIE_NAME = "token"


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: Optional[str]) -> bool:
    if not password_hash:
        return False
    return pwd_context.verify(password, password_hash)


def _encode(user_id: int, secret: str, days: int) -> str:
    payload = {
        "id": user_id,
        "exp": datetime.now(timezone.utc) + timedelta(days=days),
    }
    return jwt.encode(payload, secret, algorithm=JWT_ALGORITHM)


def create_access_token(user_id: int) -> str:
    """Short-lived token sent as Bearer header or `token` cookie"""
    return _encode(user_id, settings.JWT_SECRET, settings.JWT_EXPIRE_DAYS)


def create_refresh_token(user_id: int) -> str:
    """Long-lived token, signed with a separate secret and stored on the user"""
    return _encode(user_id, settings.JWT_REFRESH_SECRET, settings.JWT_REFRESH_EXPIRE_DAYS)


def _decode(token: str, secret: str) -> dict:
    try:
        return jwt.decode(token, secret, algorithms=[JWT_ALGORITHM])
    except ExpiredSignatureError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has expired",
            headers={"WWW-Authenticate": "Bearer"}
        )
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authorized, token failed",
            headers={"WWW-Authenticate": "Bearer"}
        )


def decode_access_token(token: str) -> dict:
    return _decode(token, settings.JWT_SECRET)


def decode_refresh_token(token: str) -> dict:
    return _decode(token, settings.JWT_REFRESH_SECRET)


def _extract_token(request: Request, credentials: Optional[HTTPAuthorizationCredentials]) -> Optional[str]:
    """Bearer header first, then the httpOnly cookie set at login"""
    if credentials and credentials.credentials:
        return credentials.credentials
    return request.cookies.get(TOKEN_COOKIE_NAME)


async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> User:
    """
    Dependency that resolves the signed-in user.

    Usage:
        @router.get("/protected")
        async def protected_route(user: User = Depends(get_current_user)):
            return {"message": f"Hello {user.name}"}
    """
    token = _extract_token(request, credentials)
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authorized, no token provided",
            headers={"WWW-Authenticate": "Bearer"}
        )

    payload = decode_access_token(token)
    user_id = payload.get("id")
    user = UserRepository().find_by_id(user_id) if user_id is not None else None

    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
            headers={"WWW-Authenticate": "Bearer"}
        )

    if user.is_blocked:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is blocked. Please contact support."
        )

    return user


async def get_current_user_optional(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> Optional[User]:
    """
    Optional authentication - returns None if no valid token provided.
    """
    try:
        return await get_current_user(request, credentials)
    except HTTPException:
        return None


async def require_admin(user: User = Depends(get_current_user)) -> User:
    """Dependency for admin-only routes"""
    if not user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not authorized as an admin"
        )
    return user
