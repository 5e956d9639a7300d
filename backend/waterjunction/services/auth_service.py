"""
Auth Service
Sign-up, sign-in (password, phone OTP, Google/Facebook), password reset
and token refresh

Author: Water Junction
Date: 2025-06-02
"""
import hashlib
import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

from waterjunction.connectors.sms_connector import SmsSender
from waterjunction.core.auth import (
    create_access_token,
    create_refresh_token,
    decode_refresh_token,
    hash_password,
    verify_password,
)
from waterjunction.core.config import settings
from waterjunction.core.exceptions import (
    AuthenticationError,
    BadRequestError,
    NotFoundError,
    PermissionDeniedError,
    ServiceError,
)
from waterjunction.domain.user import User
from waterjunction.repositories.user_repository import UserRepository
from waterjunction.services.notification_service import NotificationService


logger = logging.getLogger(__name__)

OTP_TTL = timedelta(minutes=10)
RESET_TOKEN_TTL = timedelta(minutes=10)


def generate_otp() -> str:
    """Six digit numeric code"""
    return str(100000 + secrets.randbelow(900000))


def hash_reset_token(token: str) -> str:
    """Only the SHA-256 of a reset token is stored"""
    return hashlib.sha256(token.encode()).hexdigest()


def _aware(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


class AuthService:
    """Every sign-in path ends in issue_tokens()"""

    def __init__(
        self,
        user_repo: UserRepository = None,
        sms_sender: SmsSender = None,
        notifications: NotificationService = None
    ):
        self.user_repo = user_repo or UserRepository()
        self.sms_sender = sms_sender or SmsSender()
        self.notifications = notifications or NotificationService()

    def issue_tokens(self, user: User) -> dict:
        """
        Create access + refresh tokens and remember the refresh token

        Returns:
            {"success", "token", "refreshToken", "user"}
        """
        token = create_access_token(user.id)
        refresh_token = create_refresh_token(user.id)
        self.user_repo.update(user.id, {'refresh_token': refresh_token})

        return {
            "success": True,
            "token": token,
            "refreshToken": refresh_token,
            "user": user.to_public_dict(),
        }

    def register(self, name: str, email: str, password: str, phone: Optional[str] = None) -> User:
        email = email.lower().strip()

        if self.user_repo.find_by_email(email):
            raise BadRequestError("User already exists with this email")
        if phone and self.user_repo.find_by_phone(phone):
            raise BadRequestError("User already exists with this phone number")

        user = self.user_repo.create({
            'name': name.strip(),
            'email': email,
            'phone': phone or None,
            'password_hash': hash_password(password),
            'auth_provider': 'email',
        })
        logger.info(f"Registered user {user.id} ({email})")
        return user

    def login(self, email: str, password: str) -> User:
        user = self.user_repo.find_by_email(email)

        if not user:
            raise AuthenticationError("Invalid email or password. User not found.")
        if not user.has_password:
            raise AuthenticationError(
                "This account was created with social login. Please use Google/Facebook to sign in."
            )
        if not verify_password(password, user.password_hash):
            raise AuthenticationError("Invalid email or password.")
        if user.is_blocked:
            raise PermissionDeniedError("Account is blocked. Please contact support.")

        return user

    async def send_otp(self, phone: str) -> None:
        """Create the phone user on first use, store a fresh OTP and send it"""
        user = self.user_repo.find_by_phone(phone)
        if not user:
            user = self.user_repo.create({
                'phone': phone,
                'name': f"User{phone[-4:]}",
                'auth_provider': 'phone',
                'is_phone_verified': False,
            })

        otp = generate_otp()
        self.user_repo.update(user.id, {
            'otp': otp,
            'otp_expires_at': datetime.now(timezone.utc) + OTP_TTL,
        })

        if not await self.sms_sender.send_otp(phone, otp):
            raise ServiceError("Failed to send OTP")

    def verify_otp(self, phone: str, otp: str) -> User:
        user = self.user_repo.find_by_phone(phone)

        if not user or not user.otp:
            raise BadRequestError("Invalid phone number or OTP not sent")
        if not secrets.compare_digest(user.otp.encode(), (otp or "").encode()):
            raise BadRequestError("Invalid OTP")
        if not user.otp_expires_at or _aware(user.otp_expires_at) < datetime.now(timezone.utc):
            raise BadRequestError("OTP has expired")

        return self.user_repo.update(user.id, {
            'is_phone_verified': True,
            'otp': None,
            'otp_expires_at': None,
        })

    def social_login(
        self,
        provider: str,
        provider_id: str,
        name: str,
        email: Optional[str] = None,
        profile_photo: Optional[str] = None
    ) -> User:
        """
        Sign in with a Google or Facebook identity

        Matches an existing user by provider id, then by email, linking the
        provider id when it was missing; otherwise creates a verified user.
        """
        id_column = f"{provider}_id"
        email = email.lower().strip() if email else None

        user = self.user_repo.find_by_provider_id(provider, provider_id)
        if not user and email:
            user = self.user_repo.find_by_email(email)

        if user:
            updates = {}
            if not getattr(user, id_column):
                updates[id_column] = provider_id
                updates['auth_provider'] = provider
            if profile_photo:
                updates['profile_photo'] = profile_photo
            if updates:
                user = self.user_repo.update(user.id, updates)
        else:
            user = self.user_repo.create({
                id_column: provider_id,
                'email': email,
                'name': name,
                'profile_photo': profile_photo or None,
                'auth_provider': provider,
                'is_email_verified': True,
            })
            logger.info(f"Created {provider} user {user.id}")

        if user.is_blocked:
            raise PermissionDeniedError("Account is blocked")

        return user

    async def forgot_password(self, email: str) -> None:
        user = self.user_repo.find_by_email(email)
        if not user or user.auth_provider != 'email':
            raise NotFoundError("User not found with this email")

        reset_token = secrets.token_hex(32)
        self.user_repo.update(user.id, {
            'reset_password_token': hash_reset_token(reset_token),
            'reset_password_expires_at': datetime.now(timezone.utc) + RESET_TOKEN_TTL,
        })

        reset_url = f"{settings.FRONTEND_URL.rstrip('/')}/reset-password/{reset_token}"
        try:
            await self.notifications.send_password_reset(user.email, reset_url)
        except ServiceError as e:
            logger.error(f"Password reset email failed for user {user.id}: {e.message}")
            self.user_repo.update(user.id, {
                'reset_password_token': None,
                'reset_password_expires_at': None,
            })
            raise ServiceError("Email could not be sent")

    def reset_password(self, token: str, password: str) -> User:
        user = self.user_repo.find_by_reset_token(hash_reset_token(token))
        if not user:
            raise BadRequestError("Invalid or expired token")

        return self.user_repo.update(user.id, {
            'password_hash': hash_password(password),
            'reset_password_token': None,
            'reset_password_expires_at': None,
        })

    def refresh(self, refresh_token: Optional[str]) -> str:
        """Exchange a stored refresh token for a new access token"""
        if not refresh_token:
            raise AuthenticationError("Refresh token required")

        try:
            payload = decode_refresh_token(refresh_token)
        except Exception:
            raise AuthenticationError("Invalid refresh token")

        user = self.user_repo.find_by_id(payload.get('id'))
        if not user or user.refresh_token != refresh_token:
            raise AuthenticationError("Invalid refresh token")

        return create_access_token(user.id)

    def change_password(self, user: User, current_password: str, new_password: str) -> None:
        if not user.has_password:
            raise BadRequestError("Password cannot be changed for this account")
        if not verify_password(current_password, user.password_hash):
            raise BadRequestError("Current password is incorrect")

        self.user_repo.update(user.id, {'password_hash': hash_password(new_password)})

    def logout(self, user: User) -> None:
        self.user_repo.update(user.id, {'refresh_token': None})
