"""
Tests for AuthService sign-in paths, OTP, password reset and refresh

Author: Water Junction
Date: 2025-06-30
"""
import asyncio
import pytest
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock

from conftest import make_user
from waterjunction.core.auth import create_refresh_token, decode_access_token, hash_password, verify_password
from waterjunction.core.exceptions import (
    AuthenticationError,
    BadRequestError,
    ConfigurationError,
    NotFoundError,
    PermissionDeniedError,
    ServiceError,
)
from waterjunction.services.auth_service import AuthService, generate_otp, hash_reset_token


@pytest.fixture
def deps():
    user_repo = MagicMock()
    sms_sender = MagicMock()
    sms_sender.send_otp = AsyncMock(return_value=True)
    notifications = MagicMock()
    notifications.send_password_reset = AsyncMock()
    service = AuthService(user_repo=user_repo, sms_sender=sms_sender, notifications=notifications)
    return service, user_repo, sms_sender, notifications


class TestRegisterAndLogin:

    def test_register_hashes_password(self, deps):
        service, user_repo, _, _ = deps
        user_repo.find_by_email.return_value = None
        user_repo.find_by_phone.return_value = None
        user_repo.create.return_value = make_user()

        service.register(' Asha Rao ', 'Asha@Example.com', 's3cret-pass', phone='9876543210')

        fields = user_repo.create.call_args[0][0]
        assert fields['email'] == 'asha@example.com'
        assert fields['name'] == 'Asha Rao'
        assert fields['auth_provider'] == 'email'
        assert verify_password('s3cret-pass', fields['password_hash'])

    def test_register_duplicate_email(self, deps):
        service, user_repo, _, _ = deps
        user_repo.find_by_email.return_value = make_user()

        with pytest.raises(BadRequestError, match="User already exists with this email"):
            service.register('Asha', 'asha@example.com', 's3cret-pass')

    def test_register_duplicate_phone(self, deps):
        service, user_repo, _, _ = deps
        user_repo.find_by_email.return_value = None
        user_repo.find_by_phone.return_value = make_user()

        with pytest.raises(BadRequestError, match="phone number"):
            service.register('Asha', 'new@example.com', 's3cret-pass', phone='9876543210')

    def test_login_unknown_user(self, deps):
        service, user_repo, _, _ = deps
        user_repo.find_by_email.return_value = None

        with pytest.raises(AuthenticationError, match="User not found"):
            service.login('nobody@example.com', 'x')

    def test_login_social_account(self, deps):
        service, user_repo, _, _ = deps
        user_repo.find_by_email.return_value = make_user(password_hash=None, auth_provider='google')

        with pytest.raises(AuthenticationError, match="social login"):
            service.login('asha@example.com', 'x')

    def test_login_wrong_password(self, deps):
        service, user_repo, _, _ = deps
        user_repo.find_by_email.return_value = make_user(password_hash=hash_password('right-pass'))

        with pytest.raises(AuthenticationError) as exc_info:
            service.login('asha@example.com', 'wrong-pass')

        assert exc_info.value.message == "Invalid email or password."
        assert exc_info.value.status_code == 401

    def test_login_blocked(self, deps):
        service, user_repo, _, _ = deps
        user_repo.find_by_email.return_value = make_user(password_hash=hash_password('right-pass'), is_blocked=True)

        with pytest.raises(PermissionDeniedError):
            service.login('asha@example.com', 'right-pass')

    def test_issue_tokens_stores_refresh_token(self, deps):
        service, user_repo, _, _ = deps

        result = service.issue_tokens(make_user())

        assert decode_access_token(result['token'])['id'] == 1
        user_repo.update.assert_called_once_with(1, {'refresh_token': result['refreshToken']})
        assert result['user']['email'] == 'asha@example.com'


class TestPhoneOtp:

    def test_generate_otp(self):
        otp = generate_otp()

        assert len(otp) == 6
        assert otp.isdigit()

    def test_send_otp_creates_phone_user(self, deps):
        service, user_repo, sms_sender, _ = deps
        user_repo.find_by_phone.return_value = None
        user_repo.create.return_value = make_user(id=4, email=None, auth_provider='phone')

        asyncio.run(service.send_otp('9876543210'))

        fields = user_repo.create.call_args[0][0]
        assert fields['name'] == 'User3210'
        assert fields['auth_provider'] == 'phone'
        stored_otp = user_repo.update.call_args[0][1]['otp']
        sms_sender.send_otp.assert_awaited_once_with('9876543210', stored_otp)

    def test_send_otp_provider_failure(self, deps):
        service, user_repo, sms_sender, _ = deps
        user_repo.find_by_phone.return_value = make_user()
        sms_sender.send_otp.return_value = False

        with pytest.raises(ServiceError, match="Failed to send OTP"):
            asyncio.run(service.send_otp('9876543210'))

    def test_verify_otp(self, deps):
        service, user_repo, _, _ = deps
        user_repo.find_by_phone.return_value = make_user(
            otp='123456', otp_expires_at=datetime.now(timezone.utc) + timedelta(minutes=5)
        )

        service.verify_otp('9876543210', '123456')

        user_repo.update.assert_called_once_with(1, {
            'is_phone_verified': True, 'otp': None, 'otp_expires_at': None,
        })

    def test_verify_wrong_otp(self, deps):
        service, user_repo, _, _ = deps
        user_repo.find_by_phone.return_value = make_user(
            otp='123456', otp_expires_at=datetime.now(timezone.utc) + timedelta(minutes=5)
        )

        with pytest.raises(BadRequestError, match="Invalid OTP"):
            service.verify_otp('9876543210', '654321')

    @pytest.mark.parametrize("typed", ["१२३४५६", "１２３４５６", ""])
    def test_verify_non_ascii_otp(self, deps, typed):
        service, user_repo, _, _ = deps
        user_repo.find_by_phone.return_value = make_user(
            otp='123456', otp_expires_at=datetime.now(timezone.utc) + timedelta(minutes=5)
        )

        with pytest.raises(BadRequestError, match="Invalid OTP"):
            service.verify_otp('9876543210', typed)

        user_repo.update.assert_not_called()

    def test_verify_expired_otp(self, deps):
        service, user_repo, _, _ = deps
        user_repo.find_by_phone.return_value = make_user(
            otp='123456', otp_expires_at=datetime.now(timezone.utc) - timedelta(seconds=1)
        )

        with pytest.raises(BadRequestError, match="OTP has expired"):
            service.verify_otp('9876543210', '123456')

    def test_verify_without_otp_sent(self, deps):
        service, user_repo, _, _ = deps
        user_repo.find_by_phone.return_value = make_user()

        with pytest.raises(BadRequestError, match="OTP not sent"):
            service.verify_otp('9876543210', '123456')


class TestSocialLogin:

    def test_links_existing_email_account(self, deps):
        service, user_repo, _, _ = deps
        user_repo.find_by_provider_id.return_value = None
        user_repo.find_by_email.return_value = make_user()
        user_repo.update.return_value = make_user(google_id='g-1', auth_provider='google')

        user = service.social_login('google', 'g-1', 'Asha Rao', email='Asha@Example.com')

        user_repo.find_by_email.assert_called_once_with('asha@example.com')
        user_repo.update.assert_called_once_with(1, {'google_id': 'g-1', 'auth_provider': 'google'})
        assert user.google_id == 'g-1'

    def test_creates_verified_user(self, deps):
        service, user_repo, _, _ = deps
        user_repo.find_by_provider_id.return_value = None
        user_repo.find_by_email.return_value = None
        user_repo.create.return_value = make_user(id=8, facebook_id='fb-1', auth_provider='facebook')

        service.social_login('facebook', 'fb-1', 'Asha Rao', email='asha@example.com')

        fields = user_repo.create.call_args[0][0]
        assert fields['facebook_id'] == 'fb-1'
        assert fields['is_email_verified'] is True

    def test_blocked_user(self, deps):
        service, user_repo, _, _ = deps
        user_repo.find_by_provider_id.return_value = make_user(google_id='g-1', is_blocked=True)

        with pytest.raises(PermissionDeniedError):
            service.social_login('google', 'g-1', 'Asha Rao')


class TestPasswordReset:

    def test_forgot_password_stores_token_hash(self, deps):
        service, user_repo, _, notifications = deps
        user_repo.find_by_email.return_value = make_user()

        asyncio.run(service.forgot_password('asha@example.com'))

        stored = user_repo.update.call_args[0][1]['reset_password_token']
        email, reset_url = notifications.send_password_reset.call_args[0]
        token = reset_url.rsplit('/', 1)[-1]
        assert email == 'asha@example.com'
        assert '/reset-password/' in reset_url
        assert stored == hash_reset_token(token)

    def test_forgot_password_unknown_user(self, deps):
        service, user_repo, _, _ = deps
        user_repo.find_by_email.return_value = None

        with pytest.raises(NotFoundError):
            asyncio.run(service.forgot_password('nobody@example.com'))

    def test_forgot_password_email_failure_clears_token(self, deps):
        service, user_repo, _, notifications = deps
        user_repo.find_by_email.return_value = make_user()
        notifications.send_password_reset.side_effect = ConfigurationError("Email provider not configured")

        with pytest.raises(ServiceError, match="Email could not be sent"):
            asyncio.run(service.forgot_password('asha@example.com'))

        assert user_repo.update.call_args[0][1] == {
            'reset_password_token': None, 'reset_password_expires_at': None,
        }

    def test_reset_password_invalid_token(self, deps):
        service, user_repo, _, _ = deps
        user_repo.find_by_reset_token.return_value = None

        with pytest.raises(BadRequestError, match="Invalid or expired token"):
            service.reset_password('bad-token', 'new-pass-123')

    def test_reset_password(self, deps):
        service, user_repo, _, _ = deps
        user_repo.find_by_reset_token.return_value = make_user()

        service.reset_password('abc', 'new-pass-123')

        user_repo.find_by_reset_token.assert_called_once_with(hash_reset_token('abc'))
        fields = user_repo.update.call_args[0][1]
        assert verify_password('new-pass-123', fields['password_hash'])
        assert fields['reset_password_token'] is None


class TestRefreshAndPassword:

    def test_refresh_requires_token(self, deps):
        service, _, _, _ = deps

        with pytest.raises(AuthenticationError, match="Refresh token required"):
            service.refresh(None)

    def test_refresh_must_match_stored_token(self, deps):
        service, user_repo, _, _ = deps
        token = create_refresh_token(1)
        user_repo.find_by_id.return_value = make_user(refresh_token='some-other-token')

        with pytest.raises(AuthenticationError, match="Invalid refresh token"):
            service.refresh(token)

    def test_refresh(self, deps):
        service, user_repo, _, _ = deps
        token = create_refresh_token(1)
        user_repo.find_by_id.return_value = make_user(refresh_token=token)

        assert decode_access_token(service.refresh(token))['id'] == 1

    def test_refresh_garbage(self, deps):
        service, _, _, _ = deps

        with pytest.raises(AuthenticationError):
            service.refresh('garbage')

    def test_change_password_wrong_current(self, deps):
        service, _, _, _ = deps
        user = make_user(password_hash=hash_password('right-pass'))

        with pytest.raises(BadRequestError, match="Current password is incorrect"):
            service.change_password(user, 'wrong-pass', 'new-pass-123')

    def test_change_password_for_otp_account(self, deps):
        service, _, _, _ = deps

        with pytest.raises(BadRequestError, match="cannot be changed"):
            service.change_password(make_user(password_hash=None), 'x', 'new-pass-123')

    def test_logout_forgets_refresh_token(self, deps):
        service, user_repo, _, _ = deps

        service.logout(make_user())

        user_repo.update.assert_called_once_with(1, {'refresh_token': None})
