from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Optional
from uuid import UUID

from supabase import AuthApiError, Client
from supabase import AuthError as SupabaseAuthError

from arttimeline.app.domain.errors import (
    AuthError,
    EmailAlreadyRegisteredError,
    InvalidCredentialsError,
    InvalidOtpError,
    InvalidStateTokenError,
    OtpDeliveryError,
    RepositoryError,
    ResendTooSoonError,
    WeakPasswordError,
)
from arttimeline.app.domain.models import AuthSession, User
from arttimeline.app.infra.auth.base import IdentityProvider
from arttimeline.app.infra.db.rows import parse_datetime

logger = logging.getLogger(__name__)

_ALREADY_REGISTERED_CODES = {"user_already_exists", "email_exists"}


def _status(error: SupabaseAuthError) -> int:
    return int(getattr(error, "status", 0) or 0)


def _code(error: SupabaseAuthError) -> str:
    return str(getattr(error, "code", "") or "")


def _is_server_error(error: SupabaseAuthError) -> bool:
    # network failures surface as AuthRetryableError with status 0
    return not isinstance(error, AuthApiError) or _status(error) >= 500


def user_from_supabase(user: Any) -> User:
    """Build a domain user from a GoTrue user object."""
    name = None
    meta = getattr(user, "user_metadata", None) or {}
    if isinstance(meta, dict):
        name = meta.get("name")
    app_meta = getattr(user, "app_metadata", None) or {}
    if not isinstance(app_meta, dict):
        app_meta = {}

    return User(
        id=UUID(str(user.id)),
        name=str(name or ""),
        email=str(user.email or ""),
        is_verified=getattr(user, "email_confirmed_at", None) is not None,
        two_factor_enabled=bool(app_meta.get("two_factor_enabled")),
        two_factor_confirmed_at=parse_datetime(app_meta.get("two_factor_confirmed_at")),
        created_at=parse_datetime(getattr(user, "created_at", None)),
    )


class SupabaseIdentityProvider(IdentityProvider):
    """
    Supabase Auth (GoTrue) accounts.

    Two clients are used:
    - ``public`` runs the user-facing flows (sign up, sign in, verify). Those
      calls store the resulting session on the client, so it is never used
      for table access.
    - ``admin`` is the service-role client; it resolves access tokens and
      runs admin updates and sign outs.

    The project must have e-mail confirmation enabled and its templates must
    include ``{{ .Token }}`` so users receive a 6-digit code.
    """

    def __init__(self, public: Client, admin: Client, rate_limit_retry_seconds: int = 60):
        self._public = public
        self._admin = admin
        self._rate_limit_retry_seconds = rate_limit_retry_seconds

    def sign_up(self, name: str, email: str, password: str) -> User:
        try:
            response = self._public.auth.sign_up({
                "email": email,
                "password": password,
                "options": {"data": {"name": name}},
            })
        except SupabaseAuthError as error:
            if _code(error) in _ALREADY_REGISTERED_CODES or "already registered" in str(error).lower():
                raise EmailAlreadyRegisteredError(email) from error
            if _code(error) == "weak_password":
                raise WeakPasswordError(str(error)) from error
            raise self._send_failure("sign_up", email, error) from error

        # With confirmation enabled an existing address gets an obfuscated
        # user with no identities instead of an error.
        user = response.user
        if user is None or getattr(user, "identities", None) == []:
            raise EmailAlreadyRegisteredError(email)

        logger.info("Signup code sent: user=%s", user.id)
        return user_from_supabase(user)

    def resend_signup_code(self, email: str) -> None:
        try:
            self._public.auth.resend({"type": "signup", "email": email})
        except SupabaseAuthError as error:
            raise self._send_failure("resend_signup", email, error) from error

    def verify_signup(self, email: str, code: str) -> AuthSession:
        return self._verify(email, code, "signup")

    def sign_in_with_password(self, email: str, password: str) -> AuthSession:
        try:
            response = self._public.auth.sign_in_with_password({"email": email, "password": password})
        except SupabaseAuthError as error:
            if _is_server_error(error):
                logger.error("Auth provider error during sign in: %s", error)
                raise RepositoryError("sign_in", str(error)) from error
            raise InvalidCredentialsError() from error

        if response.session is None or response.user is None:
            raise InvalidCredentialsError()
        return self._to_session(response)

    def send_login_code(self, email: str) -> None:
        try:
            self._public.auth.sign_in_with_otp({
                "email": email,
                "options": {"should_create_user": False},
            })
        except SupabaseAuthError as error:
            raise self._send_failure("send_login_code", email, error) from error

    def verify_login_code(self, email: str, code: str) -> AuthSession:
        return self._verify(email, code, "email")

    def send_recovery_code(self, email: str) -> None:
        try:
            self._public.auth.reset_password_for_email(email)
        except SupabaseAuthError as error:
            raise self._send_failure("send_recovery_code", email, error) from error

    def verify_recovery_code(self, email: str, code: str) -> User:
        session = self._verify(email, code, "recovery")
        self.sign_out(session.access_token)
        return session.user

    def update_password(self, user_id: UUID, password: str) -> None:
        try:
            self._admin.auth.admin.update_user_by_id(str(user_id), {"password": password})
        except SupabaseAuthError as error:
            if _code(error) == "weak_password":
                raise WeakPasswordError(str(error)) from error
            logger.error("Auth provider error updating password: user=%s, %s", user_id, error)
            raise RepositoryError("update_password", str(error)) from error
        logger.info("Password updated: user=%s", user_id)

    def set_two_factor(self, user_id: UUID, enabled: bool, confirmed_at: Optional[datetime]) -> User:
        # app_metadata is only writable with the service role key
        attributes = {
            "app_metadata": {
                "two_factor_enabled": enabled,
                "two_factor_confirmed_at": confirmed_at.isoformat() if confirmed_at else None,
            }
        }
        try:
            response = self._admin.auth.admin.update_user_by_id(str(user_id), attributes)
        except SupabaseAuthError as error:
            logger.error("Auth provider error updating two-factor: user=%s, %s", user_id, error)
            raise RepositoryError("set_two_factor", str(error)) from error

        if response is None or response.user is None:
            raise RepositoryError("set_two_factor", "no user returned")
        return user_from_supabase(response.user)

    def get_user(self, access_token: str) -> Optional[User]:
        try:
            response = self._admin.auth.get_user(access_token)
        except SupabaseAuthError as error:
            if _is_server_error(error):
                logger.error("Auth provider error resolving token: %s", error)
                raise RepositoryError("get_user", str(error)) from error
            return None

        if response is None or response.user is None:
            return None
        return user_from_supabase(response.user)

    def sign_out(self, access_token: str) -> None:
        try:
            self._admin.auth.admin.sign_out(access_token, "local")
        except SupabaseAuthError as error:
            if _is_server_error(error):
                logger.error("Auth provider error during sign out: %s", error)
                raise RepositoryError("sign_out", str(error)) from error
            raise InvalidStateTokenError("Invalid or expired session") from error

    def _verify(self, email: str, code: str, otp_type: str) -> AuthSession:
        try:
            response = self._public.auth.verify_otp({"email": email, "token": code, "type": otp_type})
        except SupabaseAuthError as error:
            if _is_server_error(error):
                logger.error("Auth provider error verifying %s code: %s", otp_type, error)
                raise RepositoryError(f"verify_{otp_type}", str(error)) from error
            raise InvalidOtpError("Invalid or expired OTP code.") from error

        if response.session is None or response.user is None:
            raise InvalidOtpError("Invalid or expired OTP code.")
        return self._to_session(response)

    def _send_failure(self, operation: str, email: str, error: SupabaseAuthError) -> AuthError:
        if _status(error) == 429:
            return ResendTooSoonError(self._rate_limit_retry_seconds)
        logger.warning("Auth provider could not send code: operation=%s, status=%s, %s",
                       operation, _status(error), error)
        return OtpDeliveryError(email, str(error))

    @staticmethod
    def _to_session(response: Any) -> AuthSession:
        session = response.session
        return AuthSession(
            access_token=session.access_token,
            refresh_token=session.refresh_token,
            expires_at=session.expires_at,
            user=user_from_supabase(response.user),
        )
