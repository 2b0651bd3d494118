# arttimeline/app/services/auth_service.py
"""
Account service.
Registration, login, two-factor and password reset flows on top of the
identity provider. Steps that are still in progress are carried by a signed
state token instead of server-side session storage; completed sign-ins hand
back the provider's session.
"""
from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional
from uuid import UUID

from starlette.concurrency import run_in_threadpool

from arttimeline.app.domain.errors import InvalidStateTokenError, ResendTooSoonError
from arttimeline.app.domain.models import AuthSession, OtpPurpose, User
from arttimeline.app.infra.auth.base import IdentityProvider
from arttimeline.app.infra.cache.base import (
    NAMESPACE_OTP_RESEND,
    NAMESPACE_REVOKED_TOKEN,
    CacheStore,
)
from arttimeline.app.infra.db.rows import now_utc
from arttimeline.services.tokens import AuthStage, StateToken, StateTokenSigner, check_transition

logger = logging.getLogger(__name__)

_RESEND_FLOWS = {
    AuthStage.REGISTRATION_PENDING: OtpPurpose.REGISTRATION,
    AuthStage.TWO_FACTOR_PENDING: OtpPurpose.TWO_FACTOR,
    AuthStage.RESET_OTP_SENT: OtpPurpose.PASSWORD_RESET,
}


def normalize_email(email: str) -> str:
    return email.strip().lower()


@dataclass
class AuthStep:
    """Outcome of one auth transition: the token for the stage reached."""
    stage: AuthStage
    token: Optional[str]
    expires_at: Optional[int] = None
    user: Optional[User] = None
    refresh_token: Optional[str] = None


class AuthService:
    """
    Service for account flows.

    Responsibilities:
    - Drive the identity provider through sign up, sign in and recovery
    - Advance clients through pending stages validated by the token signer
    - Rate limit code resends per flow and client
    - Revoke pending tokens once they have been used
    """

    def __init__(
        self,
        identity: IdentityProvider,
        signer: StateTokenSigner,
        cache: CacheStore,
        *,
        pending_ttl_seconds: int = 15 * 60,
        resend_cooldown_seconds: int = 60,
        clock: Callable[[], datetime] = now_utc,
    ):
        self._identity = identity
        self._signer = signer
        self._cache = cache
        self.pending_ttl_seconds = pending_ttl_seconds
        self.resend_cooldown_seconds = resend_cooldown_seconds
        self._clock = clock

    # Registration

    async def register(self, name: str, email: str, password: str) -> AuthStep:
        address = normalize_email(email)
        user = await run_in_threadpool(self._identity.sign_up, name.strip(), address, password)
        logger.info("auth.registration_pending user=%s", user.id)
        return self._pending(AuthStage.REGISTRATION_PENDING, address)

    async def verify_registration(self, token: str, code: str) -> AuthStep:
        state = await self._decode(token, AuthStage.REGISTRATION_PENDING)
        session = await run_in_threadpool(self._identity.verify_signup, state.subject, code)
        logger.info("auth.registered user=%s", session.user.id)
        return await self._session(session, previous=state)

    # Login and two-factor

    async def login(self, email: str, password: str) -> AuthStep:
        address = normalize_email(email)
        session = await run_in_threadpool(self._identity.sign_in_with_password, address, password)
        if not session.user.has_two_factor:
            logger.info("auth.login user=%s", session.user.id)
            return await self._session(session)

        # The password session is not handed out; the e-mailed code opens a new one.
        await run_in_threadpool(self._identity.sign_out, session.access_token)
        await run_in_threadpool(self._identity.send_login_code, address)
        logger.info("auth.two_factor_challenge user=%s", session.user.id)
        return self._pending(AuthStage.TWO_FACTOR_PENDING, address)

    async def verify_two_factor(self, token: str, code: str) -> AuthStep:
        state = await self._decode(token, AuthStage.TWO_FACTOR_PENDING)
        session = await run_in_threadpool(self._identity.verify_login_code, state.subject, code)
        return await self._session(session, previous=state)

    async def set_two_factor(self, user: User, enabled: bool) -> User:
        confirmed_at = self._clock() if enabled else None
        updated = await run_in_threadpool(self._identity.set_two_factor, user.id, enabled, confirmed_at)
        logger.info("auth.two_factor user=%s enabled=%s", user.id, enabled)
        return updated

    # Password reset

    async def request_password_reset(self, email: str) -> AuthStep:
        address = normalize_email(email)
        await run_in_threadpool(self._identity.send_recovery_code, address)
        return self._pending(AuthStage.RESET_OTP_SENT, address)

    async def verify_password_reset(self, token: str, code: str) -> AuthStep:
        state = await self._decode(token, AuthStage.RESET_OTP_SENT)
        user = await run_in_threadpool(self._identity.verify_recovery_code, state.subject, code)
        await self._revoke(state)
        return self._pending(AuthStage.RESET_VERIFIED, str(user.id), previous=state)

    async def reset_password(self, token: str, new_password: str) -> None:
        state = await self._decode(token, AuthStage.RESET_VERIFIED)
        try:
            user_id = UUID(state.subject)
        except ValueError as error:
            raise InvalidStateTokenError("Unknown subject") from error
        await run_in_threadpool(self._identity.update_password, user_id, new_password)
        await self._revoke(state)
        logger.info("auth.password_reset user=%s", user_id)

    # Shared

    async def resend_code(self, token: str, stage: AuthStage, client_key: str) -> AuthStep:
        """
        Send a fresh code for a pending stage and return a refreshed token.

        Raises:
            ResendTooSoonError: If a code was resent for this flow and client
                within the cooldown window
        """
        purpose = _RESEND_FLOWS[stage]
        state = await self._decode(token, stage)
        await self._check_resend_allowed(purpose, client_key)

        senders = {
            OtpPurpose.REGISTRATION: self._identity.resend_signup_code,
            OtpPurpose.TWO_FACTOR: self._identity.send_login_code,
            OtpPurpose.PASSWORD_RESET: self._identity.send_recovery_code,
        }
        await run_in_threadpool(senders[purpose], state.subject)

        await self._cache.set(
            NAMESPACE_OTP_RESEND,
            self._resend_key(purpose, client_key),
            time.time() + self.resend_cooldown_seconds,
            self.resend_cooldown_seconds,
        )
        await self._revoke(state)
        return self._pending(stage, state.subject, previous=state)

    async def authenticate(self, access_token: str) -> User:
        user = await run_in_threadpool(self._identity.get_user, access_token)
        if user is None:
            raise InvalidStateTokenError("Invalid or expired session")
        return user

    async def logout(self, access_token: str) -> None:
        user = await self.authenticate(access_token)
        await run_in_threadpool(self._identity.sign_out, access_token)
        logger.info("auth.logout user=%s", user.id)

    # Internals

    def _pending(
        self,
        stage: AuthStage,
        subject: str,
        previous: Optional[StateToken] = None,
    ) -> AuthStep:
        token, state = self._signer.issue(
            stage,
            subject,
            self.pending_ttl_seconds,
            previous=previous,
        )
        return AuthStep(stage=stage, token=token, expires_at=state.expires_at)

    async def _session(self, session: AuthSession, previous: Optional[StateToken] = None) -> AuthStep:
        check_transition(previous.stage if previous else None, AuthStage.SESSION)
        if previous is not None:
            await self._revoke(previous)
        return AuthStep(
            stage=AuthStage.SESSION,
            token=session.access_token,
            expires_at=session.expires_at,
            user=session.user,
            refresh_token=session.refresh_token,
        )

    async def _decode(self, token: str, expected: AuthStage) -> StateToken:
        state = self._signer.decode(token, expected)
        if await self._cache.get(NAMESPACE_REVOKED_TOKEN, state.token_id) is not None:
            raise InvalidStateTokenError("Token has been revoked")
        return state

    async def _revoke(self, state: StateToken) -> None:
        remaining = self._signer.remaining_seconds(state)
        if remaining > 0:
            await self._cache.set(NAMESPACE_REVOKED_TOKEN, state.token_id, True, remaining)

    async def _check_resend_allowed(self, purpose: OtpPurpose, client_key: str) -> None:
        entry = await self._cache.get(NAMESPACE_OTP_RESEND, self._resend_key(purpose, client_key))
        if entry is None:
            return
        retry_after = max(1, math.ceil(float(entry.value) - time.time()))
        raise ResendTooSoonError(retry_after)

    @staticmethod
    def _resend_key(purpose: OtpPurpose, client_key: str) -> str:
        return f"{purpose.value}:{client_key}"
