from __future__ import annotations

import itertools
import os

# Settings are read at import time by the app modules.
os.environ.setdefault("SUPABASE_URL", "https://example.supabase.co")
os.environ.setdefault("SUPABASE_SERVICE_ROLE_KEY", "test-service-role-key")
os.environ.setdefault("AUTH_SECRET_KEY", "test-secret")

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional
from uuid import UUID, uuid4

import pytest

from arttimeline.app.domain.errors import (
    EmailAlreadyRegisteredError,
    InvalidCredentialsError,
    InvalidOtpError,
    InvalidStateTokenError,
    OtpDeliveryError,
    ResendTooSoonError,
)
from arttimeline.app.domain.models import AuthSession, CollectionEntry, SaveOutcome, User
from arttimeline.app.infra.auth.base import IdentityProvider
from arttimeline.app.infra.cache.memory import InMemoryCacheStore
from arttimeline.app.infra.db.base import CollectionRepository
from arttimeline.app.services.auth_service import AuthService
from arttimeline.services.tokens import StateTokenSigner

SECRET = "test-secret"


class MutableClock:
    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now = self.now + timedelta(**kwargs)


class FakeIdentityProvider(IdentityProvider):
    """
    In-memory stand-in for Supabase Auth.

    Codes are single use and kept per (email, kind), where kind follows the
    GoTrue verify types: signup, email (login code) and recovery.
    """

    def __init__(self) -> None:
        self.users: dict[str, User] = {}
        self.passwords: dict[str, str] = {}
        self.codes: dict[tuple[str, str], str] = {}
        self.sessions: dict[str, UUID] = {}
        self.sent: list[tuple[str, str, str]] = []
        self.fail = False
        self.rate_limited = False
        self._counter = itertools.count(100_000)

    # Helpers for tests

    def add_user(self, name: str, email: str, password: str, verified: bool = True) -> User:
        user = User(
            id=uuid4(),
            name=name,
            email=email,
            is_verified=verified,
            created_at=datetime.now(timezone.utc),
        )
        self.users[email] = user
        self.passwords[email] = password
        return user

    def last_code(self) -> str:
        return self.sent[-1][1]

    def open_session(self, user: User) -> str:
        token = f"access-{next(self._counter)}"
        self.sessions[token] = user.id
        return token

    # IdentityProvider

    def sign_up(self, name: str, email: str, password: str) -> User:
        existing = self.users.get(email)
        if existing is not None and existing.is_verified:
            raise EmailAlreadyRegisteredError(email)
        user = existing or self.add_user(name, email, password, verified=False)
        self._send(email, "signup")
        return user

    def resend_signup_code(self, email: str) -> None:
        self._send(email, "signup")

    def verify_signup(self, email: str, code: str) -> AuthSession:
        self._consume(email, "signup", code)
        self.users[email].is_verified = True
        return self._session(self.users[email])

    def sign_in_with_password(self, email: str, password: str) -> AuthSession:
        user = self.users.get(email)
        if user is None or not user.is_verified or self.passwords.get(email) != password:
            raise InvalidCredentialsError()
        return self._session(user)

    def send_login_code(self, email: str) -> None:
        if email not in self.users:
            raise OtpDeliveryError(email, "Signups not allowed for otp")
        self._send(email, "email")

    def verify_login_code(self, email: str, code: str) -> AuthSession:
        self._consume(email, "email", code)
        return self._session(self.users[email])

    def send_recovery_code(self, email: str) -> None:
        if email in self.users:
            self._send(email, "recovery")

    def verify_recovery_code(self, email: str, code: str) -> User:
        self._consume(email, "recovery", code)
        return self.users[email]

    def update_password(self, user_id: UUID, password: str) -> None:
        self.passwords[self._by_id(user_id).email] = password

    def set_two_factor(self, user_id: UUID, enabled: bool, confirmed_at: Optional[datetime]) -> User:
        user = self._by_id(user_id)
        user.two_factor_enabled = enabled
        user.two_factor_confirmed_at = confirmed_at
        return user

    def get_user(self, access_token: str) -> Optional[User]:
        user_id = self.sessions.get(access_token)
        if user_id is None:
            return None
        return self._by_id(user_id)

    def sign_out(self, access_token: str) -> None:
        if self.sessions.pop(access_token, None) is None:
            raise InvalidStateTokenError("Invalid or expired session")

    # Internals

    def _send(self, email: str, kind: str) -> None:
        if self.rate_limited:
            raise ResendTooSoonError(60)
        if self.fail:
            raise OtpDeliveryError(email, "smtp down")
        code = f"{next(self._counter) % 1_000_000:06d}"
        self.codes[(email, kind)] = code
        self.sent.append((email, code, kind))

    def _consume(self, email: str, kind: str, code: str) -> None:
        if self.codes.get((email, kind)) != code:
            raise InvalidOtpError("Invalid or expired OTP code.")
        del self.codes[(email, kind)]

    def _session(self, user: User) -> AuthSession:
        return AuthSession(
            access_token=self.open_session(user),
            refresh_token=f"refresh-{user.id}",
            expires_at=int(datetime.now(timezone.utc).timestamp()) + 3600,
            user=user,
        )

    def _by_id(self, user_id: UUID) -> User:
        return next(user for user in self.users.values() if user.id == user_id)


class InMemoryCollectionRepository(CollectionRepository):
    def __init__(self) -> None:
        self.entries: list[CollectionEntry] = []
        self._next_id = 1
        self._base = datetime(2024, 1, 1, tzinfo=timezone.utc)

    def list_entries(self, user_id: UUID) -> list[CollectionEntry]:
        owned = [entry for entry in self.entries if entry.user_id == user_id]
        return sorted(owned, key=lambda entry: entry.created_at, reverse=True)

    def save(self, entry: CollectionEntry) -> SaveOutcome:
        if self.exists(entry.user_id, entry.artwork_id):
            return SaveOutcome.ALREADY_EXISTS
        entry.id = self._next_id
        entry.created_at = self._base + timedelta(minutes=self._next_id)
        self._next_id += 1
        self.entries.append(entry)
        return SaveOutcome.CREATED

    def remove(self, user_id: UUID, artwork_id: int) -> bool:
        before = len(self.entries)
        self.entries = [
            entry for entry in self.entries
            if not (entry.user_id == user_id and entry.artwork_id == artwork_id)
        ]
        return len(self.entries) < before

    def exists(self, user_id: UUID, artwork_id: int) -> bool:
        return any(
            entry.user_id == user_id and entry.artwork_id == artwork_id
            for entry in self.entries
        )


@dataclass
class AuthHarness:
    identity: FakeIdentityProvider
    signer: StateTokenSigner
    cache: InMemoryCacheStore
    clock: MutableClock
    service: AuthService


@pytest.fixture
def cache() -> InMemoryCacheStore:
    return InMemoryCacheStore()


@pytest.fixture
def collection_repo() -> InMemoryCollectionRepository:
    return InMemoryCollectionRepository()


@pytest.fixture
def auth() -> AuthHarness:
    identity = FakeIdentityProvider()
    signer = StateTokenSigner(SECRET)
    cache = InMemoryCacheStore()
    clock = MutableClock(datetime.now(timezone.utc))
    service = AuthService(
        identity,
        signer,
        cache,
        pending_ttl_seconds=900,
        resend_cooldown_seconds=60,
        clock=clock,
    )
    return AuthHarness(identity, signer, cache, clock, service)
