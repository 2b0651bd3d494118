# arttimeline/services/tokens.py
"""
Signed, expiring state tokens for the auth flows.

Each token names the stage a client has reached (pending registration,
pending 2FA challenge, ...). Moving to a new stage is only allowed from the
stages listed in ``ALLOWED_PREDECESSORS``; ``None`` stands for a fresh start.
``SESSION`` is never signed here: the identity provider issues the session
token, and the map only checks which pending stage may lead to it.
"""
from __future__ import annotations

import base64
import hashlib
import hmac
import json
import secrets
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Optional

from arttimeline.app.domain.errors import InvalidStateTokenError, StageTransitionError


class AuthStage(str, Enum):
    SESSION = "session"
    REGISTRATION_PENDING = "registration_pending"
    TWO_FACTOR_PENDING = "two_factor_pending"
    RESET_OTP_SENT = "reset_otp_sent"
    RESET_VERIFIED = "reset_verified"


ALLOWED_PREDECESSORS: dict[AuthStage, frozenset[Optional[AuthStage]]] = {
    AuthStage.REGISTRATION_PENDING: frozenset({None, AuthStage.REGISTRATION_PENDING}),
    AuthStage.TWO_FACTOR_PENDING: frozenset({None, AuthStage.TWO_FACTOR_PENDING}),
    AuthStage.RESET_OTP_SENT: frozenset({None, AuthStage.RESET_OTP_SENT}),
    AuthStage.RESET_VERIFIED: frozenset({AuthStage.RESET_OTP_SENT}),
    AuthStage.SESSION: frozenset(
        {None, AuthStage.REGISTRATION_PENDING, AuthStage.TWO_FACTOR_PENDING}
    ),
}


def check_transition(current: Optional[AuthStage], target: AuthStage) -> None:
    if current not in ALLOWED_PREDECESSORS[target]:
        raise StageTransitionError(current.value if current else None, target.value)


@dataclass(frozen=True)
class StateToken:
    stage: AuthStage
    subject: str
    token_id: str
    issued_at: int
    expires_at: int
    claims: dict[str, Any] = field(default_factory=dict)


def _b64encode(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).decode("ascii").rstrip("=")


def _b64decode(text: str) -> bytes:
    return base64.urlsafe_b64decode((text + "=" * (-len(text) % 4)).encode("ascii"))


class StateTokenSigner:
    def __init__(self, secret: str, clock: Callable[[], float] = time.time):
        if not secret:
            raise ValueError("A signing secret is required")
        self._secret = secret.encode("utf-8")
        self._clock = clock

    def issue(
        self,
        stage: AuthStage,
        subject: str,
        ttl_seconds: int,
        claims: Optional[dict[str, Any]] = None,
        previous: Optional[StateToken] = None,
    ) -> tuple[str, StateToken]:
        check_transition(previous.stage if previous else None, stage)

        now = int(self._clock())
        state = StateToken(
            stage=stage,
            subject=subject,
            token_id=secrets.token_hex(16),
            issued_at=now,
            expires_at=now + ttl_seconds,
            claims=dict(claims or {}),
        )
        payload = json.dumps(
            {
                "stg": state.stage.value,
                "sub": state.subject,
                "jti": state.token_id,
                "iat": state.issued_at,
                "exp": state.expires_at,
                "clm": state.claims,
            },
            separators=(",", ":"),
            sort_keys=True,
        )
        encoded = _b64encode(payload.encode("utf-8"))
        return f"{encoded}.{self._sign(encoded)}", state

    def decode(self, token: str, expected: Optional[AuthStage] = None) -> StateToken:
        # base64url payload and hex signature are both ASCII
        if not token or "." not in token or not token.isascii():
            raise InvalidStateTokenError("Malformed token")
        encoded, signature = token.rsplit(".", 1)
        if not hmac.compare_digest(self._sign(encoded), signature):
            raise InvalidStateTokenError("Bad signature")

        try:
            data = json.loads(_b64decode(encoded).decode("utf-8"))
            state = StateToken(
                stage=AuthStage(data["stg"]),
                subject=str(data["sub"]),
                token_id=str(data["jti"]),
                issued_at=int(data["iat"]),
                expires_at=int(data["exp"]),
                claims=dict(data.get("clm") or {}),
            )
        except (ValueError, KeyError, TypeError) as error:
            raise InvalidStateTokenError("Malformed token") from error

        if int(self._clock()) >= state.expires_at:
            raise InvalidStateTokenError("Token expired")
        if expected is not None and state.stage != expected:
            raise InvalidStateTokenError("Token is not valid for this step")
        return state

    def remaining_seconds(self, state: StateToken) -> int:
        return max(0, state.expires_at - int(self._clock()))

    def _sign(self, encoded: str) -> str:
        return hmac.new(self._secret, encoded.encode("ascii"), hashlib.sha256).hexdigest()
