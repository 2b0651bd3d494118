# arttimeline/app/infra/auth/base.py
"""
Abstract interface for the identity provider.
Accounts, passwords, e-mailed one-time codes and sessions all live there.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional
from uuid import UUID

from arttimeline.app.domain.models import AuthSession, User


class IdentityProvider(ABC):
    """
    Abstract interface for account operations.

    Implementations:
    - SupabaseIdentityProvider: Supabase Auth (GoTrue), codes sent with the
      project's e-mail templates

    Sending operations raise ResendTooSoonError when the provider rate limits
    and OtpDeliveryError when the e-mail could not be sent.
    """

    @abstractmethod
    def sign_up(self, name: str, email: str, password: str) -> User:
        """
        Create an unconfirmed account and e-mail a signup code.

        Raises:
            EmailAlreadyRegisteredError: If the address already has an account
            WeakPasswordError: If the provider rejects the password
        """
        pass

    @abstractmethod
    def resend_signup_code(self, email: str) -> None:
        pass

    @abstractmethod
    def verify_signup(self, email: str, code: str) -> AuthSession:
        """
        Confirm the account with its signup code.

        Raises:
            InvalidOtpError: If the code is wrong, expired or already used
        """
        pass

    @abstractmethod
    def sign_in_with_password(self, email: str, password: str) -> AuthSession:
        """
        Raises:
            InvalidCredentialsError: If the e-mail or password is wrong
        """
        pass

    @abstractmethod
    def send_login_code(self, email: str) -> None:
        """E-mail a one-time sign-in code to an existing account."""
        pass

    @abstractmethod
    def verify_login_code(self, email: str, code: str) -> AuthSession:
        pass

    @abstractmethod
    def send_recovery_code(self, email: str) -> None:
        """
        E-mail a password recovery code.

        The provider does not disclose whether the address has an account.
        """
        pass

    @abstractmethod
    def verify_recovery_code(self, email: str, code: str) -> User:
        """
        Check a recovery code and return the account it belongs to.
        The session the provider opens for the recovery is signed out.
        """
        pass

    @abstractmethod
    def update_password(self, user_id: UUID, password: str) -> None:
        pass

    @abstractmethod
    def set_two_factor(self, user_id: UUID, enabled: bool, confirmed_at: Optional[datetime]) -> User:
        pass

    @abstractmethod
    def get_user(self, access_token: str) -> Optional[User]:
        """
        Resolve a session access token.

        Returns:
            The user, or None if the token is invalid, expired or signed out
        """
        pass

    @abstractmethod
    def sign_out(self, access_token: str) -> None:
        pass
