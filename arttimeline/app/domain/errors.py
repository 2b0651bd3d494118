from __future__ import annotations


class ArtTimelineError(Exception):
    pass


class ConfigurationError(ArtTimelineError):
    def __init__(self, errors: list[str]):
        super().__init__(f"Configuration errors: {', '.join(errors)}")
        self.errors = errors


class RepositoryError(ArtTimelineError):
    def __init__(self, operation: str, reason: str):
        super().__init__(f"Repository error during {operation}: {reason}")
        self.operation = operation
        self.reason = reason


class AuthError(ArtTimelineError):
    pass


class InvalidCredentialsError(AuthError):
    def __init__(self, message: str = "Invalid email or password"):
        super().__init__(message)


class InvalidStateTokenError(AuthError):
    def __init__(self, reason: str = "Invalid or expired token"):
        super().__init__(reason)
        self.reason = reason


class StageTransitionError(AuthError):
    def __init__(self, current: str | None, target: str):
        super().__init__(f"Cannot move from {current or 'start'} to {target}")
        self.current = current
        self.target = target


class InvalidOtpError(AuthError):
    def __init__(self, message: str = "Invalid or expired OTP code"):
        super().__init__(message)


class EmailAlreadyRegisteredError(AuthError):
    def __init__(self, email: str):
        super().__init__(f"Email already registered: {email}")
        self.email = email


class WeakPasswordError(AuthError):
    def __init__(self, reason: str = "Password does not meet the strength requirements"):
        super().__init__(reason)
        self.reason = reason


class ResendTooSoonError(AuthError):
    def __init__(self, retry_after_seconds: int):
        super().__init__(
            f"Please wait {retry_after_seconds} seconds before requesting another code."
        )
        self.retry_after_seconds = retry_after_seconds


class OtpDeliveryError(AuthError):
    def __init__(self, email: str, reason: str = "Delivery failed"):
        super().__init__(f"Failed to send verification code to {email}: {reason}")
        self.email = email
        self.reason = reason
