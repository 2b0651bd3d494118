# arttimeline/app/schemas/auth.py
from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field, model_validator

OTP_PATTERN = r"^\d{6}$"


class _PasswordConfirmation(BaseModel):
    password: str = Field(..., min_length=8, max_length=128)
    confirmPassword: str = Field(..., min_length=8, max_length=128)

    @model_validator(mode="after")
    def passwords_match(self):
        if self.password != self.confirmPassword:
            raise ValueError("Passwords do not match")
        return self


class RegisterRequest(_PasswordConfirmation):
    name: str = Field(..., min_length=1, max_length=120)
    email: str = Field(..., min_length=3, max_length=254, pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class LoginRequest(BaseModel):
    email: str = Field(..., min_length=3, max_length=254)
    password: str = Field(..., min_length=1)


class ForgotPasswordRequest(BaseModel):
    email: str = Field(..., min_length=3, max_length=254)


class OtpVerifyRequest(BaseModel):
    token: str = Field(..., min_length=1)
    otp: str = Field(..., pattern=OTP_PATTERN)


class ResendRequest(BaseModel):
    token: str = Field(..., min_length=1)


class ResetPasswordRequest(_PasswordConfirmation):
    token: str = Field(..., min_length=1)


class UserPayload(BaseModel):
    id: str
    name: Optional[str] = None
    email: str
    twoFactorEnabled: bool = False


class AuthStepResponse(BaseModel):
    stage: str
    token: Optional[str] = None
    expiresAt: Optional[int] = None
    refreshToken: Optional[str] = None
    user: Optional[UserPayload] = None
    message: Optional[str] = None


class MessageResponse(BaseModel):
    message: str
