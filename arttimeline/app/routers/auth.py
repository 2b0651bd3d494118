# arttimeline/app/routers/auth.py
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from arttimeline.app.deps import (
    CurrentUser,
    bearer_token,
    get_auth_service,
    get_client_key,
    get_current_account,
    get_current_user,
)
from arttimeline.app.domain.errors import (
    AuthError,
    EmailAlreadyRegisteredError,
    InvalidCredentialsError,
    InvalidOtpError,
    InvalidStateTokenError,
    OtpDeliveryError,
    RepositoryError,
    ResendTooSoonError,
    StageTransitionError,
    WeakPasswordError,
)
from arttimeline.app.domain.models import User
from arttimeline.app.schemas.auth import (
    AuthStepResponse,
    ForgotPasswordRequest,
    LoginRequest,
    MessageResponse,
    OtpVerifyRequest,
    RegisterRequest,
    ResendRequest,
    ResetPasswordRequest,
    UserPayload,
)
from arttimeline.app.services.auth_service import AuthService, AuthStep
from arttimeline.services.tokens import AuthStage

router = APIRouter(prefix="/auth", tags=["auth"])

_STATUS_BY_ERROR: dict[type[AuthError], int] = {
    InvalidCredentialsError: 401,
    InvalidStateTokenError: 401,
    StageTransitionError: 409,
    InvalidOtpError: 400,
    EmailAlreadyRegisteredError: 409,
    WeakPasswordError: 400,
    ResendTooSoonError: 429,
    OtpDeliveryError: 502,
}


def _http_error(exc: Exception) -> HTTPException:
    if isinstance(exc, ResendTooSoonError):
        return HTTPException(
            status_code=429,
            detail=str(exc),
            headers={"Retry-After": str(exc.retry_after_seconds)},
        )
    if isinstance(exc, RepositoryError):
        return HTTPException(status_code=503, detail=str(exc))
    for error_type, status_code in _STATUS_BY_ERROR.items():
        if isinstance(exc, error_type):
            return HTTPException(status_code=status_code, detail=str(exc))
    return HTTPException(status_code=400, detail=str(exc))


def _step_response(step: AuthStep, message: str | None = None) -> AuthStepResponse:
    user = None
    if step.user is not None:
        user = UserPayload(**CurrentUser.from_user(step.user).model_dump())
    return AuthStepResponse(
        stage=step.stage.value,
        token=step.token,
        expiresAt=step.expires_at,
        refreshToken=step.refresh_token,
        user=user,
        message=message,
    )


# Registration

@router.post("/register", response_model=AuthStepResponse, status_code=201)
async def register(payload: RegisterRequest, auth: AuthService = Depends(get_auth_service)):
    try:
        step = await auth.register(payload.name, payload.email, payload.password)
    except (AuthError, RepositoryError) as exc:
        raise _http_error(exc)
    return _step_response(step, "Verification code sent to your email")


@router.post("/register/verify", response_model=AuthStepResponse)
async def verify_registration(payload: OtpVerifyRequest, auth: AuthService = Depends(get_auth_service)):
    try:
        step = await auth.verify_registration(payload.token, payload.otp)
    except (AuthError, RepositoryError) as exc:
        raise _http_error(exc)
    return _step_response(step, "Email verified")


@router.post("/register/resend", response_model=AuthStepResponse)
async def resend_registration(
    payload: ResendRequest,
    client_key: str = Depends(get_client_key),
    auth: AuthService = Depends(get_auth_service),
):
    try:
        step = await auth.resend_code(payload.token, AuthStage.REGISTRATION_PENDING, client_key)
    except (AuthError, RepositoryError) as exc:
        raise _http_error(exc)
    return _step_response(step, "A new verification code was sent")


# Login and two-factor

@router.post("/login", response_model=AuthStepResponse)
async def login(payload: LoginRequest, auth: AuthService = Depends(get_auth_service)):
    try:
        step = await auth.login(payload.email, payload.password)
    except (AuthError, RepositoryError) as exc:
        raise _http_error(exc)
    if step.stage is AuthStage.TWO_FACTOR_PENDING:
        return _step_response(step, "Two-factor code sent to your email")
    return _step_response(step)


@router.post("/2fa/verify", response_model=AuthStepResponse)
async def verify_two_factor(payload: OtpVerifyRequest, auth: AuthService = Depends(get_auth_service)):
    try:
        step = await auth.verify_two_factor(payload.token, payload.otp)
    except (AuthError, RepositoryError) as exc:
        raise _http_error(exc)
    return _step_response(step)


@router.post("/2fa/resend", response_model=AuthStepResponse)
async def resend_two_factor(
    payload: ResendRequest,
    client_key: str = Depends(get_client_key),
    auth: AuthService = Depends(get_auth_service),
):
    try:
        step = await auth.resend_code(payload.token, AuthStage.TWO_FACTOR_PENDING, client_key)
    except (AuthError, RepositoryError) as exc:
        raise _http_error(exc)
    return _step_response(step, "A new verification code was sent")


@router.post("/2fa/enable", response_model=UserPayload)
async def enable_two_factor(
    user: User = Depends(get_current_account),
    auth: AuthService = Depends(get_auth_service),
):
    try:
        updated = await auth.set_two_factor(user, True)
    except (AuthError, RepositoryError) as exc:
        raise _http_error(exc)
    return UserPayload(**CurrentUser.from_user(updated).model_dump())


@router.post("/2fa/disable", response_model=UserPayload)
async def disable_two_factor(
    user: User = Depends(get_current_account),
    auth: AuthService = Depends(get_auth_service),
):
    try:
        updated = await auth.set_two_factor(user, False)
    except (AuthError, RepositoryError) as exc:
        raise _http_error(exc)
    return UserPayload(**CurrentUser.from_user(updated).model_dump())


# Password reset

@router.post("/password/forgot", response_model=AuthStepResponse)
async def forgot_password(payload: ForgotPasswordRequest, auth: AuthService = Depends(get_auth_service)):
    try:
        step = await auth.request_password_reset(payload.email)
    except (AuthError, RepositoryError) as exc:
        raise _http_error(exc)
    return _step_response(step, "If an account exists for this email, a reset code was sent")


@router.post("/password/verify", response_model=AuthStepResponse)
async def verify_password_reset(payload: OtpVerifyRequest, auth: AuthService = Depends(get_auth_service)):
    try:
        step = await auth.verify_password_reset(payload.token, payload.otp)
    except (AuthError, RepositoryError) as exc:
        raise _http_error(exc)
    return _step_response(step)


@router.post("/password/resend", response_model=AuthStepResponse)
async def resend_password_reset(
    payload: ResendRequest,
    client_key: str = Depends(get_client_key),
    auth: AuthService = Depends(get_auth_service),
):
    try:
        step = await auth.resend_code(payload.token, AuthStage.RESET_OTP_SENT, client_key)
    except (AuthError, RepositoryError) as exc:
        raise _http_error(exc)
    return _step_response(step, "A new verification code was sent")


@router.post("/password/reset", response_model=MessageResponse)
async def reset_password(payload: ResetPasswordRequest, auth: AuthService = Depends(get_auth_service)):
    try:
        await auth.reset_password(payload.token, payload.password)
    except (AuthError, RepositoryError) as exc:
        raise _http_error(exc)
    return MessageResponse(message="Password updated")


# Session

@router.post("/logout", response_model=MessageResponse)
async def logout(token: str = Depends(bearer_token), auth: AuthService = Depends(get_auth_service)):
    try:
        await auth.logout(token)
    except (AuthError, RepositoryError) as exc:
        raise _http_error(exc)
    return MessageResponse(message="Logged out")


@router.get("/me", response_model=CurrentUser)
async def me(user: CurrentUser = Depends(get_current_user)):
    return user
