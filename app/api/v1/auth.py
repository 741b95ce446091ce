"""
DailyThree — API v1: Auth
Register, login, current user, password change and password reset.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from app.config import Settings, get_settings
from app.core.security import (
    CurrentUser,
    TokenIssuer,
    get_current_user,
    get_token_issuer,
)
from app.database import get_db
from app.services.auth import AuthResult, AuthService
from app.services.notifications import ResetLinkDelivery, get_reset_delivery

router = APIRouter(prefix="/auth", tags=["auth"])

RESET_REQUESTED_MESSAGE = (
    "If an account with that email exists, a password reset link has been sent."
)


# ── Request / Response schemas ────────────────────────────────────────────────


class RegisterRequest(BaseModel):
    email: str = Field(..., max_length=255)
    password: str = Field(..., max_length=256)
    username: Optional[str] = Field(None, max_length=100)


class LoginRequest(BaseModel):
    email: str
    password: str


class PasswordResetRequest(BaseModel):
    email: str


class ResetPasswordRequest(BaseModel):
    new_password: str = Field(..., max_length=256)


class ChangePasswordRequest(BaseModel):
    current_password: str
    new_password: str = Field(..., max_length=256)


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    email: str
    username: Optional[str]


class AuthResponse(BaseModel):
    message: str
    user: UserResponse
    token: str


class MeResponse(BaseModel):
    user: UserResponse


class MessageResponse(BaseModel):
    message: str


# ── Dependencies ──────────────────────────────────────────────────────────────


def get_auth_service(
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    tokens: TokenIssuer = Depends(get_token_issuer),
    reset_delivery: ResetLinkDelivery = Depends(get_reset_delivery),
) -> AuthService:
    return AuthService(db, settings, tokens=tokens, reset_delivery=reset_delivery)


def _auth_response(message: str, result: AuthResult) -> AuthResponse:
    return AuthResponse(
        message=message,
        user=UserResponse.model_validate(result.user),
        token=result.token,
    )


# ── Endpoints ─────────────────────────────────────────────────────────────────


@router.post(
    "/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED
)
def register(body: RegisterRequest, service: AuthService = Depends(get_auth_service)):
    """Create an account and return it with a session token."""
    result = service.register(body.email, body.password, body.username)
    return _auth_response("User registered successfully.", result)


@router.post("/login", response_model=AuthResponse)
def login(body: LoginRequest, service: AuthService = Depends(get_auth_service)):
    """
    Authenticate with email + password.
    Unknown email and wrong password produce the same 401.
    """
    result = service.login(body.email, body.password)
    return _auth_response("Login successful.", result)


@router.get("/me", response_model=MeResponse)
def me(current_user: CurrentUser = Depends(get_current_user)):
    """Return the currently authenticated user's profile."""
    return {"user": current_user.to_dict()}


@router.post("/request-password-reset", response_model=MessageResponse)
def request_password_reset(
    body: PasswordResetRequest, service: AuthService = Depends(get_auth_service)
):
    service.request_password_reset(body.email)
    return MessageResponse(message=RESET_REQUESTED_MESSAGE)


@router.post("/reset-password/{token}", response_model=MessageResponse)
def reset_password(
    token: str,
    body: ResetPasswordRequest,
    service: AuthService = Depends(get_auth_service),
):
    service.reset_password(token, body.new_password)
    return MessageResponse(message="Password has been reset successfully.")


@router.put("/change-password", response_model=MessageResponse)
def change_password(
    body: ChangePasswordRequest,
    current_user: CurrentUser = Depends(get_current_user),
    service: AuthService = Depends(get_auth_service),
):
    service.change_password(
        current_user.user_id, body.current_password, body.new_password
    )
    return MessageResponse(message="Password changed successfully.")
