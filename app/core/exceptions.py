"""
DailyThree — Unified Custom Exceptions.
Each exception carries: message, error_code, http_status_code, optional detail dict.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

# ─────────────────────────────────────────────────────────────────────────────
# BASE
# ─────────────────────────────────────────────────────────────────────────────


class DailyThreeError(Exception):
    """Root exception for all DailyThree errors."""

    http_status_code: int = 400
    error_code: str = "DAILYTHREE_ERROR"

    def __init__(self, message: str, detail: Optional[Dict[str, Any]] = None) -> None:
        self.message = message
        self.detail = detail or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error_code": self.error_code,
            "message": self.message,
            "detail": self.detail,
        }


# ─────────────────────────────────────────────────────────────────────────────
# INPUT VALIDATION
# ─────────────────────────────────────────────────────────────────────────────


class InvalidInputError(DailyThreeError):
    http_status_code = 400
    error_code = "VALIDATION_ERROR"

    def __init__(
        self, message: str, errors: Optional[List[Dict[str, str]]] = None
    ) -> None:
        super().__init__(message=message, detail={"errors": errors} if errors else {})


class WeakPasswordError(InvalidInputError):
    error_code = "WEAK_PASSWORD"

    def __init__(self, min_length: int) -> None:
        self.min_length = min_length
        super().__init__(
            message=f"Password must be at least {min_length} characters long."
        )
        self.detail = {"min_length": min_length}


class NoUpdateFieldsError(InvalidInputError):
    error_code = "NO_UPDATE_FIELDS"

    def __init__(self) -> None:
        super().__init__(message="No update fields provided.")


# ─────────────────────────────────────────────────────────────────────────────
# AUTHENTICATION
# ─────────────────────────────────────────────────────────────────────────────


class AuthenticationError(DailyThreeError):
    http_status_code = 401
    error_code = "AUTHENTICATION_ERROR"

    def __init__(self, reason: str = "Not authorized.") -> None:
        super().__init__(message=reason, detail={"reason": reason})


class InvalidTokenError(AuthenticationError):
    error_code = "INVALID_TOKEN"

    def __init__(self, reason: str = "Not authorized, token failed.") -> None:
        super().__init__(reason)


class InvalidCredentialsError(DailyThreeError):
    """Same message for unknown email and wrong password."""

    http_status_code = 401
    error_code = "INVALID_CREDENTIALS"

    def __init__(self) -> None:
        super().__init__(message="Invalid credentials.")


class DuplicateEmailError(DailyThreeError):
    http_status_code = 409
    error_code = "DUPLICATE_EMAIL"

    def __init__(self) -> None:
        super().__init__(message="Email already in use.")


class InvalidOrExpiredTokenError(DailyThreeError):
    http_status_code = 400
    error_code = "INVALID_OR_EXPIRED_TOKEN"

    def __init__(self) -> None:
        super().__init__(message="Password reset token is invalid or has expired.")


# ─────────────────────────────────────────────────────────────────────────────
# RESOURCES
# ─────────────────────────────────────────────────────────────────────────────


class NotFoundError(DailyThreeError):
    http_status_code = 404
    error_code = "NOT_FOUND"


class ResourceNotFoundError(NotFoundError):
    """Raised for both missing rows and rows owned by another user."""

    error_code = "RESOURCE_NOT_FOUND"

    def __init__(self, resource: str, resource_id: str) -> None:
        self.resource = resource
        self.resource_id = resource_id
        super().__init__(
            message=f"{resource} not found or not authorized.",
            detail={"resource": resource.lower(), "id": resource_id},
        )


class CompletionConflictError(DailyThreeError):
    http_status_code = 409
    error_code = "COMPLETION_CONFLICT"

    def __init__(self, habit_id: str, date: str) -> None:
        super().__init__(
            message="Habit completion toggle conflict. Please try again.",
            detail={"habit_id": habit_id, "date": date},
        )


# ─────────────────────────────────────────────────────────────────────────────
# AI SUGGESTIONS
# ─────────────────────────────────────────────────────────────────────────────


class AIServiceUnavailableError(DailyThreeError):
    http_status_code = 503
    error_code = "AI_UNAVAILABLE"

    def __init__(
        self, message: str = "AI service could not generate a suggestion at this time."
    ) -> None:
        super().__init__(message=message)
