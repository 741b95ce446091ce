"""
DailyThree — Security Layer
Password hashing, JWT issuance/verification and the bearer-token session guard.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from app.config import Settings, get_settings
from app.core.exceptions import AuthenticationError, InvalidTokenError
from app.database import get_db
from app.models.users import User

logger = logging.getLogger(__name__)

# auto_error=False so a missing header becomes our 401, not FastAPI's 403
bearer_scheme = HTTPBearer(auto_error=False)


# ─── Password hashing ─────────────────────────────────────────────────────────


class PasswordHasher:
    """Salted one-way hashing with a tunable pbkdf2_sha256 work factor."""

    def __init__(self, rounds: int) -> None:
        # pbkdf2_sha256 avoids the bcrypt 72-byte password limit
        self._context = CryptContext(
            schemes=["pbkdf2_sha256"],
            deprecated="auto",
            pbkdf2_sha256__default_rounds=rounds,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "PasswordHasher":
        return cls(rounds=settings.PASSWORD_HASH_ROUNDS)

    def hash(self, secret: str) -> str:
        """Return a salted hash of the given plain-text secret."""
        return self._context.hash(secret)

    def verify(self, secret: str, hashed: str) -> bool:
        """Return True if the plain secret matches the hash. Malformed hashes never match."""
        try:
            return self._context.verify(secret, hashed)
        except (ValueError, TypeError):
            return False


# ─── JWT ──────────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class TokenClaims:
    user_id: str
    email: str
    issued_at: datetime
    expires_at: datetime


class TokenIssuer:
    """Signs and verifies time-limited bearer tokens carrying user identity."""

    def __init__(self, secret: str, algorithm: str = "HS256", lifetime_minutes: int = 10080) -> None:
        self._secret = secret
        self._algorithm = algorithm
        self._lifetime = timedelta(minutes=lifetime_minutes)

    @classmethod
    def from_settings(cls, settings: Settings) -> "TokenIssuer":
        return cls(
            secret=settings.jwt_signing_key,
            algorithm=settings.JWT_ALGORITHM,
            lifetime_minutes=settings.JWT_EXPIRY_MINUTES,
        )

    def issue(self, user_id: str, email: str, now: Optional[datetime] = None) -> str:
        """
        Create a signed JWT for the given user.

        :param user_id: Stored in the ``sub`` claim.
        :param email: Stored in the ``email`` claim.
        :param now: Override the issuance time (tests).
        """
        issued = now or datetime.now(tz=timezone.utc)
        payload: Dict[str, Any] = {
            "sub": user_id,
            "email": email,
            "iat": issued,
            "exp": issued + self._lifetime,
        }
        return jwt.encode(payload, self._secret, algorithm=self._algorithm)

    def verify(self, token: str) -> TokenClaims:
        """
        Decode and validate a JWT.
        Raises InvalidTokenError on bad signature, malformed input, missing claims or expiry.
        """
        try:
            payload = jwt.decode(token, self._secret, algorithms=[self._algorithm])
        except JWTError as exc:
            raise InvalidTokenError() from exc

        user_id = payload.get("sub")
        email = payload.get("email")
        if not user_id or not email or "iat" not in payload or "exp" not in payload:
            raise InvalidTokenError("Not authorized, token is missing required claims.")

        return TokenClaims(
            user_id=user_id,
            email=email,
            issued_at=datetime.fromtimestamp(payload["iat"], tz=timezone.utc),
            expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
        )


def warn_if_dev_signing_key(settings: Settings) -> bool:
    """
    Log once, at startup, when tokens will be signed with the development
    fallback key. Returns True if the warning was emitted.
    """
    if settings.uses_dev_jwt_secret and settings.ENVIRONMENT != "test":
        logger.warning(
            "JWT_SECRET is not set; using the development fallback key. "
            "Set a strong secret before deploying."
        )
        return True
    return False


def get_token_issuer(settings: Settings = Depends(get_settings)) -> TokenIssuer:
    return TokenIssuer.from_settings(settings)


# ─── FastAPI dependency ───────────────────────────────────────────────────────


class CurrentUser:
    """Represents the authenticated user attached to a request."""

    def __init__(self, user_id: str, email: str, username: Optional[str]) -> None:
        self.user_id = user_id
        self.email = email
        self.username = username

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.user_id, "email": self.email, "username": self.username}

    def __repr__(self) -> str:
        return f"CurrentUser(user_id={self.user_id!r}, email={self.email!r})"


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db),
    tokens: TokenIssuer = Depends(get_token_issuer),
) -> CurrentUser:
    """
    FastAPI dependency: extracts and validates the Bearer JWT, then loads the
    user it names. Every failure path is a 401.
    """
    if credentials is None:
        raise AuthenticationError("Not authorized, no token.")

    claims = tokens.verify(credentials.credentials)

    user = db.get(User, claims.user_id)
    if user is None:
        logger.info("Token for missing user %s rejected", claims.user_id)
        raise AuthenticationError("Not authorized, user not found.")

    return CurrentUser(user_id=user.id, email=user.email, username=user.username)
