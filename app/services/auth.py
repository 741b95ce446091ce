"""
DailyThree — Authentication Service
Registration, login, password change and token-based password reset.
"""

from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass
from datetime import timedelta
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.config import Settings
from app.core.exceptions import (
    DuplicateEmailError,
    InvalidCredentialsError,
    InvalidInputError,
    InvalidOrExpiredTokenError,
    NotFoundError,
    WeakPasswordError,
)
from app.core.security import PasswordHasher, TokenIssuer
from app.database import utcnow
from app.models.users import PasswordResetToken, User
from app.services.notifications import ResetLinkDelivery

logger = logging.getLogger(__name__)

RESET_TOKEN_BYTES = 32  # 256 bits


def normalize_email(email: Optional[str]) -> str:
    return (email or "").strip().lower()


def get_user_by_email(db: Session, email: str) -> User | None:
    return db.query(User).filter(User.email == normalize_email(email)).first()


@dataclass
class AuthResult:
    user: User
    token: str


class AuthService:
    """
    Orchestrates the credential store, password hasher, token issuer and
    reset-token ledger.

    Reset tokens are stored only as salted hashes, so a presented token is
    verified against every live (unexpired) row rather than looked up.
    """

    def __init__(
        self,
        db: Session,
        settings: Settings,
        tokens: Optional[TokenIssuer] = None,
        hasher: Optional[PasswordHasher] = None,
        reset_delivery: Optional[ResetLinkDelivery] = None,
    ) -> None:
        self.db = db
        self.settings = settings
        self.tokens = tokens or TokenIssuer.from_settings(settings)
        self.hasher = hasher or PasswordHasher.from_settings(settings)
        self.reset_delivery = reset_delivery

    # ── Validation helpers ─────────────────────────────────────────────────────

    def _check_strength(self, password: str) -> None:
        if len(password) < self.settings.PASSWORD_MIN_LENGTH:
            raise WeakPasswordError(self.settings.PASSWORD_MIN_LENGTH)

    # ── Register / login ───────────────────────────────────────────────────────

    def register(
        self, email: str, password: str, username: Optional[str] = None
    ) -> AuthResult:
        email = normalize_email(email)
        if not email or not password:
            raise InvalidInputError("Email and password are required.")

        # duplicate wins over weak password
        if get_user_by_email(self.db, email) is not None:
            raise DuplicateEmailError()
        self._check_strength(password)

        user = User(
            email=email,
            username=(username or "").strip() or None,
            password_hash=self.hasher.hash(password),
        )
        self.db.add(user)
        try:
            self.db.commit()
        except IntegrityError as exc:
            # a concurrent registration claimed the email after our check
            self.db.rollback()
            logger.info("Registration lost a race on an existing email")
            raise DuplicateEmailError() from exc
        self.db.refresh(user)

        logger.info("Registered user %s", user.id)
        return AuthResult(user=user, token=self.tokens.issue(user.id, user.email))

    def login(self, email: str, password: str) -> AuthResult:
        if not normalize_email(email) or not password:
            raise InvalidInputError("Email and password are required.")

        user = get_user_by_email(self.db, email)
        if user is None or not self.hasher.verify(password, user.password_hash):
            logger.info("Failed login attempt")
            raise InvalidCredentialsError()

        logger.info("Login: %s", user.id)
        return AuthResult(user=user, token=self.tokens.issue(user.id, user.email))

    # ── Password change ────────────────────────────────────────────────────────

    def change_password(
        self, user_id: str, current_password: str, new_password: str
    ) -> None:
        if not current_password or not new_password:
            raise InvalidInputError("Current password and new password are required.")
        self._check_strength(new_password)

        user = self.db.get(User, user_id)
        if user is None:
            raise NotFoundError("User not found.", detail={"user_id": user_id})
        if not self.hasher.verify(current_password, user.password_hash):
            raise InvalidCredentialsError()

        user.password_hash = self.hasher.hash(new_password)
        self.db.commit()
        logger.info("Password changed for user %s", user.id)

    # ── Password reset ─────────────────────────────────────────────────────────

    def request_password_reset(self, email: str) -> None:
        """
        Issue a reset token for the account, if one exists, and pass the
        reset link to the delivery hook. Unknown emails touch nothing, and
        the caller sees the same outcome either way.
        """
        if not normalize_email(email):
            raise InvalidInputError("Email is required.")

        user = get_user_by_email(self.db, email)
        if user is None:
            logger.info("Password reset requested for unknown email")
            return

        plain_token = secrets.token_hex(RESET_TOKEN_BYTES)
        expires_at = utcnow() + timedelta(
            minutes=self.settings.PASSWORD_RESET_EXPIRY_MINUTES
        )

        # two statements, no transaction spanning both
        self.db.query(PasswordResetToken).filter(
            PasswordResetToken.user_id == user.id
        ).delete(synchronize_session=False)
        self.db.commit()

        self.db.add(
            PasswordResetToken(
                user_id=user.id,
                token_hash=self.hasher.hash(plain_token),
                expires_at=expires_at,
            )
        )
        self.db.commit()
        logger.info("Password reset token issued for user %s", user.id)

        if self.reset_delivery is not None:
            reset_url = f"{self.settings.FRONTEND_URL.rstrip('/')}/reset-password/{plain_token}"
            self.reset_delivery.send_reset_link(user.email, reset_url)

    def reset_password(self, plain_token: str, new_password: str) -> None:
        if not plain_token or not new_password:
            raise InvalidInputError("Token and new password are required.")
        self._check_strength(new_password)

        live_tokens = (
            self.db.query(PasswordResetToken)
            .filter(PasswordResetToken.expires_at > utcnow())
            .all()
        )
        match = next(
            (
                row
                for row in live_tokens
                if self.hasher.verify(plain_token, row.token_hash)
            ),
            None,
        )
        if match is None:
            raise InvalidOrExpiredTokenError()

        user = self.db.get(User, match.user_id)
        if user is None:
            raise InvalidOrExpiredTokenError()

        user.password_hash = self.hasher.hash(new_password)
        self.db.delete(match)
        self.db.commit()
        logger.info("Password reset completed for user %s", user.id)
