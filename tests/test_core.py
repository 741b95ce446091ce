"""
DailyThree — Core Module Tests
Covers app/config.py, app/core/security.py, app/core/exceptions.py,
app/core/decimal_utils.py and app/core/patch.py.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Optional

import pytest
from jose import jwt
from pydantic import BaseModel, ValidationError

from app.config import DEV_JWT_SECRET, Settings
from app.core.decimal_utils import display_round, monetary
from app.core.exceptions import (
    AIServiceUnavailableError,
    AuthenticationError,
    CompletionConflictError,
    DuplicateEmailError,
    InvalidCredentialsError,
    InvalidInputError,
    InvalidOrExpiredTokenError,
    InvalidTokenError,
    NoUpdateFieldsError,
    ResourceNotFoundError,
    WeakPasswordError,
)
from app.core.patch import apply_patch, blank_to_none
from app.core.security import PasswordHasher, TokenIssuer, warn_if_dev_signing_key

SECRET = "unit-test-secret-0123456789abcdef"


# ─────────────────────────────────────────────────────────────────────────────
# SETTINGS
# ─────────────────────────────────────────────────────────────────────────────


class TestSettings:
    def test_production_without_secret_fails(self):
        with pytest.raises(ValidationError):
            Settings(ENVIRONMENT="production", JWT_SECRET=None)

    def test_production_with_secret_ok(self):
        s = Settings(ENVIRONMENT="production", JWT_SECRET="s3cret")
        assert s.is_production
        assert s.jwt_signing_key == "s3cret"
        assert not s.uses_dev_jwt_secret

    def test_development_falls_back_to_dev_key(self):
        s = Settings(ENVIRONMENT="development", JWT_SECRET=None)
        assert s.uses_dev_jwt_secret
        assert s.jwt_signing_key == DEV_JWT_SECRET

    def test_unknown_environment_rejected(self):
        with pytest.raises(ValidationError):
            Settings(ENVIRONMENT="staging")

    def test_zero_min_length_rejected(self):
        with pytest.raises(ValidationError):
            Settings(PASSWORD_MIN_LENGTH=0)

    def test_is_sqlite(self):
        assert Settings(DATABASE_URL="sqlite:///./x.db").is_sqlite
        assert not Settings(DATABASE_URL="postgresql://u:p@h/db").is_sqlite


# ─────────────────────────────────────────────────────────────────────────────
# PASSWORD HASHER
# ─────────────────────────────────────────────────────────────────────────────


class TestPasswordHasher:
    hasher = PasswordHasher(rounds=1000)

    def test_hash_is_not_plaintext(self):
        hashed = self.hasher.hash("longpass1")
        assert hashed != "longpass1"
        assert "longpass1" not in hashed

    def test_verify_round_trip(self):
        hashed = self.hasher.hash("longpass1")
        assert self.hasher.verify("longpass1", hashed)
        assert not self.hasher.verify("longpass2", hashed)

    def test_salted(self):
        assert self.hasher.hash("same-password") != self.hasher.hash("same-password")

    def test_malformed_hash_never_matches(self):
        assert not self.hasher.verify("longpass1", "not-a-hash")

    def test_long_password_supported(self):
        secret = "x" * 200
        assert self.hasher.verify(secret, self.hasher.hash(secret))


# ─────────────────────────────────────────────────────────────────────────────
# TOKEN ISSUER
# ─────────────────────────────────────────────────────────────────────────────


class TestTokenIssuer:
    issuer = TokenIssuer(secret=SECRET, lifetime_minutes=60)

    def test_issue_and_verify(self):
        token = self.issuer.issue("user-1", "alice@x.com")
        claims = self.issuer.verify(token)
        assert claims.user_id == "user-1"
        assert claims.email == "alice@x.com"
        assert claims.expires_at - claims.issued_at == timedelta(minutes=60)

    def test_wrong_secret_rejected(self):
        token = TokenIssuer(secret="other-secret").issue("user-1", "alice@x.com")
        with pytest.raises(InvalidTokenError):
            self.issuer.verify(token)

    def test_tampered_token_rejected(self):
        token = self.issuer.issue("user-1", "alice@x.com")
        head, body, sig = token.split(".")
        tampered = ".".join([head, body, sig[:-2] + ("AA" if sig[-2:] != "AA" else "BB")])
        with pytest.raises(InvalidTokenError):
            self.issuer.verify(tampered)

    def test_garbage_rejected(self):
        with pytest.raises(InvalidTokenError):
            self.issuer.verify("not.a.jwt")

    def test_expired_token_rejected(self):
        long_ago = datetime.now(tz=timezone.utc) - timedelta(days=2)
        token = self.issuer.issue("user-1", "alice@x.com", now=long_ago)
        with pytest.raises(InvalidTokenError):
            self.issuer.verify(token)

    def test_missing_claims_rejected(self):
        now = datetime.now(tz=timezone.utc)
        token = jwt.encode(
            {"sub": "user-1", "iat": now, "exp": now + timedelta(minutes=5)},
            SECRET,
            algorithm="HS256",
        )
        with pytest.raises(InvalidTokenError) as exc_info:
            self.issuer.verify(token)
        assert "missing required claims" in exc_info.value.message

    def test_from_settings_uses_signing_key(self):
        s = Settings(ENVIRONMENT="test", JWT_SECRET=SECRET, JWT_EXPIRY_MINUTES=5)
        issuer = TokenIssuer.from_settings(s)
        claims = self.issuer.verify(issuer.issue("user-9", "z@x.com"))
        assert claims.expires_at - claims.issued_at == timedelta(minutes=5)


class TestDevSigningKeyWarning:
    def test_building_issuers_does_not_log(self, caplog):
        s = Settings(ENVIRONMENT="development", JWT_SECRET=None)
        with caplog.at_level(logging.WARNING, logger="app.core.security"):
            for _ in range(4):
                TokenIssuer.from_settings(s)
        assert caplog.records == []

    def test_startup_check_warns_once(self, caplog):
        s = Settings(ENVIRONMENT="development", JWT_SECRET=None)
        with caplog.at_level(logging.WARNING, logger="app.core.security"):
            assert warn_if_dev_signing_key(s) is True
        assert len(caplog.records) == 1
        assert "JWT_SECRET is not set" in caplog.records[0].getMessage()

    def test_no_warning_with_secret_or_in_tests(self):
        assert warn_if_dev_signing_key(Settings(ENVIRONMENT="development", JWT_SECRET=SECRET)) is False
        assert warn_if_dev_signing_key(Settings(ENVIRONMENT="test", JWT_SECRET=None)) is False


# ─────────────────────────────────────────────────────────────────────────────
# EXCEPTIONS
# ─────────────────────────────────────────────────────────────────────────────


class TestExceptions:
    @pytest.mark.parametrize(
        "exc, status, code",
        [
            (InvalidInputError("bad"), 400, "VALIDATION_ERROR"),
            (WeakPasswordError(8), 400, "WEAK_PASSWORD"),
            (NoUpdateFieldsError(), 400, "NO_UPDATE_FIELDS"),
            (InvalidOrExpiredTokenError(), 400, "INVALID_OR_EXPIRED_TOKEN"),
            (AuthenticationError(), 401, "AUTHENTICATION_ERROR"),
            (InvalidTokenError(), 401, "INVALID_TOKEN"),
            (InvalidCredentialsError(), 401, "INVALID_CREDENTIALS"),
            (ResourceNotFoundError("Task", "t1"), 404, "RESOURCE_NOT_FOUND"),
            (DuplicateEmailError(), 409, "DUPLICATE_EMAIL"),
            (CompletionConflictError("h1", "2026-01-01"), 409, "COMPLETION_CONFLICT"),
            (AIServiceUnavailableError(), 503, "AI_UNAVAILABLE"),
        ],
    )
    def test_status_and_code(self, exc, status, code):
        assert exc.http_status_code == status
        assert exc.error_code == code

    def test_to_dict_shape(self):
        body = ResourceNotFoundError("Task", "t1").to_dict()
        assert body["error_code"] == "RESOURCE_NOT_FOUND"
        assert body["message"] == "Task not found or not authorized."
        assert body["detail"] == {"resource": "task", "id": "t1"}

    def test_invalid_credentials_message_is_uniform(self):
        assert InvalidCredentialsError().message == "Invalid credentials."


# ─────────────────────────────────────────────────────────────────────────────
# DECIMAL UTILS
# ─────────────────────────────────────────────────────────────────────────────


class TestMonetary:
    def test_none_is_zero(self):
        assert monetary(None) == Decimal("0")

    def test_float_via_string(self):
        assert monetary(0.1) == Decimal("0.1")

    def test_invalid_type_raises(self):
        with pytest.raises(TypeError):
            monetary([1])

    def test_display_round_half_up(self):
        assert display_round(Decimal("2.345")) == Decimal("2.35")
        assert display_round(None) == Decimal("0.00")


# ─────────────────────────────────────────────────────────────────────────────
# PATCH HELPER
# ─────────────────────────────────────────────────────────────────────────────


class _Patch(BaseModel):
    title: Optional[str] = None
    category: Optional[str] = None


class _Row:
    def __init__(self):
        self.title = "old"
        self.category = "home"
        self.updated_at = None


class TestApplyPatch:
    def test_only_sent_fields_change(self):
        row = _Row()
        changes = apply_patch(row, _Patch(title="new"))
        assert changes == {"title": "new"}
        assert row.title == "new"
        assert row.category == "home"
        assert row.updated_at is not None

    def test_explicit_null_clears(self):
        row = _Row()
        apply_patch(row, _Patch(category=None))
        assert row.category is None

    def test_empty_patch_raises(self):
        with pytest.raises(NoUpdateFieldsError):
            apply_patch(_Row(), _Patch())

    def test_blank_to_none(self):
        assert blank_to_none("  ") is None
        assert blank_to_none("x") == "x"
        assert blank_to_none(3) == 3
