"""
Tests for password hashing and session tokens.
"""

from datetime import UTC, datetime, timedelta

import pytest

from lms_api.core.errors import ConfigurationError, InvalidInputError
from lms_api.core.security import (
    CredentialVault,
    SessionConfig,
    SessionIssuer,
    generate_temporary_password,
    hash_password,
    verify_password,
)

# ============================================
# Password hashing
# ============================================


class TestPasswordHashing:
    def test_hash_then_verify(self):
        hashed = hash_password("s3cret-pass", rounds=4)

        assert hashed != "s3cret-pass"
        assert verify_password("s3cret-pass", hashed) is True
        assert verify_password("wrong-pass", hashed) is False

    def test_same_password_gets_different_salts(self):
        first = hash_password("s3cret-pass", rounds=4)
        second = hash_password("s3cret-pass", rounds=4)

        assert first != second
        assert verify_password("s3cret-pass", first)
        assert verify_password("s3cret-pass", second)

    def test_empty_password_rejected(self):
        with pytest.raises(InvalidInputError):
            hash_password("", rounds=4)

    def test_password_over_72_bytes_rejected(self):
        # 37 two-byte characters = 74 bytes
        with pytest.raises(InvalidInputError):
            hash_password("é" * 37, rounds=4)

    def test_password_of_exactly_72_bytes_accepted(self):
        hashed = hash_password("a" * 72, rounds=4)
        assert verify_password("a" * 72, hashed)

    @pytest.mark.parametrize("stored", [None, "", "not-a-bcrypt-hash", "$2b$04$short"])
    def test_verify_never_raises_on_bad_stored_hash(self, stored):
        assert verify_password("anything", stored) is False

    def test_verify_empty_candidate(self):
        hashed = hash_password("s3cret-pass", rounds=4)
        assert verify_password("", hashed) is False

    def test_temporary_password_is_random(self):
        first = generate_temporary_password()
        second = generate_temporary_password()

        assert len(first) == 16
        assert first != second


class TestCredentialVault:
    def test_uses_configured_rounds(self):
        vault = CredentialVault(rounds=5)
        assert vault.hash("password123").startswith("$2b$05$")

    def test_temporary_password_expiry(self):
        vault = CredentialVault(rounds=4, temporary_password_ttl=timedelta(hours=2))
        expiry = vault.temporary_password_expiry()

        remaining = expiry - datetime.now(UTC)
        assert timedelta(hours=1, minutes=59) < remaining <= timedelta(hours=2)


# ============================================
# Session tokens
# ============================================


class TestSessionIssuer:
    @pytest.mark.parametrize("secret", ["", "   "])
    def test_missing_secret_is_fatal(self, secret):
        with pytest.raises(ConfigurationError):
            SessionIssuer(SessionConfig(secret_key=secret))

    def test_issue_and_decode(self, issuer):
        token = issuer.issue("user-1", "instructor", extra_claims={"email": "ada@example.com"})
        claims = issuer.decode(token)

        assert claims["sub"] == "user-1"
        assert claims["role"] == "instructor"
        assert claims["type"] == "access"
        assert claims["email"] == "ada@example.com"
        assert claims["exp"] > claims["iat"]

    def test_extra_claims_cannot_override_identity(self, issuer):
        token = issuer.issue("user-1", "student", extra_claims={"sub": "other", "role": "admin"})
        claims = issuer.decode(token)

        assert claims["sub"] == "user-1"
        assert claims["role"] == "student"

    def test_expired_token_decodes_to_none(self, issuer):
        token = issuer.issue("user-1", "student", expires_delta=timedelta(seconds=-10))
        assert issuer.decode(token) is None

    def test_token_signed_with_other_key_rejected(self, issuer):
        other = SessionIssuer(SessionConfig(secret_key="a-different-key"))
        token = other.issue("user-1", "admin")
        assert issuer.decode(token) is None

    def test_garbage_token_rejected(self, issuer):
        assert issuer.decode("not.a.jwt") is None
