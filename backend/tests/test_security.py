"""
Tests for the Argon2 password hasher and the JWT token signer.

Security properties covered:
- Hashes are salted Argon2id and never contain the plaintext
- Malformed hashes and empty input fail closed instead of raising
- Tampered, foreign-key and expired tokens are rejected
"""

import uuid
from datetime import datetime, timedelta, timezone

import jwt
import pytest

from classnotes.exceptions import ForbiddenError, InvalidTokenError, TokenExpiredError
from classnotes.services.security import Argon2PasswordHasher, JWTTokenSigner
from conftest import TEST_SECRET


class TestArgon2PasswordHasher:

    def test_hash_is_argon2id_with_configured_parameters(self, hasher):
        password_hash = hasher.hash("SecurePassword123!")

        assert password_hash.startswith("$argon2id$")
        assert "m=1024" in password_hash
        assert "t=1" in password_hash
        assert "SecurePassword123!" not in password_hash

    def test_default_parameters(self):
        password_hash = Argon2PasswordHasher().hash("pw")
        assert "m=65536,t=3,p=4" in password_hash

    def test_same_password_hashes_differently(self, hasher):
        assert hasher.hash("SamePassword") != hasher.hash("SamePassword")

    def test_verify_accepts_correct_password(self, hasher):
        password_hash = hasher.hash("admin123")
        assert hasher.verify("admin123", password_hash) is True

    def test_verify_rejects_wrong_password(self, hasher):
        password_hash = hasher.hash("admin123")
        assert hasher.verify("admin124", password_hash) is False

    def test_verify_rejects_empty_inputs(self, hasher):
        password_hash = hasher.hash("admin123")
        assert hasher.verify("", password_hash) is False
        assert hasher.verify("admin123", "") is False

    def test_verify_handles_corrupted_hash(self, hasher):
        """Corrupted hash returns False instead of crashing."""
        assert hasher.verify("password", "$argon2id$v=19$corrupted") is False
        assert hasher.verify("password", "not-a-hash-at-all") is False

    def test_hash_rejects_empty_password(self, hasher):
        with pytest.raises(ValueError, match="Password cannot be empty"):
            hasher.hash("")


class TestJWTTokenSigner:

    def test_rejects_short_secret(self):
        with pytest.raises(ValueError, match="at least 32 characters"):
            JWTTokenSigner(secret_key="too-short")

    def test_token_payload_structure(self, signer):
        user_id = uuid.uuid4()
        token = signer.issue(user_id, "admin")

        payload = jwt.decode(token, options={"verify_signature": False})
        assert payload["sub"] == str(user_id)
        assert payload["username"] == "admin"
        assert payload["exp"] - payload["iat"] == 24 * 3600

    def test_verify_round_trips_identity(self, signer):
        user_id = uuid.uuid4()
        identity = signer.verify(signer.issue(user_id, "admin"))

        assert identity.user_id == user_id
        assert identity.username == "admin"

    def test_verify_rejects_token_signed_with_other_secret(self, signer):
        other = JWTTokenSigner(secret_key="a-completely-different-secret-of-enough-length")
        token = other.issue(uuid.uuid4(), "admin")

        with pytest.raises(InvalidTokenError):
            signer.verify(token)

    def test_verify_rejects_modified_payload(self, signer):
        """Swapping the payload segment breaks the signature."""
        token = signer.issue(uuid.uuid4(), "alice")
        forged_payload = jwt.encode(
            {"sub": str(uuid.uuid4()), "username": "mallory", "exp": 9999999999},
            "whatever-key-whatever-key-whatever-key",
            algorithm="HS256",
        ).split(".")[1]
        header, _, signature = token.split(".")

        with pytest.raises(InvalidTokenError):
            signer.verify(f"{header}.{forged_payload}.{signature}")

    @pytest.mark.parametrize("token", ["", "garbage", "a.b.c"])
    def test_verify_rejects_malformed_tokens(self, signer, token):
        with pytest.raises(InvalidTokenError):
            signer.verify(token)

    def test_verify_rejects_expired_token(self, signer):
        past = datetime.now(timezone.utc) - timedelta(hours=2)
        token = jwt.encode(
            {
                "sub": str(uuid.uuid4()),
                "username": "admin",
                "iat": past - timedelta(hours=24),
                "exp": past,
            },
            TEST_SECRET,
            algorithm="HS256",
        )

        with pytest.raises(TokenExpiredError) as exc_info:
            signer.verify(token)
        assert isinstance(exc_info.value, ForbiddenError)

    def test_verify_requires_username_claim(self, signer):
        token = jwt.encode(
            {"sub": str(uuid.uuid4()), "exp": datetime.now(timezone.utc) + timedelta(hours=1)},
            TEST_SECRET,
            algorithm="HS256",
        )
        with pytest.raises(InvalidTokenError):
            signer.verify(token)

    def test_verify_rejects_non_uuid_subject(self, signer):
        token = jwt.encode(
            {
                "sub": "123",
                "username": "admin",
                "exp": datetime.now(timezone.utc) + timedelta(hours=1),
            },
            TEST_SECRET,
            algorithm="HS256",
        )
        with pytest.raises(InvalidTokenError):
            signer.verify(token)
