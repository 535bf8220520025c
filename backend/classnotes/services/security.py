"""
ClassNotes Backend - Argon2 Hasher & JWT Signer
=================================================

What:  Concrete PasswordHasher (argon2-cffi, Argon2id) and TokenSigner
       (PyJWT, HS256 by default).

Token structure:
    {
        "sub": "6f1c2b9e-…",     # user id
        "username": "admin",
        "iat": 1700000000,       # issued at (Unix timestamp)
        "exp": 1700086400        # expires at (Unix timestamp)
    }
"""

import logging
import uuid
from datetime import datetime, timedelta, timezone

import jwt
from argon2 import PasswordHasher as _Argon2
from argon2 import Type
from argon2.exceptions import InvalidHashError, VerificationError

from classnotes.config import MIN_SECRET_LENGTH
from classnotes.exceptions import InvalidTokenError, TokenExpiredError
from classnotes.services.security_base import PasswordHasher, TokenIdentity, TokenSigner

logger = logging.getLogger(__name__)


class Argon2PasswordHasher(PasswordHasher):
    """
    Argon2id password hashing.

    Parameters default to the OWASP recommendation (t=3, m=64MiB, p=4)
    and are configurable through Settings; tests lower them for speed.
    """

    def __init__(
        self,
        time_cost: int = 3,
        memory_cost: int = 65536,
        parallelism: int = 4,
    ):
        self._hasher = _Argon2(
            time_cost=time_cost,
            memory_cost=memory_cost,
            parallelism=parallelism,
            hash_len=32,
            salt_len=16,
            type=Type.ID,
        )

    def hash(self, password: str) -> str:
        """
        Returns:
            Encoded hash, e.g. '$argon2id$v=19$m=65536,t=3,p=4$<salt>$<hash>'
        """
        if not password:
            raise ValueError("Password cannot be empty")
        return self._hasher.hash(password)

    def verify(self, password: str, password_hash: str) -> bool:
        if not password or not password_hash:
            return False
        try:
            return self._hasher.verify(password_hash, password)
        except (VerificationError, InvalidHashError):
            # VerifyMismatchError is a VerificationError subclass
            return False


class JWTTokenSigner(TokenSigner):
    """HMAC-signed JWT access tokens with a fixed lifetime."""

    def __init__(
        self,
        secret_key: str,
        expiry_hours: int = 24,
        algorithm: str = "HS256",
    ):
        if not secret_key or len(secret_key) < MIN_SECRET_LENGTH:
            raise ValueError(
                f"JWT secret key must be at least {MIN_SECRET_LENGTH} characters"
            )
        self._secret_key = secret_key
        self.expiry = timedelta(hours=expiry_hours)
        self.algorithm = algorithm

    def issue(self, user_id: uuid.UUID, username: str) -> str:
        now = datetime.now(timezone.utc)
        payload = {
            "sub": str(user_id),
            "username": username,
            "iat": now,
            "exp": now + self.expiry,
        }
        return jwt.encode(payload, self._secret_key, algorithm=self.algorithm)

    def verify(self, token: str) -> TokenIdentity:
        if not token:
            raise InvalidTokenError()

        try:
            # Verifies signature and exp; exp/sub/username must be present
            payload = jwt.decode(
                token,
                self._secret_key,
                algorithms=[self.algorithm],
                options={"require": ["exp", "sub", "username"]},
            )
        except jwt.ExpiredSignatureError:
            raise TokenExpiredError()
        except jwt.InvalidTokenError as e:
            logger.debug("Token rejected: %s", type(e).__name__)
            raise InvalidTokenError()

        try:
            user_id = uuid.UUID(payload["sub"])
        except (TypeError, ValueError):
            raise InvalidTokenError(context={"reason": "malformed subject"})

        return TokenIdentity(user_id=user_id, username=str(payload["username"]))
