"""
ClassNotes Backend - Authentication Service
=============================================

What:  Credential Store and Token Service operations: register, verify,
       login, token issue/verify, and user administration.
How:   Receives a PasswordHasher and a TokenSigner by constructor
       injection; receives the database session per call, like every
       other service.
Who:   Auth and user routes, the auth dependency, and the seed command.

Security properties:
    - Plaintext passwords are never stored or logged
    - Unknown username and wrong password fail identically, and both
      paths run one hash verification (a dummy hash for unknown users)
    - Tokens are stateless; a deleted user's token stays valid until it
      expires
"""

import logging
import uuid
from typing import List

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from classnotes.exceptions import (
    AuthenticationError,
    ConflictError,
    DatabaseError,
    ValidationError,
)
from classnotes.models.user import User
from classnotes.services.security_base import PasswordHasher, TokenIdentity, TokenSigner

logger = logging.getLogger(__name__)

# Shared by both failure paths of verify() so responses are identical
INVALID_CREDENTIALS = "Invalid credentials"


class AuthService:
    """
    Business logic for accounts and session tokens.

    Responsibilities:
        - register(): create an account (Conflict on duplicate username)
        - verify() / login(): check credentials, issue a token
        - verify_token(): resolve a bearer token to an identity
        - list_users() / delete_user(): account administration
    """

    def __init__(self, hasher: PasswordHasher, signer: TokenSigner):
        self.hasher = hasher
        self.signer = signer
        # Verified against when the username is unknown so both failure
        # paths cost one hash verification
        self._dummy_hash = hasher.hash(uuid.uuid4().hex)

    async def register(self, db: AsyncSession, username: str, password: str) -> User:
        """
        Create a new account.

        Raises:
            ValidationError: username or password empty/blank
            ConflictError: username already taken
            DatabaseError: insert failed for another reason
        """
        username = (username or "").strip()
        if not username:
            raise ValidationError(message="Username is required", field="username")
        if not password:
            raise ValidationError(message="Password is required", field="password")

        existing = await db.execute(select(User.id).where(User.username == username))
        if existing.scalar_one_or_none() is not None:
            raise ConflictError(
                message=f"Username '{username}' is already taken",
                context={"field": "username"},
            )

        user = User(username=username, password_hash=self.hasher.hash(password))
        db.add(user)
        try:
            await db.flush()
        except IntegrityError:
            # Lost a race with a concurrent registration of the same name
            await db.rollback()
            raise ConflictError(
                message=f"Username '{username}' is already taken",
                context={"field": "username"},
            )
        except SQLAlchemyError as e:
            logger.error("Database error registering user: %s", str(e))
            raise DatabaseError(context={"error_type": type(e).__name__})

        logger.info("User registered: %s (%s)", user.username, user.id)
        return user

    async def verify(self, db: AsyncSession, username: str, password: str) -> User:
        """
        Check credentials.

        Raises:
            AuthenticationError: unknown username or wrong password (same
                message in both cases)
        """
        result = await db.execute(select(User).where(User.username == (username or "").strip()))
        user = result.scalar_one_or_none()

        if user is None:
            self.hasher.verify(password or "", self._dummy_hash)
            logger.info("Login failed: invalid credentials")
            raise AuthenticationError(message=INVALID_CREDENTIALS)

        if not self.hasher.verify(password or "", user.password_hash):
            logger.info("Login failed: invalid credentials")
            raise AuthenticationError(message=INVALID_CREDENTIALS)

        return user

    def issue_token(self, user: User) -> str:
        return self.signer.issue(user.id, user.username)

    def verify_token(self, token: str) -> TokenIdentity:
        """Raises InvalidTokenError or TokenExpiredError."""
        return self.signer.verify(token)

    async def login(self, db: AsyncSession, username: str, password: str) -> str:
        user = await self.verify(db, username, password)
        logger.info("User logged in: %s", user.username)
        return self.issue_token(user)

    async def list_users(self, db: AsyncSession) -> List[User]:
        result = await db.execute(select(User).order_by(User.username))
        return list(result.scalars().all())

    async def delete_user(self, db: AsyncSession, user_id: uuid.UUID) -> None:
        """Idempotent: deleting an unknown id is not an error."""
        result = await db.execute(delete(User).where(User.id == user_id))
        if result.rowcount:
            logger.info("User deleted: %s", user_id)
