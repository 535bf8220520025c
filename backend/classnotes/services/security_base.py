"""
ClassNotes Backend - Abstract Security Capability Interfaces
=============================================================

What:  Abstract base classes for the two security primitives the
       business logic relies on: password hashing and token signing.
How:   Concrete implementations (services/security.py) inherit from these
       and are handed to AuthService by create_app(). AuthService never
       imports a hashing or JWT library itself.
Who:   AuthService (callers), security.py (implementations), tests (fakes).
"""

import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class TokenIdentity:
    """Identity embedded in a verified session token."""
    user_id: uuid.UUID
    username: str


class PasswordHasher(ABC):
    """
    One-way, salted, cost-factored password hashing.

    Contract:
        - hash() never returns the plaintext and produces a different
          string for the same password on each call (random salt)
        - verify() returns False for any mismatch or malformed hash;
          it does not raise
    """

    @abstractmethod
    def hash(self, password: str) -> str:
        """Return an encoded hash (algorithm, parameters and salt included)."""
        ...

    @abstractmethod
    def verify(self, password: str, password_hash: str) -> bool:
        """Check a plaintext password against a stored hash."""
        ...


class TokenSigner(ABC):
    """
    Issues and verifies signed, time-limited session tokens.

    Contract:
        - issue() embeds user id, username and an expiry
        - verify() raises InvalidTokenError for a bad signature or
          malformed token, TokenExpiredError once the expiry has passed
        - Stateless: there is no revocation before expiry
    """

    @abstractmethod
    def issue(self, user_id: uuid.UUID, username: str) -> str:
        ...

    @abstractmethod
    def verify(self, token: str) -> TokenIdentity:
        ...
