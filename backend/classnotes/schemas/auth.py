"""
ClassNotes Backend - Authentication & User Schemas
====================================================

What:  Request/response models for /api/register, /api/login and /api/users.
Security: No response model carries the password or its hash.
"""

from pydantic import BaseModel, Field, field_validator

from classnotes.schemas.common import IdentifiedModel


class Credentials(BaseModel):
    """Body of register, login and user-create requests."""
    username: str = Field(min_length=1, max_length=150)
    password: str = Field(min_length=1, max_length=1024)

    @field_validator("username")
    @classmethod
    def strip_username(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("username must not be blank")
        return v


class MessageResponse(BaseModel):
    message: str


class TokenResponse(BaseModel):
    """Bearer token returned by a successful login."""
    token: str


class UserResponse(IdentifiedModel):
    username: str

