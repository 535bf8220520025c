"""
ClassNotes Backend - User SQLAlchemy Model
============================================

What:  ORM model for the `users` table (the Credential Store).
How:   username is unique at the database level; only an Argon2 hash of
       the password is stored.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, String, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column

from classnotes.database import Base


class User(Base):
    """
    An account that can log in and manage the catalog.

    Lifecycle:
        Created by /api/register, /api/users or the seed command.
        Deleted explicitly. Never updated.
    """

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    username: Mapped[str] = mapped_column(
        String(150),
        nullable=False,
        unique=True,
        comment="Login name, unique across all users",
    )

    # Encoded Argon2id hash including algorithm, parameters and salt
    password_hash: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
    )

    def __repr__(self) -> str:
        # Never include password_hash
        return f"<User(id={self.id}, username='{self.username}')>"
