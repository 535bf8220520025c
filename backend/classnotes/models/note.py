"""
ClassNotes Backend - Note SQLAlchemy Model
============================================

What:  ORM model representing the `notes` table, the leaves of the
       catalog tree.
Who:   Used by NoteService for CRUD and by Alembic for schema management.

Table Design:
    - subject_id: only the direct parent is stored; semester and class
      are reached through the tree at read time
    - filename: generated name of the blob inside STORAGE_ROOT
    - original_name: what the uploader called the file
    - uploaded_at: UTC; the listing order key

    Index on uploaded_at:
        The notes listing is always newest-first (backward index scan).
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, ForeignKey, Index, String, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from classnotes.database import Base
from classnotes.models.catalog import Subject


class Note(Base):
    """
    An uploaded document filed under a Subject.

    Lifecycle:
        1. Blob written to the File Store
        2. Row inserted referencing the blob by filename
        3. On delete: row removed, then blob removed best-effort
    """

    __tablename__ = "notes"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    title: Mapped[str] = mapped_column(String(300), nullable=False)

    subject_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("subjects.id", ondelete="RESTRICT"),
        nullable=False,
    )

    # Format: <time_ns>-<hex>-<sanitized original name>
    filename: Mapped[str] = mapped_column(
        String(400),
        nullable=False,
        unique=True,
        comment="Generated name of the stored blob, relative to the storage root",
    )

    original_name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Filename as uploaded by the client",
    )

    uploaded_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
        comment="When the note was uploaded (UTC)",
    )

    subject: Mapped["Subject"] = relationship(lazy="raise")

    __table_args__ = (
        Index("idx_notes_uploaded_at", "uploaded_at"),
        Index("idx_notes_subject_id", "subject_id"),
    )

    def __repr__(self) -> str:
        return (
            f"<Note(id={self.id}, title='{self.title}', "
            f"uploaded_at='{self.uploaded_at}')>"
        )
