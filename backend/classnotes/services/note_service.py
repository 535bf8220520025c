"""
ClassNotes Backend - Note Service (Business Logic Orchestrator)
================================================================

What:  Coordinates the upload → store → persist workflow for notes, plus
       listing and deletion.
How:   Composes the FileStore (blobs on disk) with database operations;
       the session arrives per call from the route.
Who:   Called by the notes routes and the seed command.

Orchestration Flow (POST /api/notes):
    ┌──────────┐    ┌─────────────┐    ┌──────────────┐    ┌──────────┐
    │  Upload  │───▶│  Validate   │───▶│  FileStore   │───▶│  Insert  │
    │  (Route) │    │  title and  │    │  (write blob)│    │  (DB)    │
    └──────────┘    │  subject    │    └──────────────┘    └──────────┘
                    └─────────────┘

    On failure after the blob is written, the blob is removed again so
    no orphan is left behind.

Deletion order:
    Row first, then blob. A blob left behind by a failed removal is
    harmless; a row pointing at a missing blob would be a broken link.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from classnotes.exceptions import DatabaseError, ValidationError
from classnotes.models.catalog import Semester, Subject
from classnotes.models.note import Note
from classnotes.schemas.common import ParentRef
from classnotes.schemas.note import NoteResponse
from classnotes.services.file_service import FileStore, public_url

logger = logging.getLogger(__name__)

# Width of notes.original_name
MAX_ORIGINAL_NAME_LENGTH = 255


def _ref(record) -> Optional[ParentRef]:
    return ParentRef(id=record.id, name=record.name) if record is not None else None


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes for DateTime(timezone=True)
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def note_response(note: Note, subject: Optional[Subject]) -> NoteResponse:
    """Build the API model; `subject` must have semester.school_class loaded."""
    semester = subject.semester if subject is not None else None
    school_class = semester.school_class if semester is not None else None
    return NoteResponse(
        id=note.id,
        title=note.title,
        filename=note.filename,
        original_name=note.original_name,
        uploaded_at=_as_utc(note.uploaded_at),
        file_url=public_url(note.filename),
        subject_id=_ref(subject),
        semester_id=_ref(semester),
        class_id=_ref(school_class),
    )


class NoteService:
    """
    Business logic layer for note operations.

    Responsibilities:
        - create_note(): Complete upload-to-row workflow
        - list_notes(): Newest-first listing with populated ancestry
        - delete_note(): Remove the row, then the blob

    Error Handling Strategy:
        ValidationError and FileStorageError from the FileStore propagate
        untouched. Database errors are logged and wrapped in DatabaseError.
    """

    def __init__(self, file_store: FileStore):
        self.file_store = file_store

    async def list_notes(
        self,
        db: AsyncSession,
        subject_id: Optional[uuid.UUID] = None,
    ) -> List[NoteResponse]:
        """
        List notes, newest first.

        Query plan (no filter):
            SELECT * FROM notes ORDER BY uploaded_at DESC, id DESC
            → idx_notes_uploaded_at, then one IN-query per ancestor level

        Ties on uploaded_at are broken by id so the order is stable.
        """
        query = select(Note).options(
            selectinload(Note.subject)
            .selectinload(Subject.semester)
            .selectinload(Semester.school_class)
        )
        if subject_id is not None:
            query = query.where(Note.subject_id == subject_id)
        query = query.order_by(Note.uploaded_at.desc(), Note.id.desc()).execution_options(
            populate_existing=True
        )

        try:
            result = await db.execute(query)
        except SQLAlchemyError as e:
            logger.error("Database error listing notes: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not retrieve notes. Please try again.",
                context={"error_type": type(e).__name__},
            )

        return [note_response(note, note.subject) for note in result.scalars().all()]

    async def create_note(
        self,
        db: AsyncSession,
        title: Optional[str],
        subject_id: Optional[uuid.UUID],
        filename: Optional[str],
        content: bytes,
        content_length: Optional[int] = None,
    ) -> NoteResponse:
        """
        Validate → store file → insert row.

        Error Recovery:
            Validation fails → ValidationError (400), nothing written
            Blob write fails → FileStorageError (500), nothing written
            Insert fails     → DatabaseError (500), blob removed

        Args:
            db: Async database session (injected by FastAPI)
            title: Display title of the note
            subject_id: Subject the note is filed under (must exist)
            filename: Original filename from the upload
            content: Raw file bytes
            content_length: Size reported by the client (may be None)
        """
        title = (title or "").strip()
        if not title:
            raise ValidationError(message="title is required", field="title")
        if subject_id is None:
            raise ValidationError(message="subject_id is required", field="subject_id")
        if not filename:
            raise ValidationError(message="A file is required", field="file")
        if len(filename) > MAX_ORIGINAL_NAME_LENGTH:
            raise ValidationError(
                message=f"File name must be at most {MAX_ORIGINAL_NAME_LENGTH} characters",
                field="file",
            )

        subject = await self._load_subject(db, subject_id)

        stored = await self.file_store.store(
            content=content,
            original_filename=filename,
            content_length=content_length,
        )

        note = Note(
            title=title,
            subject=subject,
            filename=stored.filename,
            original_name=filename,
        )
        db.add(note)
        try:
            await db.flush()
        except SQLAlchemyError as e:
            await self.file_store.remove(stored.filename)
            logger.error("Database error creating note: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="An error occurred while saving your note. Please try again.",
                context={"error_type": type(e).__name__},
            )

        logger.info("Note created: %s (%s) in subject %s", note.title, note.id, subject_id)
        return note_response(note, subject)

    async def delete_note(self, db: AsyncSession, note_id: uuid.UUID) -> None:
        """Idempotent: an unknown id is a successful no-op."""
        try:
            filename = await db.scalar(select(Note.filename).where(Note.id == note_id))
            if filename is None:
                logger.debug("Note %s not found; nothing to delete", note_id)
                return
            await db.execute(delete(Note).where(Note.id == note_id))
        except SQLAlchemyError as e:
            logger.error("Database error deleting note %s: %s", note_id, str(e))
            raise DatabaseError(
                message="Could not delete the note. Please try again.",
                context={"note_id": str(note_id)},
            )

        await self.file_store.remove(filename)
        logger.info("Note deleted: %s", note_id)

    async def _load_subject(self, db: AsyncSession, subject_id: uuid.UUID) -> Subject:
        try:
            subject = await db.get(
                Subject,
                subject_id,
                options=[selectinload(Subject.semester).selectinload(Semester.school_class)],
                populate_existing=True,
            )
        except SQLAlchemyError as e:
            logger.error("Database error loading subject %s: %s", subject_id, str(e))
            raise DatabaseError(context={"error_type": type(e).__name__})
        if subject is None:
            raise ValidationError(
                message=f"Subject with ID '{subject_id}' does not exist",
                field="subject_id",
            )
        return subject
