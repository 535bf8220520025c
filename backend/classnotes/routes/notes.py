"""
ClassNotes Backend - Notes Route Handlers
===========================================

What:  Upload, list and delete notes (the leaves of the catalog tree).
Who:   Called by the front end's subject view and upload form.

Upload flow (POST /api/notes, multipart/form-data):
    1. FastAPI parses the form: `file`, `title`, `subject_id`
    2. File bytes are read into memory (bounded by MAX_FILE_SIZE checks
       in the FileStore)
    3. NoteService validates, stores the blob and inserts the row
    4. Response carries `file_url`, served by the /uploads static mount
"""

import logging
import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from classnotes.database import get_db_session
from classnotes.dependencies import get_note_service, require_user
from classnotes.schemas.common import DeleteResponse, ErrorResponse
from classnotes.schemas.note import NoteResponse
from classnotes.services.note_service import NoteService

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api",
    tags=["Notes"],
    dependencies=[Depends(require_user)],
    responses={
        401: {"description": "Missing bearer token", "model": ErrorResponse},
        403: {"description": "Invalid or expired token", "model": ErrorResponse},
    },
)


@router.get(
    "/notes",
    response_model=List[NoteResponse],
    summary="List notes, newest first",
    description="Each note carries its subject, semester and class as {_id, name}.",
)
async def list_notes(
    subject_id: Optional[uuid.UUID] = Query(default=None, description="Only notes of this subject"),
    db: AsyncSession = Depends(get_db_session),
    note_service: NoteService = Depends(get_note_service),
) -> List[NoteResponse]:
    return await note_service.list_notes(db, subject_id=subject_id)


@router.post(
    "/notes",
    response_model=NoteResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"description": "Missing field, unknown subject or rejected file", "model": ErrorResponse},
        500: {"description": "File could not be stored", "model": ErrorResponse},
    },
    summary="Upload a note",
)
async def create_note(
    file: UploadFile = File(..., description="Document to upload"),
    title: str = Form(..., max_length=300, description="Display title"),
    subject_id: uuid.UUID = Form(..., description="Subject to file the note under"),
    db: AsyncSession = Depends(get_db_session),
    note_service: NoteService = Depends(get_note_service),
) -> NoteResponse:
    content = await file.read()
    logger.info(
        "Received upload: filename=%s, size=%d bytes, content_type=%s",
        file.filename,
        len(content),
        file.content_type,
    )

    try:
        return await note_service.create_note(
            db,
            title=title,
            subject_id=subject_id,
            filename=file.filename,
            content=content,
            content_length=file.size,
        )
    finally:
        await file.close()


@router.delete(
    "/notes/{note_id}",
    response_model=DeleteResponse,
    summary="Delete a note and its stored file",
)
async def delete_note(
    note_id: uuid.UUID,
    db: AsyncSession = Depends(get_db_session),
    note_service: NoteService = Depends(get_note_service),
) -> DeleteResponse:
    await note_service.delete_note(db, note_id)
    return DeleteResponse()
