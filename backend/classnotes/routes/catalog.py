"""
ClassNotes Backend - Catalog Route Handlers
=============================================

What:  Classes, semesters and subjects: the upper three levels of the
       catalog tree.
Who:   Called by the front end's browse and admin views.

Filtering:
    GET /api/semesters?class_id=…      semesters of one class
    GET /api/subjects?semester_id=…    subjects of one semester
    Without the filter, every record of that level is returned.

Deletion:
    Returns {"deleted": true} even when the id is unknown. A record that
    still has children is refused with 409.
"""

import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from classnotes.database import get_db_session
from classnotes.dependencies import get_catalog_service, require_user
from classnotes.schemas.catalog import (
    ClassCreate,
    ClassResponse,
    SemesterCreate,
    SemesterResponse,
    SubjectCreate,
    SubjectResponse,
)
from classnotes.schemas.common import DeleteResponse, ErrorResponse
from classnotes.services.catalog_service import CatalogService

router = APIRouter(
    prefix="/api",
    tags=["Catalog"],
    dependencies=[Depends(require_user)],
    responses={
        401: {"description": "Missing bearer token", "model": ErrorResponse},
        403: {"description": "Invalid or expired token", "model": ErrorResponse},
    },
)

_CREATE_ERRORS = {400: {"description": "Invalid name or unknown parent", "model": ErrorResponse}}
_DELETE_ERRORS = {409: {"description": "Record still has children", "model": ErrorResponse}}


# ── Classes ───────────────────────────────────────────────────────────────

@router.get("/classes", response_model=List[ClassResponse], summary="List classes")
async def list_classes(
    db: AsyncSession = Depends(get_db_session),
    catalog: CatalogService = Depends(get_catalog_service),
) -> List[ClassResponse]:
    return await catalog.list_classes(db)


@router.post(
    "/classes",
    response_model=ClassResponse,
    status_code=status.HTTP_201_CREATED,
    responses=_CREATE_ERRORS,
    summary="Create a class",
)
async def create_class(
    body: ClassCreate,
    db: AsyncSession = Depends(get_db_session),
    catalog: CatalogService = Depends(get_catalog_service),
) -> ClassResponse:
    return await catalog.create_class(db, body.name)


@router.delete(
    "/classes/{class_id}",
    response_model=DeleteResponse,
    responses=_DELETE_ERRORS,
    summary="Delete a class with no semesters",
)
async def delete_class(
    class_id: uuid.UUID,
    db: AsyncSession = Depends(get_db_session),
    catalog: CatalogService = Depends(get_catalog_service),
) -> DeleteResponse:
    await catalog.delete_class(db, class_id)
    return DeleteResponse()


# ── Semesters ─────────────────────────────────────────────────────────────

@router.get(
    "/semesters",
    response_model=List[SemesterResponse],
    summary="List semesters, optionally of one class",
)
async def list_semesters(
    class_id: Optional[uuid.UUID] = Query(default=None, description="Only semesters of this class"),
    db: AsyncSession = Depends(get_db_session),
    catalog: CatalogService = Depends(get_catalog_service),
) -> List[SemesterResponse]:
    return await catalog.list_semesters(db, class_id=class_id)


@router.post(
    "/semesters",
    response_model=SemesterResponse,
    status_code=status.HTTP_201_CREATED,
    responses=_CREATE_ERRORS,
    summary="Create a semester in a class",
)
async def create_semester(
    body: SemesterCreate,
    db: AsyncSession = Depends(get_db_session),
    catalog: CatalogService = Depends(get_catalog_service),
) -> SemesterResponse:
    return await catalog.create_semester(db, body.name, body.class_id)


@router.delete(
    "/semesters/{semester_id}",
    response_model=DeleteResponse,
    responses=_DELETE_ERRORS,
    summary="Delete a semester with no subjects",
)
async def delete_semester(
    semester_id: uuid.UUID,
    db: AsyncSession = Depends(get_db_session),
    catalog: CatalogService = Depends(get_catalog_service),
) -> DeleteResponse:
    await catalog.delete_semester(db, semester_id)
    return DeleteResponse()


# ── Subjects ──────────────────────────────────────────────────────────────

@router.get(
    "/subjects",
    response_model=List[SubjectResponse],
    summary="List subjects, optionally of one semester",
)
async def list_subjects(
    semester_id: Optional[uuid.UUID] = Query(default=None, description="Only subjects of this semester"),
    db: AsyncSession = Depends(get_db_session),
    catalog: CatalogService = Depends(get_catalog_service),
) -> List[SubjectResponse]:
    return await catalog.list_subjects(db, semester_id=semester_id)


@router.post(
    "/subjects",
    response_model=SubjectResponse,
    status_code=status.HTTP_201_CREATED,
    responses=_CREATE_ERRORS,
    summary="Create a subject in a semester",
)
async def create_subject(
    body: SubjectCreate,
    db: AsyncSession = Depends(get_db_session),
    catalog: CatalogService = Depends(get_catalog_service),
) -> SubjectResponse:
    return await catalog.create_subject(db, body.name, body.semester_id)


@router.delete(
    "/subjects/{subject_id}",
    response_model=DeleteResponse,
    responses=_DELETE_ERRORS,
    summary="Delete a subject with no notes",
)
async def delete_subject(
    subject_id: uuid.UUID,
    db: AsyncSession = Depends(get_db_session),
    catalog: CatalogService = Depends(get_catalog_service),
) -> DeleteResponse:
    await catalog.delete_subject(db, subject_id)
    return DeleteResponse()
