"""
ClassNotes Backend - Catalog Service
======================================

What:  CRUD for the upper catalog levels: classes, semesters and subjects.
How:   Stateless service; every method receives the request's
       AsyncSession. Reads eager-load parents with selectinload() and
       return populated response models.
Who:   Called by the catalog routes and the seed command.

Referential rules:
    create:  the referenced parent must exist, else ValidationError (400)
    delete:  unknown id → success (idempotent)
             record still has children → ConflictError (409)
    read:    a parent that cannot be resolved is rendered as null

Query plans:
    Filtered listings hit idx_semesters_class_id / idx_subjects_semester_id.
    Populating parents costs one extra IN-query per level (selectinload).
"""

import logging
import uuid
from typing import List, Optional

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from classnotes.exceptions import ConflictError, DatabaseError, ValidationError
from classnotes.models.catalog import SchoolClass, Semester, Subject
from classnotes.models.note import Note
from classnotes.schemas.catalog import ClassResponse, SemesterResponse, SubjectResponse
from classnotes.schemas.common import ParentRef

logger = logging.getLogger(__name__)


def parent_ref(record) -> Optional[ParentRef]:
    """Populated {_id, name} for a loaded parent, or None when missing."""
    if record is None:
        return None
    return ParentRef(id=record.id, name=record.name)


def class_response(school_class: SchoolClass) -> ClassResponse:
    return ClassResponse(id=school_class.id, name=school_class.name)


def semester_response(semester: Semester) -> SemesterResponse:
    return SemesterResponse(
        id=semester.id,
        name=semester.name,
        class_id=parent_ref(semester.school_class),
    )


def subject_response(subject: Subject) -> SubjectResponse:
    semester = subject.semester
    return SubjectResponse(
        id=subject.id,
        name=subject.name,
        semester_id=parent_ref(semester),
        class_id=parent_ref(semester.school_class if semester is not None else None),
    )


class CatalogService:
    """
    Business logic for Class, Semester and Subject records.

    Error Handling Strategy:
        Our own exceptions propagate untouched. Anything SQLAlchemy raises
        is logged and wrapped in DatabaseError so no driver detail reaches
        the client.
    """

    # ── Classes ───────────────────────────────────────────────────────────

    async def list_classes(self, db: AsyncSession) -> List[ClassResponse]:
        try:
            result = await db.execute(select(SchoolClass).order_by(SchoolClass.name))
        except SQLAlchemyError as e:
            raise self._db_error("listing classes", e)
        return [class_response(c) for c in result.scalars().all()]

    async def create_class(self, db: AsyncSession, name: str) -> ClassResponse:
        name = self._require_name(name)
        school_class = SchoolClass(name=name)
        db.add(school_class)
        await self._flush(db, "creating class")
        logger.info("Class created: %s (%s)", school_class.name, school_class.id)
        return class_response(school_class)

    async def delete_class(self, db: AsyncSession, class_id: uuid.UUID) -> None:
        await self._reject_if_children(db, Semester, Semester.class_id, class_id, "class", "semesters")
        await self._delete_by_id(db, SchoolClass, class_id, "class")

    # ── Semesters ─────────────────────────────────────────────────────────

    async def list_semesters(
        self,
        db: AsyncSession,
        class_id: Optional[uuid.UUID] = None,
    ) -> List[SemesterResponse]:
        query = select(Semester).options(selectinload(Semester.school_class))
        if class_id is not None:
            query = query.where(Semester.class_id == class_id)
        query = query.order_by(Semester.name).execution_options(populate_existing=True)

        try:
            result = await db.execute(query)
        except SQLAlchemyError as e:
            raise self._db_error("listing semesters", e)
        return [semester_response(s) for s in result.scalars().all()]

    async def create_semester(
        self,
        db: AsyncSession,
        name: str,
        class_id: uuid.UUID,
    ) -> SemesterResponse:
        name = self._require_name(name)
        school_class = await self._require_parent(db, SchoolClass, class_id, "class_id", "Class")

        semester = Semester(name=name, school_class=school_class)
        db.add(semester)
        await self._flush(db, "creating semester")
        logger.info("Semester created: %s (%s) in class %s", semester.name, semester.id, class_id)

        return SemesterResponse(
            id=semester.id,
            name=semester.name,
            class_id=parent_ref(school_class),
        )

    async def delete_semester(self, db: AsyncSession, semester_id: uuid.UUID) -> None:
        await self._reject_if_children(db, Subject, Subject.semester_id, semester_id, "semester", "subjects")
        await self._delete_by_id(db, Semester, semester_id, "semester")

    # ── Subjects ──────────────────────────────────────────────────────────

    async def list_subjects(
        self,
        db: AsyncSession,
        semester_id: Optional[uuid.UUID] = None,
    ) -> List[SubjectResponse]:
        query = select(Subject).options(
            selectinload(Subject.semester).selectinload(Semester.school_class)
        )
        if semester_id is not None:
            query = query.where(Subject.semester_id == semester_id)
        query = query.order_by(Subject.name).execution_options(populate_existing=True)

        try:
            result = await db.execute(query)
        except SQLAlchemyError as e:
            raise self._db_error("listing subjects", e)
        return [subject_response(s) for s in result.scalars().all()]

    async def create_subject(
        self,
        db: AsyncSession,
        name: str,
        semester_id: uuid.UUID,
    ) -> SubjectResponse:
        name = self._require_name(name)
        semester = await self._require_parent(
            db,
            Semester,
            semester_id,
            "semester_id",
            "Semester",
            options=[selectinload(Semester.school_class)],
        )

        subject = Subject(name=name, semester=semester)
        db.add(subject)
        await self._flush(db, "creating subject")
        logger.info("Subject created: %s (%s) in semester %s", subject.name, subject.id, semester_id)

        return SubjectResponse(
            id=subject.id,
            name=subject.name,
            semester_id=parent_ref(semester),
            class_id=parent_ref(semester.school_class),
        )

    async def delete_subject(self, db: AsyncSession, subject_id: uuid.UUID) -> None:
        await self._reject_if_children(db, Note, Note.subject_id, subject_id, "subject", "notes")
        await self._delete_by_id(db, Subject, subject_id, "subject")

    # ── Helpers ───────────────────────────────────────────────────────────

    @staticmethod
    def _require_name(name: Optional[str], field: str = "name") -> str:
        name = (name or "").strip()
        if not name:
            raise ValidationError(message=f"{field} is required", field=field)
        return name

    async def _require_parent(
        self,
        db: AsyncSession,
        model,
        parent_id: Optional[uuid.UUID],
        field: str,
        label: str,
        options=None,
    ):
        """
        Load the referenced parent or raise ValidationError.

        Used on every child create so a dangling reference can never be
        written through the API.
        """
        if parent_id is None:
            raise ValidationError(message=f"{field} is required", field=field)

        try:
            parent = await db.get(model, parent_id, options=options, populate_existing=True)
        except SQLAlchemyError as e:
            raise self._db_error(f"loading {label.lower()}", e)
        if parent is None:
            raise ValidationError(
                message=f"{label} with ID '{parent_id}' does not exist",
                field=field,
            )
        return parent

    async def _reject_if_children(
        self,
        db: AsyncSession,
        child_model,
        child_fk,
        parent_id: uuid.UUID,
        parent_label: str,
        children_label: str,
    ) -> None:
        count = await db.scalar(
            select(func.count()).select_from(child_model).where(child_fk == parent_id)
        )
        if count:
            raise ConflictError(
                message=(
                    f"Cannot delete {parent_label} '{parent_id}': "
                    f"it still has {count} {children_label}. Delete them first."
                ),
                context={"children": children_label, "count": count},
            )

    async def _delete_by_id(self, db: AsyncSession, model, record_id: uuid.UUID, label: str) -> None:
        """Idempotent delete: zero affected rows is still success."""
        try:
            result = await db.execute(delete(model).where(model.id == record_id))
        except IntegrityError as e:
            # A child was added after _reject_if_children ran; RESTRICT refused the delete
            logger.warning("Delete of %s %s refused by foreign key: %s", label, record_id, str(e))
            raise ConflictError(
                message=f"Cannot delete {label} '{record_id}': it still has children. Delete them first.",
                context={"record_id": str(record_id)},
            )
        except SQLAlchemyError as e:
            raise self._db_error(f"deleting {label}", e)
        if result.rowcount:
            logger.info("%s deleted: %s", label.capitalize(), record_id)
        else:
            logger.debug("%s %s not found; nothing to delete", label.capitalize(), record_id)

    async def _flush(self, db: AsyncSession, action: str) -> None:
        try:
            await db.flush()
        except SQLAlchemyError as e:
            raise self._db_error(action, e)

    @staticmethod
    def _db_error(action: str, e: Exception) -> DatabaseError:
        logger.error("Database error %s: %s", action, str(e), exc_info=True)
        return DatabaseError(context={"action": action, "error_type": type(e).__name__})
