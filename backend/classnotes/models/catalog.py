"""
ClassNotes Backend - Catalog SQLAlchemy Models
================================================

What:  ORM models for the upper three levels of the catalog tree:
       `classes` → `semesters` → `subjects`. Notes live in note.py.
How:   Each child holds a required foreign key to its parent declared
       ON DELETE RESTRICT. CatalogService checks for children before
       deleting, so the constraint only fires on a race.

Relationships are declared with lazy="raise": async sessions cannot lazy
load, so every read path states its eager loads explicitly with
selectinload().
"""

import uuid

from sqlalchemy import ForeignKey, Index, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from classnotes.database import Base


class SchoolClass(Base):
    """Root of the hierarchy (a course/programme such as "BCA")."""

    __tablename__ = "classes"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(200), nullable=False)

    def __repr__(self) -> str:
        return f"<SchoolClass(id={self.id}, name='{self.name}')>"


class Semester(Base):
    __tablename__ = "semesters"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    class_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("classes.id", ondelete="RESTRICT"),
        nullable=False,
    )

    school_class: Mapped["SchoolClass"] = relationship(lazy="raise")

    # Listing semesters of one class is the common filter
    __table_args__ = (Index("idx_semesters_class_id", "class_id"),)

    def __repr__(self) -> str:
        return f"<Semester(id={self.id}, name='{self.name}', class_id={self.class_id})>"


class Subject(Base):
    __tablename__ = "subjects"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    semester_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("semesters.id", ondelete="RESTRICT"),
        nullable=False,
    )

    semester: Mapped["Semester"] = relationship(lazy="raise")

    __table_args__ = (Index("idx_subjects_semester_id", "semester_id"),)

    def __repr__(self) -> str:
        return f"<Subject(id={self.id}, name='{self.name}', semester_id={self.semester_id})>"
