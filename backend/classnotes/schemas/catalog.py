"""
ClassNotes Backend - Catalog Request/Response Schemas
=======================================================

What:  API contract for classes, semesters and subjects.

Response shape:
    Reference fields hold the populated parent instead of a bare id:

        {
            "_id": "…",
            "name": "DB",
            "semester_id": {"_id": "…", "name": "Sem1"},
            "class_id": {"_id": "…", "name": "BCA"}
        }

    A parent that cannot be resolved renders as null.
"""

import uuid
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from classnotes.schemas.common import IdentifiedModel, ParentRef


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class NamedCreate(BaseModel):
    """Common base: every catalog level has a required, non-blank name."""
    name: str = Field(min_length=1, max_length=200)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name must not be blank")
        return v


class ClassCreate(NamedCreate):
    pass


class SemesterCreate(NamedCreate):
    class_id: uuid.UUID = Field(description="Owning class")


class SubjectCreate(NamedCreate):
    semester_id: uuid.UUID = Field(description="Owning semester")


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class ClassResponse(IdentifiedModel):
    name: str


class SemesterResponse(IdentifiedModel):
    name: str
    class_id: Optional[ParentRef] = Field(default=None, description="Populated owning class")


class SubjectResponse(IdentifiedModel):
    name: str
    semester_id: Optional[ParentRef] = Field(default=None, description="Populated owning semester")
    class_id: Optional[ParentRef] = Field(default=None, description="Populated class of the semester")
