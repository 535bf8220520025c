"""
ClassNotes Backend - Note Response Schema
===========================================

What:  API representation of an uploaded note.
Who:   Returned by GET /api/notes (as a list) and POST /api/notes.

Note creation is multipart (file + form fields), so there is no request
body model; the route declares Form/File parameters directly.
"""

from datetime import datetime
from typing import Optional

from pydantic import Field

from classnotes.schemas.common import IdentifiedModel, ParentRef


class NoteResponse(IdentifiedModel):
    """
    What:  Full representation of a note with its populated ancestry.

    Why these fields:
        - file_url: public path under /uploads the front end links to
        - original_name: shown as the download name
        - subject_id / semester_id / class_id: populated breadcrumb
    """
    title: str
    filename: str = Field(description="Generated name of the stored file")
    original_name: str = Field(description="Filename as uploaded")
    uploaded_at: datetime = Field(description="Upload time (UTC ISO 8601)")
    file_url: str = Field(description="URL path serving the stored file")
    subject_id: Optional[ParentRef] = None
    semester_id: Optional[ParentRef] = None
    class_id: Optional[ParentRef] = None
