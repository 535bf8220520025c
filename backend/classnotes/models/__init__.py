# Importing this package registers every model with Base.metadata
from classnotes.models.user import User
from classnotes.models.catalog import SchoolClass, Semester, Subject
from classnotes.models.note import Note

__all__ = ["User", "SchoolClass", "Semester", "Subject", "Note"]
