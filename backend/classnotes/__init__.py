"""
ClassNotes Backend - Application Package Initializer
====================================================

What: Marks the `classnotes` directory as a Python package.
Who:  Imported by uvicorn (`classnotes.main:app`), Alembic, the seed
      command and pytest.

Architecture Note:
    The backend is layered the same way top to bottom:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns, auth gate
    ├─────────────────────────────────────┤
    │         Services (Business Logic)   │  ← catalog rules, credentials, files
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← Database handle, async sessions
    └─────────────────────────────────────┘

    Catalog hierarchy: Class → Semester → Subject → Note.
"""

__version__ = "1.0.0"
