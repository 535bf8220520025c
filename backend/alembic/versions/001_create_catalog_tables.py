"""Create users and catalog tables

Revision ID: 001
Revises: None
Create Date: 2024-06-10 00:00:00.000000+00:00

What:  Creates users, classes, semesters, subjects and notes.
How:   Child tables reference their parent with ON DELETE RESTRICT, so the
       database refuses to orphan a record even outside the API.

Rollback: downgrade() drops every table (destructive, all data lost).
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _id_column() -> sa.Column:
    return sa.Column("id", sa.Uuid(), nullable=False)


def upgrade() -> None:
    op.create_table(
        "users",
        _id_column(),
        sa.Column(
            "username",
            sa.String(150),
            nullable=False,
            comment="Login name, unique across all users",
        ),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("username"),
    )

    op.create_table(
        "classes",
        _id_column(),
        sa.Column("name", sa.String(200), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "semesters",
        _id_column(),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("class_id", sa.Uuid(), nullable=False),
        sa.ForeignKeyConstraint(["class_id"], ["classes.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_semesters_class_id", "semesters", ["class_id"])

    op.create_table(
        "subjects",
        _id_column(),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("semester_id", sa.Uuid(), nullable=False),
        sa.ForeignKeyConstraint(["semester_id"], ["semesters.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_subjects_semester_id", "subjects", ["semester_id"])

    op.create_table(
        "notes",
        _id_column(),
        sa.Column("title", sa.String(300), nullable=False),
        sa.Column("subject_id", sa.Uuid(), nullable=False),
        sa.Column(
            "filename",
            sa.String(400),
            nullable=False,
            comment="Generated name of the stored blob, relative to the storage root",
        ),
        sa.Column(
            "original_name",
            sa.String(255),
            nullable=False,
            comment="Filename as uploaded by the client",
        ),
        sa.Column(
            "uploaded_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
            comment="When the note was uploaded (UTC)",
        ),
        sa.ForeignKeyConstraint(["subject_id"], ["subjects.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("filename"),
    )
    op.create_index("idx_notes_subject_id", "notes", ["subject_id"])
    # Newest-first listing reads this index backwards
    op.create_index("idx_notes_uploaded_at", "notes", ["uploaded_at"])


def downgrade() -> None:
    """Drop every table, children first."""
    op.drop_index("idx_notes_uploaded_at", table_name="notes")
    op.drop_index("idx_notes_subject_id", table_name="notes")
    op.drop_table("notes")
    op.drop_index("idx_subjects_semester_id", table_name="subjects")
    op.drop_table("subjects")
    op.drop_index("idx_semesters_class_id", table_name="semesters")
    op.drop_table("semesters")
    op.drop_table("classes")
    op.drop_table("users")
