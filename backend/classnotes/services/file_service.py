"""
ClassNotes Backend - File Store Service
=========================================

What:  Validates, stores and removes uploaded note files on disk.
How:   Checks extension and size, writes the bytes under STORAGE_ROOT with
       a generated name, and returns a reference usable both as a path
       and as a URL under the public /uploads mount.
Who:   Called by NoteService when notes are created and deleted.

Generated names:
    <time_ns>-<8 hex chars>-<sanitized original name>
    e.g. 1718031234567891234-9f2c01ab-Intro_to_DBMS.pdf

    The nanosecond timestamp keeps names roughly chronological; the
    random part covers two uploads landing in the same nanosecond.
    Collisions are not otherwise guarded against.

Sanitization:
    - directory components are dropped (no path traversal)
    - runs of whitespace collapse to a single underscore
    - characters outside [A-Za-z0-9._-] are removed from stem and extension
    - the extension is kept; an empty stem becomes "file"
    - the stem is cut so the name stays within MAX_SANITIZED_LENGTH
"""

import logging
import os
import re
import secrets
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional

import aiofiles

from classnotes.exceptions import FileStorageError, ValidationError

logger = logging.getLogger(__name__)

# Public mount point for stored files
UPLOADS_MOUNT = "/uploads"

_WHITESPACE_RE = re.compile(r"\s+")
_UNSAFE_CHARS_RE = re.compile(r"[^A-Za-z0-9._-]")

# Generated names are "<19-digit time_ns>-<8 hex>-" + sanitized name and
# must fit the common 255-byte filename limit
MAX_SANITIZED_LENGTH = 200
MAX_EXTENSION_LENGTH = 16


def sanitize_filename(original: str) -> str:
    """
    Reduce an uploaded filename to a safe basename.

    The stem and the extension are cleaned separately so the extension
    survives a stem made only of unsupported characters, and the stem is
    cut so the result never exceeds MAX_SANITIZED_LENGTH.

    >>> sanitize_filename("../My Lecture  Notes (1).pdf")
    'My_Lecture_Notes_1.pdf'
    >>> sanitize_filename("日本語.pdf")
    'file.pdf'
    """
    # Browsers on Windows may send full paths with backslashes
    name = original.replace("\\", "/").rsplit("/", 1)[-1]
    name = _WHITESPACE_RE.sub("_", name.strip())

    stem, dot, suffix = name.rpartition(".")
    if not dot or not stem.strip("."):
        # "notes" or ".hidden": no extension to keep
        stem, suffix = name, ""
    suffix = _UNSAFE_CHARS_RE.sub("", suffix)[:MAX_EXTENSION_LENGTH]
    ext = f".{suffix}" if suffix else ""

    stem = _UNSAFE_CHARS_RE.sub("", stem).lstrip(".")
    stem = stem[: MAX_SANITIZED_LENGTH - len(ext)] or "file"
    return stem + ext


def public_url(filename: str) -> str:
    return f"{UPLOADS_MOUNT}/{filename}"


@dataclass(frozen=True)
class StoredFile:
    """Reference to a blob written by FileStore.store()."""
    filename: str
    path: Path

    @property
    def url(self) -> str:
        return public_url(self.filename)


class FileStore:
    """
    On-disk blob storage for note files.

    Lifecycle of an uploaded file:
        1. NoteService passes the raw bytes and original filename to store()
        2. Extension and size checks (ValidationError on failure)
        3. Bytes written to STORAGE_ROOT/<generated name>
        4. StoredFile returned; its filename goes into the notes table
        5. remove() deletes it when the note is deleted or the insert fails
    """

    def __init__(
        self,
        storage_root: str,
        max_file_size: int,
        allowed_extensions: Optional[Iterable[str]] = None,
    ):
        """
        Args:
            storage_root: Directory for stored files (created if missing).
            max_file_size: Upper bound in bytes for a single upload.
            allowed_extensions: Lowercase extensions with a leading dot.
                None accepts any extension.
        """
        self.storage_root = Path(storage_root).resolve()
        self.max_file_size = max_file_size
        self.allowed_extensions = set(allowed_extensions) if allowed_extensions else None
        self.storage_root.mkdir(parents=True, exist_ok=True)
        logger.info("FileStore initialized with storage_root=%s", self.storage_root)

    def validate_extension(self, filename: str) -> str:
        """
        Returns: Normalized extension (lowercase with dot).
        Raises:  ValidationError if the extension is not allowed.
        """
        ext = Path(filename).suffix.lower()
        if self.allowed_extensions is not None and ext not in self.allowed_extensions:
            raise ValidationError(
                message=(
                    f"File type '{ext or 'none'}' is not supported. "
                    f"Allowed types: {', '.join(sorted(self.allowed_extensions))}"
                ),
                field="file",
                context={"extension": ext, "allowed": sorted(self.allowed_extensions)},
            )
        return ext

    def validate_size(self, content_length: Optional[int], actual_size: int) -> None:
        """
        Reject empty files and files above max_file_size.

        Args:
            content_length: Size reported by the client (may be None or wrong)
            actual_size: Actual byte count of the uploaded file
        """
        max_mb = self.max_file_size / (1024 * 1024)

        if actual_size == 0:
            raise ValidationError(message="Uploaded file is empty", field="file")

        if content_length and content_length > self.max_file_size:
            raise ValidationError(
                message=f"File size exceeds maximum of {max_mb:.0f}MB.",
                field="file",
                context={"max_size_mb": max_mb, "reported_size": content_length},
            )

        if actual_size > self.max_file_size:
            raise ValidationError(
                message=f"File size ({actual_size / (1024 * 1024):.1f}MB) exceeds maximum of {max_mb:.0f}MB.",
                field="file",
                context={"max_size_mb": max_mb, "actual_size": actual_size},
            )

    def generate_filename(self, original_filename: str) -> str:
        return f"{time.time_ns()}-{secrets.token_hex(4)}-{sanitize_filename(original_filename)}"

    def path_for(self, filename: str) -> Path:
        """
        Resolve a stored filename to its absolute path.

        Raises:
            ValidationError if the name would escape the storage root.
        """
        path = (self.storage_root / filename).resolve()
        if path.parent != self.storage_root:
            raise ValidationError(message="Invalid file name", field="filename")
        return path

    async def store(
        self,
        content: bytes,
        original_filename: str,
        content_length: Optional[int] = None,
    ) -> StoredFile:
        """
        Validate and write an upload to disk.

        Validation order (cheapest first):
            1. Extension check
            2. Size check
            3. Write bytes

        Raises:
            ValidationError: rejected extension, empty or oversized file
            FileStorageError: the write itself failed
        """
        self.validate_extension(original_filename)
        self.validate_size(content_length, len(content))

        filename = self.generate_filename(original_filename)
        path = self.storage_root / filename

        try:
            # "xb": fail rather than overwrite if the name already exists
            async with aiofiles.open(path, "xb") as f:
                await f.write(content)
        except OSError as e:
            logger.error("Failed to store file at %s: %s", path, str(e))
            raise FileStorageError(
                message="Failed to save uploaded file. Please try again.",
                context={"path": str(path), "os_error": str(e)},
            )

        logger.info("File stored: %s (%d bytes)", filename, len(content))
        return StoredFile(filename=filename, path=path)

    async def remove(self, filename: str) -> bool:
        """
        Best-effort delete of a stored file.

        Returns:
            True if a file was removed, False if it was already gone or
            could not be removed. Never raises to the caller.
        """
        try:
            path = self.path_for(filename)
        except ValidationError:
            logger.warning("Refusing to remove file outside storage root: %s", filename)
            return False

        try:
            os.remove(path)
        except FileNotFoundError:
            logger.debug("Remove: file already gone: %s", filename)
            return False
        except OSError as e:
            logger.warning("Failed to remove file %s: %s", filename, str(e))
            return False

        logger.info("Removed file: %s", filename)
        return True
