"""
JSON persistence for the library catalog.

The whole catalog lives in a single document of the form
``{"books": [...], "users": [...]}``. Reads and writes always cover the
full document; there is no partial or merge write.
"""

import logging
import os
from pathlib import Path
from typing import Annotated, Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field, StrictBool, StrictStr, ValidationError

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


class StorageError(Exception):
    """Base class for failures while reading or writing the data file."""


class StorageIOError(StorageError):
    """The data file could not be read or written."""


class FormatError(StorageError):
    """The data file does not hold a valid catalog document."""


# --- Persisted document shape ---
# Field-level strictness: "1" is not an id and 1 is not a flag; ids start at 1
RecordId = Annotated[int, Field(strict=True, ge=1)]


class BookRecord(BaseModel):
    id: RecordId
    title: StrictStr
    author: StrictStr
    is_issued: StrictBool


class UserRecord(BaseModel):
    id: RecordId
    name: StrictStr
    borrowed_books: List[RecordId]


class LibraryDocument(BaseModel):
    books: List[BookRecord]
    users: List[UserRecord]


def load_document(path: PathLike) -> Optional[Dict[str, Any]]:
    """Read and validate the catalog document at ``path``.

    Returns ``None`` when no file exists, which callers treat as an empty
    catalog rather than an error.
    """
    file_path = Path(path)
    if not file_path.exists():
        logger.info("No data file at %s, starting empty", file_path)
        return None

    try:
        raw = file_path.read_text(encoding="utf-8")
    except UnicodeDecodeError as exc:
        raise FormatError(f"Failed to parse JSON: {exc}") from exc
    except OSError as exc:
        raise StorageIOError(f"Failed to read file: {exc}") from exc

    try:
        document = LibraryDocument.model_validate_json(raw)
    except ValidationError as exc:
        logger.warning("Rejected malformed data file %s", file_path)
        raise FormatError(f"Failed to parse JSON: {_describe(exc)}") from exc

    logger.debug(
        "Loaded %d books and %d users from %s",
        len(document.books), len(document.users), file_path,
    )
    return document.model_dump()


def save_document(path: PathLike, data: Dict[str, Any]) -> None:
    """Validate ``data`` and overwrite ``path`` with it in full."""
    file_path = Path(path)
    try:
        payload = LibraryDocument.model_validate(data).model_dump_json(indent=2)
    except (ValidationError, TypeError, ValueError) as exc:
        raise FormatError(f"Failed to serialize to JSON: {exc}") from exc

    # Write beside the target, then swap it in whole
    tmp_path = file_path.with_name(file_path.name + ".tmp")
    try:
        tmp_path.write_text(payload, encoding="utf-8")
        os.replace(tmp_path, file_path)
    except OSError as exc:
        tmp_path.unlink(missing_ok=True)
        raise StorageIOError(f"Failed to write file: {exc}") from exc

    logger.info("Saved catalog to %s", file_path)


def _describe(exc: ValidationError) -> str:
    # First problem only; the full report is noisy for a one-line message
    errors = exc.errors()
    if not errors:
        return str(exc)
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()))
    message = first.get("msg", "invalid data")
    return f"{location}: {message}" if location else message
