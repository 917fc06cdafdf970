"""Raw Reader record -> Document."""

from __future__ import annotations

from typing import Any, Mapping

from pydantic import ValidationError

from readwise_sync.models.document import Document
from readwise_sync.schemas.reader import ReaderRecord
from readwise_sync.utils.errors import RecordError


def _describe(exc: ValidationError) -> str:
    """Collapse pydantic errors into ``field: message`` pairs."""
    parts = []
    for err in exc.errors():
        path = ".".join(str(p) for p in err["loc"]) or "<record>"
        parts.append(f"{path}: {err['msg']}")
    return "; ".join(parts)


def normalize_record(raw: Any) -> Document:
    """Map one raw API result onto a Document.

    Defaults applied for known API quirks:
    - title null/empty -> "Untitled"
    - word_count null -> 0
    - location absent -> "new"
    - published_date null or unparseable -> None (the latter logs a warning)

    Raises:
        RecordError: the record is not a mapping, a required field is missing,
            an enum value is unknown, or word_count is negative.
    """
    if not isinstance(raw, Mapping):
        raise RecordError(f"Expected a JSON object, got {type(raw).__name__}")

    try:
        record = ReaderRecord.model_validate(dict(raw))
    except ValidationError as exc:
        document_id = raw.get("id")
        raise RecordError(
            f"Invalid record (id={document_id!r}): {_describe(exc)}",
            document_id=document_id if isinstance(document_id, str) else None,
        ) from exc

    return Document(**record.model_dump())
