"""Wire schemas for the Reader list endpoint (``GET /api/v3/list/``)."""

from datetime import date, datetime, timezone
from typing import Any, List, Optional

from pydantic import BaseModel, Field, ValidationInfo, field_validator

from readwise_sync.config.logger import app_logger
from readwise_sync.models.document import (
    DEFAULT_LOCATION,
    MAX_WORD_COUNT,
    UNTITLED,
    Category,
    Location,
)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _parse_published_date(value: Any) -> Optional[datetime]:
    """Parse the encodings Reader uses for ``published_date``.

    - ``None`` -> ``None``
    - Unix timestamp in seconds (int or float)
    - ISO 8601 datetime string
    - Date-only string like ``"2026-01-30"`` -> midnight UTC

    Raises ``ValueError`` when nothing matches.
    """
    if value is None:
        return None
    if isinstance(value, bool):
        raise ValueError(f"unexpected boolean {value!r}")
    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value, tz=timezone.utc)
        except (OverflowError, OSError, ValueError) as e:
            raise ValueError(f"timestamp out of range: {value}") from e
    if isinstance(value, str):
        text = value.strip()
        try:
            return _as_utc(datetime.fromisoformat(text.replace("Z", "+00:00")))
        except ValueError:
            pass
        try:
            parsed = date.fromisoformat(text)
        except ValueError as e:
            raise ValueError(f"unparseable date string {value!r}") from e
        return datetime(parsed.year, parsed.month, parsed.day, tzinfo=timezone.utc)
    raise ValueError(f"unexpected type {type(value).__name__}")


class ReaderRecord(BaseModel):
    """One raw result from the list endpoint, with Reader's quirks defaulted."""

    model_config = {"populate_by_name": True, "extra": "ignore"}

    id: str = Field(..., min_length=1)
    author: Optional[str] = None
    category: Category
    content: Optional[str] = None
    created_at: datetime
    image_url: Optional[str] = None
    location: Location = DEFAULT_LOCATION
    notes: Optional[str] = None
    parent_id: Optional[str] = None
    published_date: Optional[datetime] = None
    reading_progress: float
    readwise_url: Optional[str] = Field(default=None, alias="url")
    site_name: Optional[str] = None
    source: Optional[str] = None
    source_url: Optional[str] = None
    summary: Optional[str] = None
    tags: Any = None
    title: str = UNTITLED
    updated_at: Optional[datetime] = None
    word_count: int = Field(default=0, ge=0, le=MAX_WORD_COUNT)

    @field_validator("title", mode="before")
    @classmethod
    def _default_title(cls, value: Any) -> Any:
        if value is None or (isinstance(value, str) and not value.strip()):
            return UNTITLED
        return value

    @field_validator("word_count", mode="before")
    @classmethod
    def _default_word_count(cls, value: Any) -> Any:
        return 0 if value is None else value

    @field_validator("location", mode="before")
    @classmethod
    def _default_location(cls, value: Any) -> Any:
        return DEFAULT_LOCATION if value is None else value

    @field_validator("published_date", mode="before")
    @classmethod
    def _lenient_published_date(cls, value: Any, info: ValidationInfo) -> Optional[datetime]:
        try:
            return _parse_published_date(value)
        except ValueError as e:
            # Defaulted because of bad input, not because the API sent null
            app_logger.warning(
                f"Failed to parse published_date {value!r} for document "
                f"{info.data.get('id')!r} ({e}). Defaulting to None."
            )
            return None

    @field_validator("created_at", "updated_at")
    @classmethod
    def _utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return _as_utc(value) if value is not None else None


class ReaderPage(BaseModel):
    """One page of the list endpoint. ``results`` stay raw so a bad record
    fails alone instead of taking the whole page with it."""

    model_config = {"populate_by_name": True, "extra": "ignore"}

    total_remaining: Optional[int] = Field(default=None, alias="count")
    next_page_cursor: Optional[str] = Field(default=None, alias="nextPageCursor")
    results: List[Any]
