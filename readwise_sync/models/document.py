"""Reader document model and its closed wire enumerations."""

from datetime import datetime
from enum import Enum
from typing import Any

from sqlalchemy import (
    JSON,
    CheckConstraint,
    Column,
    DateTime,
    Float,
    Index,
    Integer,
    Text,
    text,
)
from sqlalchemy import Enum as SAEnum
from sqlalchemy.dialects.postgresql import JSONB
from sqlmodel import Field, SQLModel


class Category(str, Enum):
    """Document category as reported by Reader."""

    ARTICLE = "article"
    EMAIL = "email"
    EPUB = "epub"
    HIGHLIGHT = "highlight"
    NOTE = "note"
    PDF = "pdf"
    RSS = "rss"
    TWEET = "tweet"
    VIDEO = "video"


class Location(str, Enum):
    """Triage location of a document inside Reader."""

    ARCHIVE = "archive"
    FEED = "feed"
    LATER = "later"
    NEW = "new"
    SHORTLIST = "shortlist"


# Stored value when the API omits location
DEFAULT_LOCATION = Location.NEW
UNTITLED = "Untitled"
# Largest value an INTEGER column holds on Postgres
MAX_WORD_COUNT = 2_147_483_647


def _enum_values(enum_cls: type[Enum]) -> list[str]:
    return [member.value for member in enum_cls]


class Document(SQLModel, table=True):
    """One Reader document, fully replaced on every sync pass that observes it."""

    __tablename__ = "reading"
    __table_args__ = (
        CheckConstraint(
            "reading_progress >= 0.0 AND reading_progress <= 1.0",
            name="reading_progress_bounds",
        ),
        CheckConstraint("word_count >= 0", name="word_count_non_negative"),
        # source_url is shared by highlights/notes and their parent, so not unique
        Index(
            "source_url_idx",
            "source_url",
            postgresql_where=text("source_url IS NOT NULL"),
            sqlite_where=text("source_url IS NOT NULL"),
        ),
    )

    id: str = Field(sa_column=Column(Text, primary_key=True))
    author: str | None = Field(default=None, sa_column=Column(Text))
    category: Category = Field(
        sa_column=Column(
            SAEnum(Category, name="category", values_callable=_enum_values),
            nullable=False,
        )
    )
    content: str | None = Field(default=None, sa_column=Column(Text))
    created_at: datetime = Field(sa_column=Column(DateTime(timezone=True), nullable=False))
    image_url: str | None = Field(default=None, sa_column=Column(Text))
    location: Location = Field(
        default=DEFAULT_LOCATION,
        sa_column=Column(
            SAEnum(Location, name="location", values_callable=_enum_values),
            nullable=False,
        ),
    )
    notes: str | None = Field(default=None, sa_column=Column(Text))
    parent_id: str | None = Field(default=None, sa_column=Column(Text))
    published_date: datetime | None = Field(
        default=None, sa_column=Column(DateTime(timezone=True))
    )
    reading_progress: float = Field(default=0.0, sa_column=Column(Float, nullable=False))
    readwise_url: str | None = Field(default=None, sa_column=Column(Text))
    site_name: str | None = Field(default=None, sa_column=Column(Text))
    source: str | None = Field(default=None, sa_column=Column(Text))
    source_url: str | None = Field(default=None, sa_column=Column(Text))
    summary: str | None = Field(default=None, sa_column=Column(Text))
    # Opaque blob, stored as-is
    tags: Any = Field(
        default=None,
        sa_column=Column(
            JSON(none_as_null=True).with_variant(JSONB(none_as_null=True), "postgresql")
        ),
    )
    title: str = Field(default=UNTITLED, sa_column=Column(Text, nullable=False))
    updated_at: datetime | None = Field(default=None, sa_column=Column(DateTime(timezone=True)))
    word_count: int = Field(
        default=0, sa_column=Column(Integer, nullable=False, server_default="0")
    )
