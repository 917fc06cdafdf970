"""Idempotent, per-record writes of Documents into the ``reading`` table."""

from __future__ import annotations

from typing import Any, Dict

from sqlalchemy import func, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from readwise_sync.config.logger import app_logger
from readwise_sync.models.document import MAX_WORD_COUNT, Document
from readwise_sync.utils.errors import RecordError, StoreUnavailableError

_INSERTS = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}

DOCUMENT_TABLE = Document.__table__
# Every column except the conflict key is overwritten on conflict
MUTABLE_COLUMNS = [c.name for c in DOCUMENT_TABLE.columns if not c.primary_key]


def _row_values(document: Document) -> Dict[str, Any]:
    return {c.name: getattr(document, c.name) for c in DOCUMENT_TABLE.columns}


def check_bounds(document: Document) -> None:
    """Reject values the table constraints would refuse, before touching the store."""
    progress = document.reading_progress
    if progress is None or not 0.0 <= progress <= 1.0:
        raise RecordError(
            f"reading_progress {progress!r} outside [0.0, 1.0] (id={document.id!r})",
            document_id=document.id,
        )
    if document.word_count is None or not 0 <= document.word_count <= MAX_WORD_COUNT:
        raise RecordError(
            f"word_count {document.word_count!r} outside [0, {MAX_WORD_COUNT}] (id={document.id!r})",
            document_id=document.id,
        )


class DocumentSink:
    """Writes Documents as insert-or-full-replace keyed by id.

    Each document is one statement in its own transaction so that a
    store-side change-tracking trigger sees a single clean before/after.
    """

    def __init__(self, session_maker: async_sessionmaker[AsyncSession], dialect: str):
        if dialect not in _INSERTS:
            raise ValueError(f"Unsupported database dialect for upsert: {dialect}")
        self._session_maker = session_maker
        self._insert = _INSERTS[dialect]

    def build_upsert(self, document: Document):
        stmt = self._insert(DOCUMENT_TABLE).values(**_row_values(document))
        return stmt.on_conflict_do_update(
            index_elements=[DOCUMENT_TABLE.c.id],
            set_={name: stmt.excluded[name] for name in MUTABLE_COLUMNS},
        )

    async def upsert(self, document: Document) -> None:
        """Insert or fully replace one document.

        Raises:
            RecordError: bounds check failed or the store rejected the row.
        """
        check_bounds(document)
        stmt = self.build_upsert(document)

        # Drivers raise bare OverflowError/ValueError/TypeError for values they can't bind
        try:
            async with self._session_maker() as session:
                async with session.begin():
                    await session.execute(stmt)
        except (SQLAlchemyError, OverflowError, ValueError, TypeError) as e:
            raise RecordError(
                f"Failed to save {document.title!r} (id={document.id!r}, "
                f"source_url={document.source_url!r}): {e}",
                document_id=document.id,
            ) from e

        app_logger.debug(f"Synced: {document.title}")

    async def count(self) -> int:
        """Number of stored documents.

        Raises:
            StoreUnavailableError: the store could not be queried.
        """
        try:
            async with self._session_maker() as session:
                result = await session.execute(select(func.count()).select_from(DOCUMENT_TABLE))
                return int(result.scalar_one())
        except SQLAlchemyError as e:
            raise StoreUnavailableError(f"Failed to count documents: {e}") from e
