"""Persistence for the single "last successful sync start time"."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlmodel import select

from readwise_sync.config.logger import app_logger
from readwise_sync.models.sync_state import SYNC_STATE_ID, SyncState
from readwise_sync.utils.errors import CheckpointError


class CheckpointStore:
    """Reads and writes the ``sync_state`` singleton row."""

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]):
        self._session_maker = session_maker

    async def load(self) -> Optional[datetime]:
        """Return the stored checkpoint, or None when the job has never completed.

        Raises:
            CheckpointError: the store could not be queried.
        """
        try:
            async with self._session_maker() as session:
                result = await session.execute(
                    select(SyncState.last_sync_at).where(SyncState.id == SYNC_STATE_ID)
                )
                value = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            raise CheckpointError(f"Failed to load checkpoint: {e}") from e

        if value is None:
            return None
        # SQLite hands back naive datetimes; everything we store is UTC
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value

    async def save(self, ts: datetime) -> None:
        """Overwrite the checkpoint in a single transaction.

        Raises:
            CheckpointError: the store could not be written.
        """
        ts = ts.astimezone(timezone.utc)
        try:
            async with self._session_maker() as session:
                async with session.begin():
                    await session.merge(SyncState(id=SYNC_STATE_ID, last_sync_at=ts))
        except SQLAlchemyError as e:
            raise CheckpointError(f"Failed to save checkpoint {ts.isoformat()}: {e}") from e

        app_logger.debug(f"Checkpoint written: {ts.isoformat()}")
