"""Database seed helpers."""

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession
from sqlmodel import select

from readwise_sync.config.logger import app_logger
from readwise_sync.models.sync_state import SYNC_STATE_ID, SyncState


async def ensure_sync_state_row(engine: AsyncEngine) -> None:
    """Insert the singleton checkpoint row (last_sync_at NULL) if it doesn't exist."""
    async with AsyncSession(engine, expire_on_commit=False) as session:
        result = await session.execute(select(SyncState).where(SyncState.id == SYNC_STATE_ID))
        if result.scalar_one_or_none() is not None:
            return

        session.add(SyncState(id=SYNC_STATE_ID, last_sync_at=None))
        await session.commit()
        app_logger.info("Seeded empty sync_state row (never synced)")
