"""Singleton checkpoint row."""

from datetime import datetime

from sqlalchemy import CheckConstraint, Column, DateTime, Integer
from sqlmodel import Field, SQLModel

SYNC_STATE_ID = 1


class SyncState(SQLModel, table=True):
    """Start time of the last fully completed sync. Exactly one row (id = 1)."""

    __tablename__ = "sync_state"
    __table_args__ = (CheckConstraint("id = 1", name="single_row"),)

    id: int = Field(
        default=SYNC_STATE_ID,
        sa_column=Column(Integer, primary_key=True, autoincrement=False, default=SYNC_STATE_ID),
    )
    last_sync_at: datetime | None = Field(
        default=None,
        sa_column=Column(DateTime(timezone=True)),
    )
