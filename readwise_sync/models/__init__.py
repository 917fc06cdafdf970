"""Models module - imports all models for SQLModel registration."""

# Import all models so SQLModel can register them
from readwise_sync.models.document import Category, Document, Location
from readwise_sync.models.sync_state import SyncState

__all__ = [
    "Category",
    "Document",
    "Location",
    "SyncState",
]
