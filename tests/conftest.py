"""
Fixtures for the sync tests: a throwaway SQLite store per test and a
loguru capture sink.
"""

from typing import AsyncGenerator, List

import pytest
import pytest_asyncio
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from readwise_sync.db.db import build_engine, create_tables
from readwise_sync.services.checkpoint_store import CheckpointStore
from readwise_sync.services.document_sink import DocumentSink


@pytest.fixture
def db_url(tmp_path) -> str:
    return f"sqlite+aiosqlite:///{tmp_path / 'reader.db'}"


@pytest_asyncio.fixture
async def engine(db_url) -> AsyncGenerator[AsyncEngine, None]:
    """Engine over a fresh database with tables and the checkpoint row created."""
    engine = build_engine(db_url, timeout=5.0)
    await create_tables(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(engine) -> async_sessionmaker:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
def sink(session_maker, engine) -> DocumentSink:
    return DocumentSink(session_maker, engine.dialect.name)


@pytest.fixture
def checkpoints(session_maker) -> CheckpointStore:
    return CheckpointStore(session_maker)


@pytest.fixture
def log_messages() -> List[str]:
    """Collect formatted loguru messages emitted during the test."""
    messages: List[str] = []
    handler_id = logger.add(lambda msg: messages.append(msg.record["message"]), level="DEBUG")
    yield messages
    logger.remove(handler_id)
