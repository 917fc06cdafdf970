"""Database connection management using SQLModel with asyncpg / aiosqlite."""

from typing import Optional
from urllib.parse import urlparse, urlunparse

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel

from readwise_sync.config.logger import app_logger
from readwise_sync.config.settings import settings
from readwise_sync.db.seed import ensure_sync_state_row

_engine: Optional[AsyncEngine] = None
_session_maker: Optional[async_sessionmaker] = None


def get_db_url(db_url: Optional[str] = None) -> str:
    """Get database URL for SQLAlchemy with an async driver."""
    db_url = db_url if db_url is not None else settings.effective_database_url
    if not db_url:
        raise ValueError("DATABASE_URL not configured")

    if db_url.startswith("sqlite"):
        if db_url.startswith("sqlite://"):
            db_url = db_url.replace("sqlite://", "sqlite+aiosqlite://", 1)
        return db_url

    # For Postgres URLs, strip sslmode (asyncpg only understands "ssl")
    parsed = urlparse(db_url)
    query_parts = [p for p in parsed.query.split("&") if not p.startswith("sslmode=") and p]
    query = "&".join(query_parts)
    clean_url = urlunparse(
        (
            parsed.scheme,
            parsed.netloc,
            parsed.path,
            parsed.params,
            query,
            parsed.fragment,
        )
    )

    # Convert to asyncpg driver
    if clean_url.startswith("postgresql://"):
        clean_url = clean_url.replace("postgresql://", "postgresql+asyncpg://", 1)
    elif clean_url.startswith("postgres://"):
        clean_url = clean_url.replace("postgres://", "postgresql+asyncpg://", 1)

    return clean_url


def build_engine(db_url: str, timeout: float) -> AsyncEngine:
    """Create an async engine whose store calls are bounded by ``timeout`` seconds."""
    if db_url.startswith("postgresql+asyncpg://"):
        connect_args = {"timeout": timeout, "command_timeout": timeout}
    elif db_url.startswith("sqlite"):
        # Seconds to wait on a locked database file
        connect_args = {"timeout": timeout}
    else:
        connect_args = {}

    return create_async_engine(
        db_url,
        echo=False,
        pool_pre_ping=True,
        connect_args=connect_args,
    )


async def create_tables(engine: AsyncEngine) -> None:
    """Create the reading / sync_state tables if missing and seed the checkpoint row."""
    # Import all models to register them with SQLModel
    from readwise_sync.models import document, sync_state  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    await ensure_sync_state_row(engine)


async def init_db(db_url: Optional[str] = None, create: Optional[bool] = None) -> AsyncEngine:
    """Initialize the database engine and, if configured, the schema.

    Unlike a web app the sync job cannot run without its store, so connection
    failures propagate to the caller.
    """
    global _engine, _session_maker

    url = get_db_url(db_url)
    app_logger.info("Initializing database connection")

    _engine = build_engine(url, settings.DB_TIMEOUT_SECONDS)
    _session_maker = async_sessionmaker(
        _engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    if settings.DB_CREATE_TABLES if create is None else create:
        await create_tables(_engine)

    app_logger.info("Database initialized successfully")
    return _engine


async def close_db() -> None:
    """Close the database engine."""
    global _engine, _session_maker

    if _engine:
        await _engine.dispose()
        _engine = None
        _session_maker = None
        app_logger.info("Database connection closed")


def get_session_maker() -> async_sessionmaker:
    """Return the session factory created by ``init_db``."""
    if not _session_maker:
        raise RuntimeError("Database not initialized. Call init_db() first.")
    return _session_maker


async def ping_database() -> tuple[bool, str]:
    """Run a lightweight health query against the database."""
    if not _engine or not _session_maker:
        return False, "Database not initialized"

    try:
        async with _session_maker() as session:
            result = await session.execute(text("SELECT 1"))
            row = result.scalar()
            if row == 1:
                return True, "Database connection healthy"
            return False, f"Unexpected response: {row}"
    except (SQLAlchemyError, OSError) as e:
        return False, f"Database query failed: {e}"
