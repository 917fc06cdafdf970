"""
Command-line entry point for readwise-sync.

Usage:
    # Incremental sync from the stored checkpoint (full sync on first run)
    readwise-sync

    # Ignore the checkpoint and re-sync everything
    readwise-sync --full-sync

Exit codes: 0 when the run completes (even if some documents failed),
1 when it aborts, 130 when interrupted.
"""

import argparse
import asyncio
import json
import sys
from typing import Optional, Sequence

import httpx
from sqlalchemy.exc import SQLAlchemyError

from readwise_sync.config.logger import LoguruConfig, app_logger
from readwise_sync.config.settings import settings
from readwise_sync.db.db import close_db, get_session_maker, init_db, ping_database
from readwise_sync.services.checkpoint_store import CheckpointStore
from readwise_sync.services.document_sink import DocumentSink
from readwise_sync.services.reader_api import ReaderClient, Sleep
from readwise_sync.services.reader_sync import ReaderSyncService, SyncSummary
from readwise_sync.utils.errors import CheckpointError, FatalSyncError


async def run_sync(
    full_sync: bool = False,
    db_url: Optional[str] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    sleep: Sleep = asyncio.sleep,
) -> SyncSummary:
    """Wire the store, API client, and orchestrator together and run one pass."""
    # Fails on a missing token before any I/O happens
    client = ReaderClient(settings.READWISE_ACCESS_TOKEN, transport=transport, sleep=sleep)

    try:
        try:
            engine = await init_db(db_url)
        except (SQLAlchemyError, OSError) as e:
            raise CheckpointError(f"Database unavailable: {e}") from e

        healthy, message = await ping_database()
        if not healthy:
            raise CheckpointError(message)

        session_maker = get_session_maker()
        service = ReaderSyncService(
            client=client,
            checkpoints=CheckpointStore(session_maker),
            sink=DocumentSink(session_maker, engine.dialect.name),
        )
        return await service.run(full_sync=full_sync)
    finally:
        await client.aclose()
        await close_db()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="readwise-sync",
        description="Sync Readwise Reader documents to a relational store",
    )
    parser.add_argument(
        "--full-sync",
        action="store_true",
        default=False,
        help="Bypass the checkpoint and re-sync everything from the beginning",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help=f"Log verbosity (default: {settings.LOG_LEVEL})",
    )
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Parse arguments, run the sync, and translate the outcome into an exit code."""
    args = build_parser().parse_args(argv)

    LoguruConfig(app_name=settings.APP_NAME, logs_dir=settings.LOG_DIR).setup_logger(
        log_level=args.log_level or settings.LOG_LEVEL,
        log_to_file=settings.LOG_TO_FILE,
    )

    try:
        summary = asyncio.run(run_sync(full_sync=args.full_sync))
    except FatalSyncError as e:
        app_logger.error(f"Sync failed: {e}")
        return 1
    except KeyboardInterrupt:
        app_logger.warning("Interrupted; checkpoint left unchanged")
        return 130

    print(json.dumps(summary.as_dict()))
    return 0


if __name__ == "__main__":
    sys.exit(main())
