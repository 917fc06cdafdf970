"""Reader -> store sync orchestration.

One run walks ``NOT_STARTED -> DETERMINING_MODE -> FETCHING -> COMMITTING ->
DONE``. Any fatal error moves it to ``ABORTED`` and leaves the checkpoint
untouched, so the next run resumes from the last committed one.
"""

from __future__ import annotations

import time
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Dict, List, Optional, Tuple

from readwise_sync.config.logger import app_logger, log_performance
from readwise_sync.schemas.reader import ReaderPage
from readwise_sync.services.checkpoint_store import CheckpointStore
from readwise_sync.services.document_sink import DocumentSink
from readwise_sync.services.normalizer import normalize_record
from readwise_sync.services.reader_api import ReaderClient
from readwise_sync.utils.errors import RecordError


class SyncPhase(str, Enum):
    NOT_STARTED = "not_started"
    DETERMINING_MODE = "determining_mode"
    FETCHING = "fetching"
    COMMITTING = "committing"
    DONE = "done"
    ABORTED = "aborted"


class SyncMode(str, Enum):
    FULL = "full"
    INCREMENTAL = "incremental"


@dataclass
class SyncRun:
    """Per-run context; the checkpoint travels here, never through module state."""

    mode: SyncMode
    updated_after: Optional[datetime]
    sync_started_at: datetime
    pages_fetched: int = 0
    documents_upserted: int = 0
    documents_failed: int = 0


@dataclass
class SyncSummary:
    phase: SyncPhase
    mode: SyncMode
    updated_after: Optional[datetime]
    sync_started_at: datetime
    pages_fetched: int
    documents_upserted: int
    documents_failed: int
    elapsed_seconds: float

    def as_dict(self) -> Dict[str, object]:
        data = asdict(self)
        data["phase"] = self.phase.value
        data["mode"] = self.mode.value
        data["updated_after"] = self.updated_after.isoformat() if self.updated_after else None
        data["sync_started_at"] = self.sync_started_at.isoformat()
        return data


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ReaderSyncService:
    """Drives one sequential fetch / normalize / upsert pass and commits the checkpoint."""

    def __init__(
        self,
        client: ReaderClient,
        checkpoints: CheckpointStore,
        sink: DocumentSink,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self._client = client
        self._checkpoints = checkpoints
        self._sink = sink
        self._clock = clock
        self.phase = SyncPhase.NOT_STARTED
        self.history: List[SyncPhase] = [SyncPhase.NOT_STARTED]

    def _transition(self, phase: SyncPhase) -> None:
        app_logger.debug(f"Sync phase {self.phase.value} -> {phase.value}")
        self.phase = phase
        self.history.append(phase)

    async def determine_mode(self, full_sync: bool) -> Tuple[SyncMode, Optional[datetime]]:
        """Pick full vs incremental sync and the ``updatedAfter`` filter to use."""
        checkpoint = await self._checkpoints.load()

        if full_sync:
            app_logger.info("Full sync requested, ignoring checkpoint.")
            return SyncMode.FULL, None
        if checkpoint is None:
            app_logger.info("No checkpoint found, performing full sync.")
            return SyncMode.FULL, None
        if await self._sink.count() == 0:
            app_logger.info("Document store is empty, performing full sync.")
            return SyncMode.FULL, None

        app_logger.info(f"Resuming from checkpoint: {checkpoint.isoformat()}")
        return SyncMode.INCREMENTAL, checkpoint

    async def _process_page(self, run: SyncRun, page: ReaderPage) -> None:
        if page.total_remaining is not None:
            app_logger.info(f"{page.total_remaining} total items remaining")
        app_logger.info(f"Saving {len(page.results)} items to database...")

        failures = 0
        for raw in page.results:
            try:
                await self._sink.upsert(normalize_record(raw))
            except RecordError as e:
                app_logger.error(f"{e}")
                failures += 1
                continue
            run.documents_upserted += 1

        run.documents_failed += failures
        if failures:
            app_logger.warning(f"{failures} document(s) failed to save on this page")

    async def run(self, full_sync: bool = False) -> SyncSummary:
        """Execute one sync pass.

        Record-level failures are counted and skipped. Fatal errors
        (``FatalSyncError``) abort the run and are re-raised after the phase
        is set to ``ABORTED``.
        """
        if self.phase is not SyncPhase.NOT_STARTED:
            raise RuntimeError("ReaderSyncService instances are single-use")

        start_time = time.time()
        try:
            self._transition(SyncPhase.DETERMINING_MODE)
            mode, updated_after = await self.determine_mode(full_sync)

            # Captured before the first request so updates landing mid-run are
            # re-fetched next time instead of being skipped
            run = SyncRun(mode=mode, updated_after=updated_after, sync_started_at=self._clock())

            self._transition(SyncPhase.FETCHING)
            async for page in self._client.iter_pages(run.updated_after):
                run.pages_fetched += 1
                await self._process_page(run, page)

            self._transition(SyncPhase.COMMITTING)
            await self._checkpoints.save(run.sync_started_at)
            app_logger.info(f"Checkpoint saved: {run.sync_started_at.isoformat()}")

            self._transition(SyncPhase.DONE)
        except Exception as e:
            self._transition(SyncPhase.ABORTED)
            app_logger.error(f"Sync aborted ({type(e).__name__}): {e}")
            raise

        summary = SyncSummary(
            phase=self.phase,
            mode=run.mode,
            updated_after=run.updated_after,
            sync_started_at=run.sync_started_at,
            pages_fetched=run.pages_fetched,
            documents_upserted=run.documents_upserted,
            documents_failed=run.documents_failed,
            elapsed_seconds=round(time.time() - start_time, 2),
        )

        app_logger.info(
            f"Reader sync complete - mode={summary.mode.value} pages={summary.pages_fetched} "
            f"upserted={summary.documents_upserted} failed={summary.documents_failed}"
        )
        log_performance(
            "reader_sync",
            summary.elapsed_seconds,
            pages=summary.pages_fetched,
            upserted=summary.documents_upserted,
            failed=summary.documents_failed,
        )
        return summary
