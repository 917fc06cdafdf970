"""Tests for the readwise-sync command line entry point."""

import json
from datetime import datetime, timezone

import httpx
import pytest

from readwise_sync import main as cli
from readwise_sync.config.settings import settings
from readwise_sync.services.reader_sync import SyncMode, SyncPhase, SyncSummary
from readwise_sync.utils.errors import CheckpointError, FatalClientError
from tests.helpers import SleepRecorder, StubReaderAPI, make_raw_record, page_response


def make_summary() -> SyncSummary:
    return SyncSummary(
        phase=SyncPhase.DONE,
        mode=SyncMode.FULL,
        updated_after=None,
        sync_started_at=datetime(2026, 2, 19, tzinfo=timezone.utc),
        pages_fetched=1,
        documents_upserted=3,
        documents_failed=1,
        elapsed_seconds=0.5,
    )


class TestArgumentParsing:
    """CLI flags."""

    def test_defaults(self):
        args = cli.build_parser().parse_args([])
        assert args.full_sync is False
        assert args.log_level is None

    def test_full_sync_flag(self):
        assert cli.build_parser().parse_args(["--full-sync"]).full_sync is True


class TestExitCodes:
    """Outcome -> process exit status."""

    def test_success_prints_summary_and_returns_zero(self, monkeypatch, capsys):
        calls = []

        async def fake_run_sync(full_sync=False):
            calls.append(full_sync)
            return make_summary()

        monkeypatch.setattr(cli, "run_sync", fake_run_sync)

        assert cli.main(["--full-sync", "--log-level", "WARNING"]) == 0
        assert calls == [True]
        printed = json.loads(capsys.readouterr().out)
        assert printed["documents_upserted"] == 3
        assert printed["documents_failed"] == 1
        assert printed["phase"] == "done"

    @pytest.mark.parametrize(
        "error",
        [FatalClientError(401), CheckpointError("database is locked")],
    )
    def test_fatal_error_returns_one(self, monkeypatch, capsys, error):
        async def failing_run_sync(full_sync=False):
            raise error

        monkeypatch.setattr(cli, "run_sync", failing_run_sync)

        assert cli.main([]) == 1
        assert capsys.readouterr().out == ""

    def test_interrupt_returns_130(self, monkeypatch):
        async def interrupted(full_sync=False):
            raise KeyboardInterrupt

        monkeypatch.setattr(cli, "run_sync", interrupted)

        assert cli.main([]) == 130

    def test_missing_token_returns_one(self, monkeypatch):
        monkeypatch.setattr(settings, "READWISE_ACCESS_TOKEN", "")
        assert cli.main([]) == 1


class TestRunSync:
    """The wired-up job against SQLite and a stubbed API."""

    @pytest.mark.asyncio
    async def test_first_run_full_then_incremental(self, monkeypatch, db_url):
        monkeypatch.setattr(settings, "READWISE_ACCESS_TOKEN", "test-token")
        monkeypatch.setattr(settings, "READWISE_API_URL", "https://readwise.test/api/v3/list/")

        first = StubReaderAPI([
            page_response([make_raw_record("a")], next_cursor="c1"),
            page_response([make_raw_record("b")]),
        ])
        summary = await cli.run_sync(db_url=db_url, transport=first.transport(), sleep=SleepRecorder())

        assert summary.mode is SyncMode.FULL
        assert summary.documents_upserted == 2
        assert first.requests[0].headers["Authorization"] == "Token test-token"

        second = StubReaderAPI([page_response([make_raw_record("b", title="Renamed")])])
        summary = await cli.run_sync(db_url=db_url, transport=second.transport(), sleep=SleepRecorder())

        assert summary.mode is SyncMode.INCREMENTAL
        assert "updatedAfter" in second.params(0)

    @pytest.mark.asyncio
    async def test_unreachable_database_is_a_checkpoint_error(self, monkeypatch, tmp_path):
        monkeypatch.setattr(settings, "READWISE_ACCESS_TOKEN", "test-token")
        stub = StubReaderAPI([])
        bad_url = f"sqlite+aiosqlite:///{tmp_path / 'missing' / 'dir' / 'reader.db'}"

        with pytest.raises(CheckpointError):
            await cli.run_sync(db_url=bad_url, transport=stub.transport())

        assert stub.requests == []

    @pytest.mark.asyncio
    async def test_fatal_api_error_propagates(self, monkeypatch, db_url):
        monkeypatch.setattr(settings, "READWISE_ACCESS_TOKEN", "test-token")
        stub = StubReaderAPI([httpx.Response(403)])

        with pytest.raises(FatalClientError):
            await cli.run_sync(db_url=db_url, transport=stub.transport())
