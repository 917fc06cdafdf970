"""Shared builders and stubs for the sync tests."""

from typing import Any, Callable, Dict, List, Optional, Union

import httpx

from readwise_sync.services.reader_api import ReaderClient

API_URL = "https://readwise.test/api/v3/list/"

Reply = Union[httpx.Response, Callable[[httpx.Request], httpx.Response]]


def make_raw_record(doc_id: str = "01hq0000000000000000000001", **overrides: Any) -> Dict[str, Any]:
    """A raw list-endpoint result shaped like Reader's."""
    record = {
        "id": doc_id,
        "url": f"https://read.readwise.io/read/{doc_id}",
        "source_url": "https://example.com/post",
        "title": "A post",
        "author": "Jane Doe",
        "source": "Reader RSS",
        "category": "article",
        "location": "later",
        "tags": {"python": {"name": "python", "type": "manual"}},
        "site_name": "example.com",
        "word_count": 1200,
        "created_at": "2024-03-04T21:32:14.000000+00:00",
        "updated_at": "2024-03-05T08:00:00.000000+00:00",
        "published_date": "2024-03-01",
        "summary": "Short summary",
        "image_url": None,
        "content": None,
        "notes": "",
        "parent_id": None,
        "reading_progress": 0.25,
    }
    record.update(overrides)
    return record


def page_response(
    results: List[Any],
    next_cursor: Optional[str] = None,
    count: Optional[int] = None,
) -> httpx.Response:
    return httpx.Response(
        200,
        json={
            "count": len(results) if count is None else count,
            "nextPageCursor": next_cursor,
            "results": results,
        },
    )


class StubReaderAPI:
    """Serves queued replies in order and records every request it sees."""

    def __init__(self, replies: List[Reply]):
        self.replies = list(replies)
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if not self.replies:
            raise AssertionError(f"Unexpected request: {request.url}")
        reply = self.replies.pop(0)
        return reply(request) if callable(reply) else reply

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)

    def params(self, index: int) -> Dict[str, str]:
        return dict(self.requests[index].url.params)


class SleepRecorder:
    """Stands in for asyncio.sleep; records requested delays without waiting."""

    def __init__(self):
        self.calls: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


def make_client(stub: StubReaderAPI, sleep: Optional[SleepRecorder] = None, **kwargs: Any) -> ReaderClient:
    options = {
        "base_url": API_URL,
        "max_retries": 2,
        "backoff_base": 1.0,
        "backoff_max": 60.0,
        "backoff_jitter": 0.0,
    }
    options.update(kwargs)
    return ReaderClient(
        "test-token",
        transport=stub.transport(),
        sleep=sleep or SleepRecorder(),
        **options,
    )
