"""Error taxonomy for the sync engine.

Only ``FatalSyncError`` subclasses are allowed to escape to the orchestrator;
everything else is absorbed where it happens and shows up as a counter or a
log line.
"""

from typing import Optional


class ReadwiseSyncError(Exception):
    """Base class for all sync errors."""


class FatalSyncError(ReadwiseSyncError):
    """Aborts the run. No checkpoint is written."""


class ConfigurationError(FatalSyncError):
    """Required configuration is missing or invalid."""


class FatalClientError(FatalSyncError):
    """The API rejected the request (401/403/404/400 ...); retrying will not help."""

    def __init__(self, status_code: int, message: str = ""):
        self.status_code = status_code
        super().__init__(message or f"Non-retryable HTTP error {status_code} from Readwise API")


class RetryBudgetExceeded(FatalSyncError):
    """Transient failures persisted past the configured retry ceiling."""

    def __init__(self, attempts: int, last_error: Exception):
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(f"Giving up after {attempts} attempts: {last_error}")


class MalformedResponseError(FatalSyncError):
    """A page body could not be decoded into results and a cursor."""


class CheckpointError(FatalSyncError):
    """The checkpoint store could not be read or written."""


class StoreUnavailableError(FatalSyncError):
    """The document store could not be queried outside of a per-record write."""


class TransientAPIError(ReadwiseSyncError):
    """Retryable failure: 5xx, timeout, or connection error."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class RateLimitedError(TransientAPIError):
    """HTTP 429. ``retry_after`` is the server-mandated wait in seconds, if any."""

    def __init__(self, retry_after: Optional[float]):
        self.retry_after = retry_after
        super().__init__(f"Rate limited (retry_after={retry_after})", status_code=429)


class RecordError(ReadwiseSyncError):
    """A single document failed normalization or its write; the run continues."""

    def __init__(self, message: str, document_id: Optional[str] = None):
        self.document_id = document_id
        super().__init__(message)
