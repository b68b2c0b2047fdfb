"""
In-memory queue of sources awaiting bulk ingestion.

The queue lives for the lifetime of the server process and is not persisted.
It is accessed from one request at a time, so it carries no internal lock.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Dict, Iterable, List, Optional

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
    wait_fixed,
)

from ..core.errors import (
    InputValidationError,
    IngestionError,
    LocalFileReadError,
    RagDocsError,
    is_fatal,
)
from .pipeline import IngestionResult

logger = logging.getLogger("ragdocs.queue")

IngestFn = Callable[[str], Awaitable[IngestionResult]]
ProgressFn = Callable[["QueueOutcome"], None]

# Failures that another attempt cannot fix.
_NOT_RETRYABLE = (InputValidationError, LocalFileReadError)


def _is_retryable(exc: BaseException) -> bool:
    return not is_fatal(exc) and not isinstance(exc, _NOT_RETRYABLE)


@dataclass
class QueueOutcome:
    """Result of processing one queue entry."""
    url: str
    ok: bool
    chunks: int = 0
    attempts: int = 1
    error_kind: Optional[str] = None
    error: Optional[str] = None


@dataclass
class DrainReport:
    outcomes: List[QueueOutcome] = field(default_factory=list)
    remaining: int = 0
    fatal_kind: Optional[str] = None
    fatal_error: Optional[str] = None

    @property
    def processed(self) -> int:
        return sum(1 for o in self.outcomes if o.ok)

    @property
    def failed(self) -> int:
        return sum(1 for o in self.outcomes if not o.ok)

    @property
    def aborted(self) -> bool:
        return self.fatal_error is not None


class ProcessingQueue:
    """
    Ordered, de-duplicated set of pending sources.

    Insertion order is processing order.
    """

    def __init__(self, max_retries: int = 0, retry_delay: float = 1.0) -> None:
        self._pending: Dict[str, None] = {}
        self._max_retries = max_retries
        self._retry_delay = retry_delay

    def __len__(self) -> int:
        return len(self._pending)

    def enqueue(self, url: str) -> bool:
        """Append ``url`` unless it is already pending. Returns True if added."""
        if url in self._pending:
            return False
        self._pending[url] = None
        logger.info("Source enqueued: %s (Queue size: %d)", url, len(self._pending))
        return True

    def enqueue_many(self, urls: Iterable[str]) -> int:
        return sum(1 for url in urls if self.enqueue(url))

    def list(self) -> List[str]:
        return list(self._pending)

    def clear(self) -> int:
        count = len(self._pending)
        self._pending.clear()
        logger.info("Queue cleared (%d entries removed)", count)
        return count

    # ------------------------------------------------------------------
    # Draining
    # ------------------------------------------------------------------

    def _pop_next(self) -> Optional[str]:
        if not self._pending:
            return None
        url = next(iter(self._pending))
        del self._pending[url]
        return url

    def _push_front(self, url: str) -> None:
        rest = [u for u in self._pending if u != url]
        self._pending = dict.fromkeys([url, *rest])

    async def drain(
        self,
        ingest: IngestFn,
        on_progress: Optional[ProgressFn] = None,
    ) -> DrainReport:
        """
        Ingest every pending source, one at a time, in insertion order.

        A source that keeps failing is recorded and dropped, and the drain
        moves on. A fatal failure stops the drain and leaves the failing
        source at the head of the queue.
        """
        report = DrainReport()
        total = len(self._pending)
        if total == 0:
            return report

        logger.info("Processing queue with %d sources", total)

        while True:
            url = self._pop_next()
            if url is None:
                break

            logger.info("Processing queue entry: %s", url)
            try:
                outcome = await self._process(url, ingest)
            except RagDocsError as exc:
                self._push_front(url)
                report.fatal_kind = exc.kind
                report.fatal_error = exc.message
                logger.error("Queue processing aborted on %s (%s): %s", url, exc.kind, exc.message)
                break

            report.outcomes.append(outcome)
            if on_progress is not None:
                on_progress(outcome)

        report.remaining = len(self._pending)
        logger.info(
            "Queue processing complete. Processed: %d, Failed: %d, Remaining: %d",
            report.processed,
            report.failed,
            report.remaining,
        )
        return report

    def _retrying(self, url: str) -> AsyncRetrying:
        def log_retry(retry_state: RetryCallState) -> None:
            exc = retry_state.outcome.exception() if retry_state.outcome else None
            logger.warning(
                "Attempt %d for %s failed (%s), retrying: %s",
                retry_state.attempt_number,
                url,
                getattr(exc, "kind", type(exc).__name__),
                getattr(exc, "message", str(exc)),
            )

        return AsyncRetrying(
            stop=stop_after_attempt(1 + self._max_retries),
            wait=wait_fixed(self._retry_delay),
            retry=retry_if_exception(_is_retryable),
            before_sleep=log_retry,
            reraise=True,
        )

    async def _process(self, url: str, ingest: IngestFn) -> QueueOutcome:
        """
        Attempt one source, retrying transient failures.

        Raises only fatal errors; everything else becomes a failed outcome.
        """
        attempts = 0
        try:
            async for attempt in self._retrying(url):
                with attempt:
                    attempts = attempt.retry_state.attempt_number
                    result = await ingest(url)
        except Exception as exc:
            if is_fatal(exc):
                raise

            error = exc if isinstance(exc, RagDocsError) else IngestionError(str(exc))
            logger.error("Failed to process %s (%s): %s", url, error.kind, error.message)
            return QueueOutcome(
                url=url,
                ok=False,
                attempts=attempts,
                error_kind=error.kind,
                error=error.message,
            )

        logger.info("Processed %s (%d chunks)", url, result.chunks_indexed)
        return QueueOutcome(url=url, ok=True, chunks=result.chunks_indexed, attempts=attempts)
