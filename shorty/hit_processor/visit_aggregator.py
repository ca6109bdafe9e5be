"""
Visit-count aggregator.

Redirects only bump an in-memory counter; a background task periodically
adds the pending counts to ``url_mapping.visit_count``. One UPDATE per
short code per interval instead of one per redirect.

Architecture:
- ``record_visit`` runs on the request path and never touches storage
- ``flush`` runs in a worker thread, one additive UPDATE per pending code
- A single lock guards the tally; it is never held across a storage call
"""

import asyncio
import logging
import threading
from typing import Dict, Optional

from shorty.exceptions import StorageError
from shorty.storage.mapping_store import MappingStore

logger = logging.getLogger(__name__)


class VisitAggregator:
    """
    Write-back tally of redirect hits per short code.

    Known limitation: visits recorded since the last flush are lost if the
    process dies (or stops without ``flush_on_shutdown``).
    """

    def __init__(
        self,
        store: MappingStore,
        flush_interval: float = 60.0,
        flush_on_shutdown: bool = False,
    ):
        """
        Args:
            store: Mapping store receiving the additive updates
            flush_interval: Seconds between flushes
            flush_on_shutdown: Run a final flush when the task is stopped
        """
        self.store = store
        self.flush_interval = flush_interval
        self.flush_on_shutdown = flush_on_shutdown
        self._tally: Dict[str, int] = {}
        self._lock = threading.Lock()
        self._task: Optional[asyncio.Task] = None
        self._stopping: Optional[asyncio.Event] = None

    def record_visit(self, short_code: str) -> None:
        with self._lock:
            self._tally[short_code] = self._tally.get(short_code, 0) + 1

    def pending(self, short_code: str) -> int:
        with self._lock:
            return self._tally.get(short_code, 0)

    def snapshot(self) -> Dict[str, int]:
        with self._lock:
            return dict(self._tally)

    def flush(self) -> int:
        """
        Add every non-zero pending count to the store.

        Per entry: read the count under the lock, write it without the lock,
        then subtract what was written. Visits recorded while the UPDATE is in
        flight stay pending for the next cycle.

        A failed update is logged and its count retained. A successful update
        is cleared even when it matched no row (the code was removed out of
        band); those visits are dropped.

        Returns:
            Number of entries written
        """
        with self._lock:
            codes = [code for code, count in self._tally.items() if count > 0]

        flushed = 0
        for short_code in codes:
            with self._lock:
                count = self._tally.get(short_code, 0)
            if count <= 0:
                continue

            try:
                rows = self.store.increment_visits(short_code, count)
            except StorageError as e:
                logger.error("Failed to flush %d visits for '%s': %s", count, short_code, e)
                continue

            if rows == 0:
                logger.warning("Flushed %d visits for unknown short code '%s'", count, short_code)

            with self._lock:
                self._tally[short_code] -= count
            flushed += 1

        if flushed:
            logger.info("Flushed visit counts for %d short codes", flushed)
        return flushed

    async def run(self) -> None:
        """Flush every ``flush_interval`` seconds until ``stop`` is called"""
        self._stopping = asyncio.Event()
        logger.info("Visit aggregator started (interval %ss)", self.flush_interval)

        while not self._stopping.is_set():
            try:
                await asyncio.wait_for(self._stopping.wait(), timeout=self.flush_interval)
            except asyncio.TimeoutError:
                pass
            else:
                break

            try:
                await asyncio.to_thread(self.flush)
            except Exception:
                # Keep the loop alive; the failed entries are still pending
                logger.exception("Visit flush cycle failed")

        if self.flush_on_shutdown:
            await asyncio.to_thread(self.flush)
        logger.info("Visit aggregator stopped")

    def start(self) -> asyncio.Task:
        self._task = asyncio.create_task(self.run())
        return self._task

    async def stop(self) -> None:
        if self._task is None:
            return
        if self._stopping is not None:
            self._stopping.set()
            await self._task
        else:
            # Stopped before run() got scheduled
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        self._task = None
        self._stopping = None
