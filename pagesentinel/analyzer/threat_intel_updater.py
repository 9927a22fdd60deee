"""Background refresh of the threat database."""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from ..errors import ThreatFeedError
from .metrics import metrics
from .threat_intel import ThreatDatabase, ThreatFeedSource

logger = logging.getLogger(__name__)


class ThreatIntelRefresher:
    """Polls the feed source and republishes the snapshot when it goes stale.

    A failed refresh keeps the previous snapshot and is retried after an
    exponential backoff (capped at the polling interval).
    """

    def __init__(
        self,
        database: ThreatDatabase,
        source: ThreatFeedSource,
        staleness_seconds: float = 86400,
        poll_seconds: float = 3600,
        retry_base_seconds: float = 30.0,
    ):
        self.database = database
        self.source = source
        self.staleness_seconds = staleness_seconds
        self.poll_seconds = poll_seconds
        self.retry_base_seconds = retry_base_seconds
        self._failures = 0
        self._task: Optional[asyncio.Task] = None
        self._refresh_lock = asyncio.Lock()

    @property
    def consecutive_failures(self) -> int:
        return self._failures

    def next_delay(self) -> float:
        """Seconds until the next tick."""
        if self._failures == 0:
            return self.poll_seconds
        backoff = self.retry_base_seconds * (2 ** (self._failures - 1))
        return min(backoff, self.poll_seconds)

    async def refresh(self) -> bool:
        """Fetch and publish a new snapshot. Returns False on failure."""
        async with self._refresh_lock:
            try:
                domains = await self.source.fetch()
                if not domains:
                    raise ThreatFeedError(self.source.name, "feed returned no domains")
            except Exception as exc:
                self._failures += 1
                metrics.record_refresh(success=False)
                logger.warning(
                    "Threat feed refresh failed (%s consecutive): %s; keeping snapshot v%s",
                    self._failures,
                    exc,
                    self.database.snapshot().version,
                )
                return False

            self.database.publish(domains, source=self.source.name)
            self._failures = 0
            metrics.record_refresh(success=True)
            return True

    async def tick(self) -> None:
        """Refresh only when the current snapshot is stale."""
        if self.database.is_stale(self.staleness_seconds):
            await self.refresh()

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.next_delay())
            await self.tick()

    async def start(self) -> None:
        """Load an initial snapshot and begin polling."""
        if self._task and not self._task.done():
            return
        await self.refresh()
        self._task = asyncio.create_task(self._run())
        logger.info(
            "Threat refresher started (staleness %ss, poll %ss)",
            self.staleness_seconds,
            self.poll_seconds,
        )

    async def stop(self) -> None:
        if not self._task:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
