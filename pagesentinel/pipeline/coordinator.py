"""Analysis coordinator: cache lookup, single-flight and notification fan-out."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Optional, Union

from ..analyzer.detector_engine import PageRiskDetector
from ..analyzer.metrics import metrics
from ..analyzer.models import AnalysisResult
from ..analyzer.signals import PageSignals
from ..analyzer.threat_intel import (
    FileFeedSource,
    HttpFeedSource,
    StaticFeedSource,
    ThreatDatabase,
    ThreatFeedSource,
)
from ..analyzer.threat_intel_updater import ThreatIntelRefresher
from ..cache import ResultCache
from ..config import DEFAULT_THREAT_DOMAINS, Config
from .notifications import NotificationHub
from .session import PageSession, ResultCallback

logger = logging.getLogger(__name__)


def feed_source_for(config: Config) -> ThreatFeedSource:
    """Pick the threat feed: URL, then file, then the built-in placeholder list."""
    if config.threat_feed_url:
        return HttpFeedSource(config.threat_feed_url)
    if config.threat_feed_file:
        return FileFeedSource(config.threat_feed_file)
    return StaticFeedSource(DEFAULT_THREAT_DOMAINS)


class AnalysisCoordinator:
    """Entry point for page analysis.

    At most one analysis per URL is in flight at a time; concurrent callers
    for the same URL share its result. Different URLs run independently.
    """

    def __init__(
        self,
        detector: PageRiskDetector,
        cache: Optional[ResultCache] = None,
        notifier: Optional[NotificationHub] = None,
        refresher: Optional[ThreatIntelRefresher] = None,
        debounce_seconds: float = 2.0,
    ):
        self.detector = detector
        self.cache = cache if cache is not None else ResultCache()
        self.notifier = notifier if notifier is not None else NotificationHub()
        self.refresher = refresher
        self.debounce_seconds = debounce_seconds
        self._inflight: dict[str, asyncio.Task] = {}

    @classmethod
    def from_config(
        cls, config: Config, threat_db: Optional[ThreatDatabase] = None
    ) -> "AnalysisCoordinator":
        threat_db = threat_db or ThreatDatabase()
        refresher = ThreatIntelRefresher(
            threat_db,
            feed_source_for(config),
            staleness_seconds=config.threat_staleness_seconds,
            poll_seconds=config.threat_poll_seconds,
            retry_base_seconds=config.threat_retry_base_seconds,
        )
        return cls(
            detector=PageRiskDetector.from_config(config, threat_db),
            cache=ResultCache(
                capacity=config.cache_capacity,
                freshness_seconds=config.cache_freshness_seconds,
                persist_path=config.cache_path,
            ),
            notifier=NotificationHub(enable_warnings=config.enable_notifications),
            refresher=refresher,
            debounce_seconds=config.reanalysis_debounce_seconds,
        )

    async def start(self) -> None:
        """Load the first threat snapshot and start background refresh."""
        if self.refresher:
            await self.refresher.start()

    async def stop(self) -> None:
        if self.refresher:
            await self.refresher.stop()
        pending = [t for t in self._inflight.values() if not t.done()]
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

    def in_flight(self, url: str) -> bool:
        task = self._inflight.get(url)
        return task is not None and not task.done()

    async def analyze(self, signals: PageSignals, refresh: bool = False) -> AnalysisResult:
        """Return a fresh result for the page, computing it at most once per URL.

        With refresh=True the cache is bypassed; an in-flight run for the URL
        is allowed to finish first so two runs never overlap.
        """
        url = signals.url

        if not refresh:
            cached = self.cache.get(url)
            if cached is not None:
                metrics.record_cache(hit=True)
                logger.debug("Cache hit for %s", url)
                return cached

            task = self._inflight.get(url)
            if task is not None:
                metrics.record_coalesced()
                logger.debug("Joining in-flight analysis for %s", url)
                return await asyncio.shield(task)
        else:
            while url in self._inflight:
                await asyncio.wait({self._inflight[url]})

        metrics.record_cache(hit=False)
        task = asyncio.create_task(self._compute(signals))
        self._inflight[url] = task
        task.add_done_callback(lambda t, key=url: self._forget(key, t))
        return await asyncio.shield(task)

    def invalidate(self, url: str) -> bool:
        """Drop the cached result so the next analyze recomputes."""
        return self.cache.invalidate(url)

    def session(
        self,
        signals_provider: Callable[[], Union[PageSignals, Awaitable[PageSignals]]],
        on_result: Optional[ResultCallback] = None,
        debounce_seconds: Optional[float] = None,
    ) -> PageSession:
        """Create a debounced re-analysis session bound to one page."""
        return PageSession(
            self,
            signals_provider,
            debounce_seconds=self.debounce_seconds if debounce_seconds is None else debounce_seconds,
            on_result=on_result,
        )

    async def _compute(self, signals: PageSignals) -> AnalysisResult:
        result = await self.detector.detect(signals)
        await self.cache.store(signals.url, result)
        await self.notifier.publish(signals.url, result)
        return result

    def _forget(self, url: str, task: asyncio.Task) -> None:
        if self._inflight.get(url) is task:
            del self._inflight[url]
