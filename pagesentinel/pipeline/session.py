"""Per-page session with debounced re-analysis."""

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Optional, Union

from ..analyzer.models import AnalysisResult
from ..analyzer.signals import PageSignals
from ..constants import risk_escalated
from ..errors import SessionClosedError
from ..utils.domains import is_analyzable_url

if TYPE_CHECKING:
    from .coordinator import AnalysisCoordinator

logger = logging.getLogger(__name__)

ResultCallback = Callable[[AnalysisResult], Any]
SignalsProvider = Callable[[], Union[PageSignals, Awaitable[PageSignals]]]


class PageSession:
    """Collapses bursts of page-change notifications into one re-analysis.

    Every notification restarts the window; the re-run starts only after the
    page has been quiet for `debounce_seconds`. Closing the session cancels
    any pending or running re-run.
    """

    def __init__(
        self,
        coordinator: "AnalysisCoordinator",
        signals_provider: SignalsProvider,
        debounce_seconds: float = 2.0,
        on_result: Optional[ResultCallback] = None,
    ):
        self.coordinator = coordinator
        self.debounce_seconds = debounce_seconds
        self.last_result: Optional[AnalysisResult] = None
        self.reruns = 0
        self._signals_provider = signals_provider
        self._on_result = on_result
        self._timer: Optional[asyncio.Task] = None
        self._active: set[asyncio.Task] = set()
        self._reasons: list[str] = []
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def pending(self) -> bool:
        """True while a re-run is waiting for the window to elapse."""
        return self._timer is not None and not self._timer.done()

    async def analyze_now(self, refresh: bool = False) -> Optional[AnalysisResult]:
        """Analyze the current page immediately. Internal browser pages return None."""
        if self._closed:
            raise SessionClosedError("page session is closed")

        signals = self._signals_provider()
        if inspect.isawaitable(signals):
            signals = await signals
        if not is_analyzable_url(signals.url):
            logger.debug("Skipping non-analyzable page %s", signals.url)
            return None

        result = await self.coordinator.analyze(signals, refresh=refresh)
        previous = self.last_result
        self.last_result = result
        if previous is not None and risk_escalated(str(result.risk_level), str(previous.risk_level)):
            logger.info(
                "Risk for %s escalated from %s to %s", signals.url, previous.risk_level, result.risk_level
            )
        await self._emit(result)
        return result

    def notify_change(self, reason: str = "mutation") -> None:
        """Record a page change and restart the debounce window."""
        if self._closed:
            raise SessionClosedError("page session is closed")
        self._reasons.append(reason)
        if self._timer is not None and not self._timer.done():
            self._timer.cancel()
        self._timer = asyncio.create_task(self._debounced_rerun())

    async def wait_idle(self) -> None:
        """Wait until no re-run is pending or running."""
        while True:
            pending = [t for t in (self._timer, *self._active) if t is not None and not t.done()]
            if not pending:
                return
            await asyncio.wait(pending)

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        tasks = [t for t in (self._timer, *self._active) if t is not None and not t.done()]
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._timer = None
        self._active.clear()

    async def __aenter__(self) -> "PageSession":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def _debounced_rerun(self) -> None:
        await asyncio.sleep(self.debounce_seconds)

        # Past the window: later notifications start a new timer instead of cancelling this run.
        task = asyncio.current_task()
        if self._timer is task:
            self._timer = None
        self._active.add(task)
        reasons, self._reasons = self._reasons, []
        try:
            logger.debug("Re-analyzing after %s change(s): %s", len(reasons), ", ".join(reasons))
            self.reruns += 1
            await self.analyze_now(refresh=True)
        except SessionClosedError:
            pass
        except Exception as exc:
            logger.error("Re-analysis failed: %s", exc)
        finally:
            self._active.discard(task)

    async def _emit(self, result: AnalysisResult) -> None:
        if self._on_result is None:
            return
        try:
            outcome = self._on_result(result)
            if inspect.isawaitable(outcome):
                await outcome
        except Exception as exc:
            logger.error("Session result callback failed: %s", exc)
