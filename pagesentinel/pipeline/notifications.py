"""Badge and warning fan-out to registered listeners."""

from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass
from typing import Any, Callable

from ..analyzer.models import AnalysisResult
from ..constants import BADGE_CONFIG, RiskLevel

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BadgeUpdate:
    """Compact per-page indicator."""

    url: str
    risk_level: RiskLevel
    text: str
    color: str

    @classmethod
    def for_result(cls, url: str, result: AnalysisResult) -> "BadgeUpdate":
        text, color = BADGE_CONFIG[result.risk_level]
        return cls(url=url, risk_level=result.risk_level, text=text, color=color)


@dataclass(frozen=True)
class WarningPayload:
    """Full result pushed to the page for high and critical tiers."""

    url: str
    result: AnalysisResult

    @property
    def title(self) -> str:
        return f"{str(self.result.risk_level).upper()} risk detected"

    def to_dict(self) -> dict[str, Any]:
        return {"url": self.url, **self.result.to_dict()}


Listener = Callable[[Any], Any]


class NotificationHub:
    """Delivers badge updates and warnings to sync or async callables."""

    def __init__(self, enable_warnings: bool = True):
        self.enable_warnings = enable_warnings
        self._badge_listeners: list[Listener] = []
        self._warning_listeners: list[Listener] = []

    def add_badge_listener(self, listener: Listener) -> None:
        self._badge_listeners.append(listener)

    def add_warning_listener(self, listener: Listener) -> None:
        self._warning_listeners.append(listener)

    async def publish(self, url: str, result: AnalysisResult) -> None:
        """Emit the badge, and a warning when the tier is alarming."""
        await self._deliver(self._badge_listeners, BadgeUpdate.for_result(url, result))
        if self.enable_warnings and result.risk_level.is_alarming:
            await self._deliver(self._warning_listeners, WarningPayload(url=url, result=result))

    async def _deliver(self, listeners: list[Listener], payload: Any) -> None:
        for listener in list(listeners):
            try:
                outcome = listener(payload)
                if inspect.isawaitable(outcome):
                    await outcome
            except Exception as exc:
                logger.error(
                    "Notification listener %s failed for %s: %s",
                    getattr(listener, "__name__", repr(listener)),
                    payload.url,
                    exc,
                )
