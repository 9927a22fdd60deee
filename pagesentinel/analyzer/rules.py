"""Rule-based building blocks for page analysis."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Awaitable, Optional, Protocol, Union

from ..config import Heuristics
from ..constants import Category
from .models import CategoryResult
from .signals import PageSignals
from .threat_intel import ThreatSnapshot


@dataclass(frozen=True)
class DetectionContext:
    """Shared, read-only context passed to each category rule."""

    signals: PageSignals
    threat_snapshot: ThreatSnapshot
    heuristics: Heuristics


RuleOutcome = Optional[CategoryResult]


class DetectionRule(Protocol):
    """Interface for category rules.

    `apply` returns None when the category's input was not collected.
    """

    category: Category

    def apply(self, context: DetectionContext) -> Union[RuleOutcome, Awaitable[RuleOutcome]]:  # pragma: no cover - interface
        ...
