"""Page risk detector engine."""

from __future__ import annotations

import inspect
import logging
import time
from typing import Callable, Mapping, Optional

from ..config import Config, Heuristics, RiskThresholds, DEFAULT_CATEGORY_WEIGHTS
from ..constants import CATEGORY_ORDER, Category
from .aggregator import aggregate
from .detector_rules import default_rules
from .metrics import metrics
from .models import AnalysisResult, CategoryResult
from .rules import DetectionContext, DetectionRule
from .signals import PageSignals
from .threat_intel import ThreatDatabase

logger = logging.getLogger(__name__)


class PageRiskDetector:
    """Runs the category rules over one page snapshot and aggregates them."""

    def __init__(
        self,
        threat_db: Optional[ThreatDatabase] = None,
        heuristics: Optional[Heuristics] = None,
        weights: Optional[Mapping[str, float]] = None,
        thresholds: Optional[RiskThresholds] = None,
        rules: Optional[list[DetectionRule]] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.threat_db = threat_db or ThreatDatabase()
        self.heuristics = heuristics or Heuristics()
        self.weights = dict(weights or DEFAULT_CATEGORY_WEIGHTS)
        self.thresholds = thresholds or RiskThresholds()
        self._rules: list[DetectionRule] = rules if rules is not None else default_rules()
        self._clock = clock

    @classmethod
    def from_config(
        cls, config: Config, threat_db: Optional[ThreatDatabase] = None
    ) -> "PageRiskDetector":
        return cls(
            threat_db=threat_db,
            heuristics=config.heuristics,
            weights=config.category_weights,
            thresholds=config.risk_thresholds,
        )

    async def detect(self, signals: PageSignals) -> AnalysisResult:
        """Analyze one page snapshot.

        The threat snapshot is read once up front so a concurrent refresh
        cannot change the reputation answer mid-analysis.
        """
        context = DetectionContext(
            signals=signals,
            threat_snapshot=self.threat_db.snapshot(),
            heuristics=self.heuristics,
        )

        results: dict[Category, Optional[CategoryResult]] = {
            category: None for category in CATEGORY_ORDER
        }
        for rule in self._rules:
            try:
                outcome = rule.apply(context)
                if inspect.isawaitable(outcome):
                    outcome = await outcome
            except Exception as exc:  # pragma: no cover - defensive
                logger.warning(
                    "Rule %s failed for %s: %s",
                    getattr(rule, "category", "unknown"),
                    signals.url,
                    exc,
                )
                continue
            results[rule.category] = outcome

        result = aggregate(results, self.weights, self.thresholds, self._clock)
        metrics.record_analysis(str(result.risk_level), [f.type for f in result.findings])

        if result.risk_level.is_alarming:
            logger.info(
                "%s risk for %s (score %s): %s",
                str(result.risk_level).upper(),
                signals.url,
                result.score,
                ", ".join(f.type for f in result.top(3)),
            )
        else:
            logger.debug("%s risk for %s (score %s)", result.risk_level, signals.url, result.score)
        return result
