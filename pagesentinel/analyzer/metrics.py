"""Detection metrics tracking.

Provides insight into which findings are firing, how results are
distributed across risk tiers and how well the result cache is working,
enabling data-driven tuning of weights and thresholds.
"""

import logging
import threading
from collections import defaultdict
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

logger = logging.getLogger(__name__)


@dataclass
class FindingMetrics:
    """Metrics for a single finding type."""

    hits: int = 0
    last_hit: Optional[datetime] = None

    def record_hit(self) -> None:
        self.hits += 1
        self.last_hit = datetime.now()


class DetectionMetrics:
    """Thread-safe metrics collector for page analysis."""

    _instance: Optional["DetectionMetrics"] = None
    _lock = threading.Lock()

    def __new__(cls) -> "DetectionMetrics":
        """Singleton pattern for global metrics access."""
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super().__new__(cls)
                    cls._instance._initialized = False
        return cls._instance

    def __init__(self) -> None:
        if self._initialized:
            return
        self._initialized = True
        self._lock = threading.Lock()
        self._findings: dict[str, FindingMetrics] = defaultdict(FindingMetrics)
        self._risk_levels: dict[str, int] = defaultdict(int)
        self._total_analyses = 0
        self._cache_hits = 0
        self._cache_misses = 0
        self._coalesced = 0
        self._refreshes = 0
        self._refresh_failures = 0
        self._started: datetime = datetime.now()

    def record_analysis(self, risk_level: str, finding_types: list[str]) -> None:
        """Record one completed aggregation."""
        with self._lock:
            self._total_analyses += 1
            self._risk_levels[risk_level] += 1
            for finding_type in finding_types:
                self._findings[finding_type].record_hit()

    def record_cache(self, hit: bool) -> None:
        with self._lock:
            if hit:
                self._cache_hits += 1
            else:
                self._cache_misses += 1

    def record_coalesced(self) -> None:
        """Record a caller that joined an in-flight analysis."""
        with self._lock:
            self._coalesced += 1

    def record_refresh(self, success: bool) -> None:
        with self._lock:
            if success:
                self._refreshes += 1
            else:
                self._refresh_failures += 1

    def get_summary(self) -> dict:
        """Get a summary of all metrics."""
        with self._lock:
            uptime = datetime.now() - self._started
            return {
                "uptime_seconds": int(uptime.total_seconds()),
                "total_analyses": self._total_analyses,
                "risk_levels": dict(self._risk_levels),
                "cache": {
                    "hits": self._cache_hits,
                    "misses": self._cache_misses,
                    "coalesced": self._coalesced,
                },
                "threat_refresh": {
                    "succeeded": self._refreshes,
                    "failed": self._refresh_failures,
                },
                "top_findings": self._get_top_findings(5),
            }

    def _get_top_findings(self, n: int) -> list[dict]:
        """Get top N finding types by hit count."""
        ranked = sorted(self._findings.items(), key=lambda x: x[1].hits, reverse=True)[:n]
        return [{"type": t, "hits": m.hits} for t, m in ranked]

    def reset(self) -> None:
        """Reset all metrics (useful for testing)."""
        with self._lock:
            self._findings.clear()
            self._risk_levels.clear()
            self._total_analyses = 0
            self._cache_hits = 0
            self._cache_misses = 0
            self._coalesced = 0
            self._refreshes = 0
            self._refresh_failures = 0
            self._started = datetime.now()


# Global instance
metrics = DetectionMetrics()
