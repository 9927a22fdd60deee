"""Weighted aggregation of category scores and risk-tier classification."""

from __future__ import annotations

import math
import time
from typing import Callable, Iterable, Mapping, Optional

from ..config import DEFAULT_CATEGORY_WEIGHTS, RiskThresholds
from ..constants import CATEGORY_ORDER, Category, RiskLevel
from .models import AnalysisResult, CategoryResult, Finding

# Scores within this distance below a cutoff count as reaching it (float noise
# from dividing by the present weights).
_CUTOFF_TOLERANCE = 1e-9


def combine_scores(
    results: Mapping[Category, Optional[CategoryResult]],
    weights: Mapping[str, float] = DEFAULT_CATEGORY_WEIGHTS,
) -> float:
    """Weighted average over the categories that are present.

    Absent categories drop out of both numerator and denominator.
    """
    numerator: list[float] = []
    denominator: list[float] = []
    for category, result in results.items():
        if result is None:
            continue
        weight = weights.get(str(category), 0.0)
        numerator.append(result.value * weight)
        denominator.append(weight)

    total_weight = math.fsum(denominator)
    if total_weight <= 0:
        return 0.0
    return math.fsum(numerator) / total_weight


def classify_risk(
    normalized_score: float,
    findings: Iterable[Finding],
    thresholds: RiskThresholds = RiskThresholds(),
) -> RiskLevel:
    """Map score and severity density to a tier.

    Severe findings escalate the tier so one strong signal is not diluted
    by several quiet categories.
    """
    severities = [f.severity for f in findings]
    critical = sum(1 for s in severities if s >= thresholds.critical_severity)
    high = sum(1 for s in severities if s >= thresholds.high_severity)

    def reaches(cutoff: float) -> bool:
        return normalized_score + _CUTOFF_TOLERANCE >= cutoff

    if critical >= thresholds.critical_findings or reaches(thresholds.critical_score):
        return RiskLevel.CRITICAL
    if critical >= 1 or high >= thresholds.high_findings or reaches(thresholds.high_score):
        return RiskLevel.HIGH
    if high >= 1 or reaches(thresholds.medium_score):
        return RiskLevel.MEDIUM
    if reaches(thresholds.low_score):
        return RiskLevel.LOW
    return RiskLevel.SAFE


def to_percent(normalized_score: float) -> int:
    """Round half up to an integer in [0, 100]."""
    return max(0, min(100, math.floor(normalized_score * 100 + 0.5)))


def aggregate(
    results: Mapping[Category, Optional[CategoryResult]],
    weights: Mapping[str, float] = DEFAULT_CATEGORY_WEIGHTS,
    thresholds: RiskThresholds = RiskThresholds(),
    clock: Callable[[], float] = time.time,
) -> AnalysisResult:
    """Fold category results into one AnalysisResult."""
    normalized = combine_scores(results, weights)

    findings: list[Finding] = []
    for category in CATEGORY_ORDER:
        result = results.get(category)
        if result is not None:
            findings.extend(result.findings)
    # sorted() is stable, so ties keep category evaluation order.
    findings = sorted(findings, key=lambda f: f.severity, reverse=True)

    return AnalysisResult(
        risk_level=classify_risk(normalized, findings, thresholds),
        score=to_percent(normalized),
        findings=tuple(findings),
        timestamp=clock(),
        category_values={
            str(category): result.value
            for category, result in results.items()
            if result is not None
        },
    )
