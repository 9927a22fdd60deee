"""Content pattern analysis."""

from __future__ import annotations

from ..config import Heuristics
from ..utils.lexical import (
    count_phrase_occurrences,
    count_spelling_anomalies,
    first_present,
    present_keywords,
)
from .models import CategoryResult, Finding


def analyze_content_patterns(content: str, heuristics: Heuristics) -> CategoryResult:
    """Score visible page text for urgency, data requests, misspellings and bait."""
    if not content:
        return CategoryResult(0.0)

    score = 0
    findings: list[Finding] = []

    urgency_count = count_phrase_occurrences(content, heuristics.urgency_phrases)
    if urgency_count >= 3:
        score += 40
        findings.append(
            Finding(
                "urgency_manipulation",
                7,
                f"Multiple urgency phrases detected ({urgency_count} instances)",
            )
        )
    elif urgency_count > 0:
        score += 15
        findings.append(Finding("urgency_language", 4, "Urgency-based language present"))

    sensitive = present_keywords(content, heuristics.financial_keywords)
    if len(sensitive) >= 3:
        score += 30
        findings.append(
            Finding("sensitive_data_request", 8, "Requests multiple types of sensitive information")
        )

    misspellings = count_spelling_anomalies(content, heuristics.spelling_patterns)
    if misspellings > 5:
        score += 25
        findings.append(
            Finding(
                "poor_quality",
                5,
                f"Numerous spelling or grammar issues detected ({misspellings})",
            )
        )

    if first_present(content, heuristics.reward_phrases):
        score += 20
        findings.append(
            Finding("reward_bait", 6, "Contains unrealistic reward or prize claims")
        )

    return CategoryResult.from_points(score, findings)
