"""Behavioral indicator analysis."""

from __future__ import annotations

from .models import CategoryResult, Finding
from .signals import BehavioralSignals


def analyze_behavioral_indicators(behavioral: BehavioralSignals) -> CategoryResult:
    """Score redirect, popup, clipboard and hidden-iframe counters."""
    score = 0
    findings: list[Finding] = []

    if behavioral.auto_redirects > 0:
        score += 30
        findings.append(
            Finding(
                "automatic_redirect",
                7,
                f"Page attempts automatic redirects ({behavioral.auto_redirects} detected)",
            )
        )

    if behavioral.popups > 2:
        score += 25
        findings.append(
            Finding(
                "excessive_popups",
                6,
                f"Multiple popup attempts detected ({behavioral.popups})",
            )
        )

    if behavioral.clipboard_access:
        score += 35
        findings.append(Finding("clipboard_access", 8, "Page attempts to access clipboard"))

    if behavioral.hidden_iframes > 0:
        score += 40
        findings.append(
            Finding(
                "hidden_iframe",
                8,
                f"Hidden iframes detected ({behavioral.hidden_iframes})",
            )
        )

    return CategoryResult.from_points(score, findings)
