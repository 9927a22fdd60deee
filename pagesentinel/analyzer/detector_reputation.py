"""Domain reputation analysis."""

from __future__ import annotations

from ..config import Heuristics
from ..utils.domains import top_level_label
from ..utils.lexical import estimate_domain_age
from .models import CategoryResult, Finding
from .threat_intel import ThreatSnapshot


async def check_domain_reputation(
    domain: str,
    snapshot: ThreatSnapshot,
    heuristics: Heuristics,
) -> CategoryResult:
    """Score a lower-cased domain against the threat snapshot and naming heuristics.

    Only reads the snapshot handed in; never waits on a feed refresh.
    """
    score = 0
    findings: list[Finding] = []

    if snapshot.contains(domain):
        score += 90
        findings.append(Finding("known_threat", 10, "Domain matches known threat database"))

    age_days = estimate_domain_age(domain, heuristics.new_domain_patterns)
    if age_days is not None and age_days < 30:
        score += 40
        findings.append(
            Finding(
                "new_domain",
                7,
                f"Domain appears to be recently registered ({age_days} days)",
            )
        )

    tld = top_level_label(domain)
    if tld and tld in heuristics.high_risk_tlds:
        score += 20
        findings.append(Finding("suspicious_tld", 5, f"Domain uses high-risk TLD: .{tld}"))

    return CategoryResult.from_points(score, findings)
