"""URL structure analysis."""

from __future__ import annotations

from urllib.parse import parse_qsl

from ..config import Heuristics
from ..utils.domains import is_ipv4_literal, parse_url
from ..utils.lexical import (
    decode_idn_host,
    detect_homoglyphs,
    find_impersonated_brand,
    normalize_homoglyphs,
)
from .models import CategoryResult, Finding


def analyze_url_structure(url: str, heuristics: Heuristics) -> CategoryResult:
    """Score the shape of the page URL.

    Checks are additive. An unparseable URL is itself a finding rather than
    an error.
    """
    parsed = parse_url(url)
    if parsed is None:
        return CategoryResult.from_points(
            30,
            [Finding("malformed_url", 6, "URL structure is malformed or invalid")],
        )

    score = 0
    findings: list[Finding] = []
    hostname = (parsed.hostname or "").lower()

    if is_ipv4_literal(hostname):
        score += 40
        findings.append(
            Finding("url_ip_address", 7, "URL uses IP address instead of domain name")
        )

    if len(hostname.split(".")) > heuristics.max_host_labels:
        score += 20
        findings.append(
            Finding("excessive_subdomains", 5, "Unusual number of subdomains detected")
        )

    display_host = decode_idn_host(hostname)
    homoglyphs = detect_homoglyphs(display_host, heuristics.homoglyphs)
    if homoglyphs:
        score += 50
        lookalike = normalize_homoglyphs(display_host, heuristics.homoglyphs)
        findings.append(
            Finding(
                "homoglyph_attack",
                9,
                f"Suspicious characters detected: {', '.join(homoglyphs)} (reads as '{lookalike}')",
            )
        )

    brand = find_impersonated_brand(hostname, heuristics.brand_variants)
    if brand:
        score += 35
        findings.append(Finding("brand_impersonation", 8, f"Possible impersonation of {brand}"))

    for pattern in heuristics.suspicious_host_patterns:
        if pattern in hostname:
            score += 15
            findings.append(
                Finding("suspicious_keyword", 4, f"Suspicious pattern in URL: {pattern}")
            )

    if len(parsed.path) > heuristics.max_path_length:
        score += 10
        findings.append(Finding("excessive_path_length", 3, "Unusually long URL path"))

    params = {name for name, _ in parse_qsl(parsed.query, keep_blank_values=True)}
    if params.intersection(heuristics.redirect_params):
        score += 15
        findings.append(Finding("redirect_parameter", 5, "URL contains redirect parameters"))

    return CategoryResult.from_points(score, findings)
