"""Lexical detection helpers: homoglyphs, brand variants, spelling anomalies."""

from __future__ import annotations

import re
import unicodedata
from functools import lru_cache
from typing import Iterable, Mapping, Optional, Sequence

import idna


def decode_idn_host(host: str) -> str:
    """Decode ASCII-compatible (xn--) labels so homoglyph checks see Unicode."""
    if "xn--" not in (host or ""):
        return host
    try:
        decoded = idna.decode(host)
    except (idna.IDNAError, UnicodeError):
        return host
    return decoded or host


def detect_homoglyphs(text: str, table: Mapping[str, str]) -> list[str]:
    """Return confusable characters found in text, in first-seen order."""
    found: list[str] = []
    for char in text or "":
        if char in table and char not in found:
            found.append(char)
    return found


def normalize_homoglyphs(text: str, table: Mapping[str, str]) -> str:
    """Replace homoglyphs with their Latin equivalents."""
    result = []
    for char in text:
        if char in table:
            result.append(table[char])
        else:
            result.append(unicodedata.normalize("NFKC", char))
    return "".join(result)


def is_legitimate_variant(host: str, brand: str, brand_variants: Mapping[str, Sequence[str]]) -> bool:
    """True when host ends with one of the brand's legitimate domains.

    Plain string suffix, not a label match: "mypaypal.com" counts as paypal.com.
    """
    host = (host or "").lower()
    return any(host.endswith(domain) for domain in brand_variants.get(brand) or ())


def find_impersonated_brand(host: str, brand_variants: Mapping[str, Sequence[str]]) -> Optional[str]:
    """Return the first brand token in host that is not a legitimate variant."""
    for brand in brand_variants:
        if brand in host and not is_legitimate_variant(host, brand, brand_variants):
            return brand
    return None


@lru_cache(maxsize=64)
def _compile_all(patterns: tuple[str, ...], literal: bool) -> tuple[re.Pattern, ...]:
    compiled = []
    for pattern in patterns:
        try:
            compiled.append(re.compile(re.escape(pattern) if literal else pattern, re.I))
        except re.error:
            # Bad pattern from config: skip the check rather than abort analysis.
            continue
    return tuple(compiled)


def count_phrase_occurrences(text: str, phrases: Iterable[str]) -> int:
    """Count case-insensitive, non-overlapping occurrences of every phrase."""
    if not text:
        return 0
    return sum(len(p.findall(text)) for p in _compile_all(tuple(phrases), True))


def present_keywords(text: str, keywords: Iterable[str]) -> list[str]:
    """Return the distinct keywords present in text (case-insensitive substring)."""
    lowered = (text or "").lower()
    return [kw for kw in dict.fromkeys(keywords) if kw.lower() in lowered]


def first_present(text: str, phrases: Iterable[str]) -> Optional[str]:
    """Return the first phrase found in text, or None."""
    lowered = (text or "").lower()
    for phrase in phrases:
        if phrase.lower() in lowered:
            return phrase
    return None


def count_spelling_anomalies(text: str, patterns: Iterable[str]) -> int:
    """Count matches of the leetspeak-style security-word patterns."""
    if not text:
        return 0
    return sum(len(p.findall(text)) for p in _compile_all(tuple(patterns), False))


def estimate_domain_age(domain: str, patterns: Iterable[str]) -> Optional[int]:
    """Approximate age in days from textual patterns; None when unknown.

    No registration lookup happens here. A match only means the name
    looks newly registered.
    """
    for pattern in _compile_all(tuple(patterns), False):
        if pattern.search(domain or ""):
            return 15
    return None
