"""Domain and URL normalization utilities."""

from __future__ import annotations

import ipaddress
from typing import Optional
from urllib.parse import SplitResult, urlsplit

import tldextract

from ..constants import INTERNAL_SCHEMES

# Bundled public suffix snapshot only; never fetch the list over the network.
_extract = tldextract.TLDExtract(suffix_list_urls=())


def parse_url(url: str) -> Optional[SplitResult]:
    """Parse an absolute URL, returning None when it has no scheme or host.

    Port validation happens here too so callers can read `.port` safely.
    """
    raw = (url or "").strip()
    if not raw:
        return None
    try:
        parsed = urlsplit(raw)
        parsed.port  # raises ValueError on out-of-range/garbage ports
    except ValueError:
        return None
    if not parsed.scheme or not parsed.hostname:
        return None
    return parsed


def extract_hostname(value: str) -> str:
    """Return the lower-cased hostname of a URL or bare host, or ''."""
    raw = (value or "").strip()
    if not raw:
        return ""
    candidate = raw if "://" in raw else f"https://{raw}"
    parsed = parse_url(candidate)
    if parsed is None:
        return ""
    return (parsed.hostname or "").strip(".").lower()


def canonicalize_domain(value: str) -> str:
    """
    Normalize a domain/URL to a canonical host key.

    - Lowercase
    - Strip trailing dot
    - Ignore port/path/query/fragment
    """
    return extract_hostname(value)


def is_ipv4_literal(host: str) -> bool:
    """True when the host is a dotted-quad IPv4 address."""
    try:
        return isinstance(ipaddress.ip_address(host), ipaddress.IPv4Address)
    except ValueError:
        return False


def top_level_label(domain: str) -> str:
    """Return the last label of the public suffix (best-effort)."""
    host = (domain or "").strip().strip(".").lower()
    if not host:
        return ""
    suffix = _extract(host).suffix
    if suffix:
        return suffix.rsplit(".", 1)[-1]
    return host.rsplit(".", 1)[-1]


def is_analyzable_url(url: str) -> bool:
    """Browser-internal pages are never analyzed."""
    raw = (url or "").strip().lower()
    scheme, sep, _ = raw.partition(":")
    if not sep:
        return True
    return scheme not in INTERNAL_SCHEMES
