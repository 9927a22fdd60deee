"""Threat database and feed sources for PageSentinel."""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable, Optional, Protocol

import httpx
import yaml

from ..errors import ThreatFeedError
from ..utils.domains import canonicalize_domain
from ..utils.files import read_list_file

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ThreatSnapshot:
    """An immutable, versioned set of known-bad domains."""

    domains: frozenset[str] = frozenset()
    version: int = 0
    updated_at: float = 0.0
    source: str = ""

    def contains(self, domain: str) -> bool:
        return canonicalize_domain(domain) in self.domains

    def __len__(self) -> int:
        return len(self.domains)


class ThreatDatabase:
    """Holds the current threat snapshot; refreshes replace it wholesale.

    Readers take `snapshot()` once per analysis and keep using that object,
    so a concurrent publish is never observed half-applied.
    """

    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock
        self._snapshot = ThreatSnapshot()
        self._write_lock = threading.Lock()

    def snapshot(self) -> ThreatSnapshot:
        return self._snapshot

    def publish(self, domains: Iterable[str], source: str = "") -> ThreatSnapshot:
        """Build a new snapshot and swap it in with a single reference assignment."""
        cleaned = frozenset(filter(None, (canonicalize_domain(d) for d in domains)))
        with self._write_lock:
            snapshot = ThreatSnapshot(
                domains=cleaned,
                version=self._snapshot.version + 1,
                updated_at=self._clock(),
                source=source,
            )
            self._snapshot = snapshot
        logger.info(
            "Published threat snapshot v%s (%s domains from %s)",
            snapshot.version,
            len(snapshot),
            source or "unknown",
        )
        return snapshot

    def age(self) -> float:
        """Seconds since the current snapshot was published."""
        return self._clock() - self._snapshot.updated_at

    def is_stale(self, staleness_seconds: float) -> bool:
        return self._snapshot.version == 0 or self.age() > staleness_seconds


class ThreatFeedSource(Protocol):
    """Produces the full set of known-bad domains."""

    name: str

    async def fetch(self) -> set[str]:  # pragma: no cover - interface
        ...


class StaticFeedSource:
    """Fixed placeholder list."""

    def __init__(self, domains: Iterable[str], name: str = "static"):
        self.name = name
        self._domains = {d.lower() for d in domains}

    async def fetch(self) -> set[str]:
        return set(self._domains)


class FileFeedSource:
    """Domain list on disk: YAML with a `domains:` key, or one domain per line."""

    def __init__(self, path: Path):
        self.path = Path(path)
        self.name = f"file:{self.path}"

    async def fetch(self) -> set[str]:
        if not self.path.exists():
            raise ThreatFeedError(self.name, "file not found")
        try:
            if self.path.suffix.lower() in (".yaml", ".yml"):
                return self._load_yaml()
            return read_list_file(self.path)
        except ThreatFeedError:
            raise
        except (OSError, yaml.YAMLError) as exc:
            raise ThreatFeedError(self.name, str(exc)) from exc

    def _load_yaml(self) -> set[str]:
        data = yaml.safe_load(self.path.read_text()) or {}
        if not isinstance(data, dict):
            raise ThreatFeedError(self.name, "expected a mapping with a 'domains' list")

        domains: set[str] = set()
        for item in data.get("domains") or []:
            if isinstance(item, dict):
                value = str(item.get("domain") or "").strip()
            else:
                value = str(item or "").strip()
            if value:
                domains.add(value.lower())
        return domains


class HttpFeedSource:
    """Newline-delimited domain list served over HTTP."""

    timeout_seconds: float = 15.0
    user_agent: str = "PageSentinel/1.0"

    def __init__(self, url: str, client: Optional[httpx.AsyncClient] = None):
        self.url = url
        self.name = f"http:{url}"
        self._client = client

    async def fetch(self) -> set[str]:
        try:
            if self._client is not None:
                response = await self._client.get(self.url)
            else:
                async with httpx.AsyncClient(
                    timeout=httpx.Timeout(self.timeout_seconds),
                    headers={"User-Agent": self.user_agent},
                    follow_redirects=True,
                ) as client:
                    response = await client.get(self.url)
            response.raise_for_status()
        except httpx.TimeoutException as exc:
            raise ThreatFeedError(self.name, "request timed out") from exc
        except httpx.HTTPStatusError as exc:
            raise ThreatFeedError(self.name, f"HTTP {exc.response.status_code}") from exc
        except httpx.HTTPError as exc:
            raise ThreatFeedError(self.name, str(exc)) from exc

        domains: set[str] = set()
        for line in response.text.splitlines():
            value = line.strip()
            if value and not value.startswith("#"):
                domains.add(value.lower())
        return domains
