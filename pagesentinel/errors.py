"""Exception hierarchy for PageSentinel."""

from __future__ import annotations


class PageSentinelError(Exception):
    """Base class for all PageSentinel errors."""


class SignalValidationError(PageSentinelError, ValueError):
    """Collector payload could not be turned into PageSignals."""


class ThreatFeedError(PageSentinelError):
    """A threat feed source failed to produce a domain list."""

    def __init__(self, source: str, message: str):
        super().__init__(f"{source}: {message}")
        self.source = source


class SessionClosedError(PageSentinelError):
    """A change notification arrived after the page session was closed."""
