"""Coordination layer for PageSentinel."""

from .coordinator import AnalysisCoordinator
from .notifications import BadgeUpdate, NotificationHub, WarningPayload
from .session import PageSession

__all__ = ["AnalysisCoordinator", "BadgeUpdate", "NotificationHub", "WarningPayload", "PageSession"]
