"""Centralized constants for PageSentinel.

This module contains enums and constants used across multiple modules
to ensure consistency and reduce duplication.
"""

from enum import Enum, IntEnum


class RiskLevel(IntEnum):
    """Risk tiers with ranking for comparison."""

    SAFE = 0
    LOW = 1
    MEDIUM = 2
    HIGH = 3
    CRITICAL = 4

    @classmethod
    def from_string(cls, value: str | None) -> "RiskLevel":
        """Convert string tier to enum, defaulting to SAFE."""
        if not value:
            return cls.SAFE
        mapping = {level.name.lower(): level for level in cls}
        return mapping.get(value.lower(), cls.SAFE)

    @property
    def is_alarming(self) -> bool:
        """Tiers that warrant a user-facing warning."""
        return self >= RiskLevel.HIGH

    def __str__(self) -> str:
        return self.name.lower()


class Category(str, Enum):
    """The six independent analysis dimensions."""

    URL = "url"
    CONTENT = "content"
    DOMAIN = "domain"
    BEHAVIORAL = "behavioral"
    FORM = "form"
    CERTIFICATE = "certificate"

    def __str__(self) -> str:
        return self.value


# Evaluation order; findings keep this order on severity ties.
CATEGORY_ORDER: tuple[Category, ...] = (
    Category.URL,
    Category.CONTENT,
    Category.DOMAIN,
    Category.BEHAVIORAL,
    Category.FORM,
    Category.CERTIFICATE,
)

# Badge text/colour per tier
BADGE_CONFIG: dict[RiskLevel, tuple[str, str]] = {
    RiskLevel.CRITICAL: ("!", "#D32F2F"),
    RiskLevel.HIGH: ("!", "#F57C00"),
    RiskLevel.MEDIUM: ("?", "#FFA000"),
    RiskLevel.LOW: ("✓", "#388E3C"),
    RiskLevel.SAFE: ("✓", "#4CAF50"),
}

MAX_CONTENT_LENGTH = 10_000

# Schemes that belong to the browser itself and are never analyzed
INTERNAL_SCHEMES = ("chrome", "chrome-extension", "about")


def compare_risk(r1: str | None, r2: str | None) -> int:
    """Compare two tier strings. Returns positive if r1 > r2, negative if r1 < r2, 0 if equal."""
    return RiskLevel.from_string(r1) - RiskLevel.from_string(r2)


def risk_escalated(current: str | None, previous: str | None) -> bool:
    """Check if the tier has escalated (gotten worse)."""
    return compare_risk(current, previous) > 0
