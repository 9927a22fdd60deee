"""Analysis data models."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from ..constants import RiskLevel


@dataclass(frozen=True)
class Finding:
    """A single detected suspicious indicator."""

    type: str
    severity: int
    description: str

    @property
    def band(self) -> str:
        """Display band used when listing findings."""
        if self.severity >= 8:
            return "high"
        if self.severity >= 5:
            return "medium"
        return "low"

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type, "severity": self.severity, "description": self.description}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Finding":
        return cls(
            type=str(data.get("type", "")),
            severity=int(data.get("severity", 0)),
            description=str(data.get("description", "")),
        )


@dataclass(frozen=True)
class CategoryResult:
    """Normalized suspicion value for one category plus its findings."""

    value: float
    findings: tuple[Finding, ...] = ()

    @classmethod
    def from_points(cls, points: int, findings: list[Finding]) -> "CategoryResult":
        """Normalize accumulated points to [0, 1]."""
        return cls(value=min(points / 100, 1.0), findings=tuple(findings))


@dataclass(frozen=True)
class AnalysisResult:
    """Outcome of one analysis run. Findings are sorted by severity, descending."""

    risk_level: RiskLevel
    score: int
    findings: tuple[Finding, ...] = ()
    timestamp: float = 0.0
    category_values: dict[str, float] = field(default_factory=dict, compare=False)

    def top(self, n: int = 3) -> tuple[Finding, ...]:
        """Most severe findings first."""
        return self.findings[:n]

    def to_dict(self) -> dict[str, Any]:
        return {
            "riskLevel": str(self.risk_level),
            "score": self.score,
            "findings": [f.to_dict() for f in self.findings],
            "timestamp": self.timestamp,
            "categories": dict(self.category_values),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AnalysisResult":
        return cls(
            risk_level=RiskLevel.from_string(data.get("riskLevel")),
            score=int(data.get("score", 0)),
            findings=tuple(Finding.from_dict(f) for f in data.get("findings") or []),
            timestamp=float(data.get("timestamp", 0.0)),
            category_values={str(k): float(v) for k, v in (data.get("categories") or {}).items()},
        )
