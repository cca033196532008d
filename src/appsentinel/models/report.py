"""Pydantic models for risk assessment results."""

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, computed_field

from appsentinel.models.facts import PackageFacts


class Severity(StrEnum):
    """Severity of a single finding."""

    HIGH = "HIGH"
    MEDIUM = "MEDIUM"


class RiskLevel(StrEnum):
    """Discrete overall risk level."""

    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


class Finding(BaseModel):
    """A detector match."""

    model_config = ConfigDict(frozen=True)

    severity: Severity
    category: str
    message: str

    evidence: tuple[str, ...]
    """Matched keywords or names, de-duplicated, in match order."""


class FindingSummary(BaseModel):
    """Finding counts consumed by presentation layers."""

    model_config = ConfigDict(frozen=True)

    total: int
    high: int
    medium: int


class AnalysisResult(BaseModel):
    """Final, immutable outcome of one package analysis."""

    model_config = ConfigDict(frozen=True)

    facts: PackageFacts
    findings: tuple[Finding, ...]

    score: int
    """Risk score from 0 to 100."""

    level: RiskLevel

    earned: int = 0
    """Points accrued by all findings."""

    possible: int = 0
    """Points available across the evaluated categories."""

    @computed_field  # type: ignore[prop-decorator]
    @property
    def summary(self) -> FindingSummary:
        """Total, high and medium finding counts."""
        return FindingSummary(
            total=len(self.findings),
            high=sum(1 for f in self.findings if f.severity == Severity.HIGH),
            medium=sum(1 for f in self.findings if f.severity == Severity.MEDIUM),
        )
