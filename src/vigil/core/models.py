"""Data models for audit runs."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import Annotated

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, JsonValue, PlainSerializer


class AuditPhase(str, Enum):
    """A named stage of the audit pipeline."""

    STATIC_ANALYSIS = "STATIC_ANALYSIS"
    INTEGRATION_ANALYSIS = "INTEGRATION_ANALYSIS"
    PERFORMANCE_VALIDATION = "PERFORMANCE_VALIDATION"
    COMPATIBILITY_VALIDATION = "COMPATIBILITY_VALIDATION"
    PRODUCTION_READINESS = "PRODUCTION_READINESS"  # appended by the controller only


class AuditStatus(str, Enum):
    """Outcome of a phase or of a whole run."""

    PASS = "PASS"
    WARNING = "WARNING"
    FAIL = "FAIL"
    PENDING = "PENDING"


class AuditErrorType(str, Enum):
    """Taxonomy of tracked issues."""

    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    INTEGRATION_FAILURE = "INTEGRATION_FAILURE"
    PERFORMANCE_REGRESSION = "PERFORMANCE_REGRESSION"
    COMPATIBILITY_BREAK = "COMPATIBILITY_BREAK"
    TYPE_SYSTEM_ERROR = "TYPE_SYSTEM_ERROR"


class IssueSeverity(str, Enum):
    """Severity of a tracked issue, independent of its type."""

    CRITICAL = "CRITICAL"
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


class FindingImpact(str, Enum):
    """Direction of a single observation."""

    POSITIVE = "POSITIVE"
    NEGATIVE = "NEGATIVE"
    NEUTRAL = "NEUTRAL"


class CompatibilityClass(str, Enum):
    """Compatibility classification derived from the compatibility phase."""

    MAINTAINED = "MAINTAINED"
    PARTIAL = "PARTIAL"
    BROKEN = "BROKEN"


def _read_only(metrics: Mapping[str, float]) -> Mapping[str, float]:
    return MappingProxyType(dict(metrics))


# Read-only once validated; dumps as a plain dict.
Metrics = Annotated[
    Mapping[str, float],
    AfterValidator(_read_only),
    PlainSerializer(lambda metrics: dict(metrics), return_type=dict[str, float]),
]


class Finding(BaseModel):
    """A single observation surfaced by a phase."""

    model_config = ConfigDict(frozen=True)

    category: str
    description: str
    impact: FindingImpact
    evidence: JsonValue = None
    recommendation: str | None = None


class PhaseResult(BaseModel):
    """Result of executing one phase."""

    model_config = ConfigDict(frozen=True)

    phase: AuditPhase
    status: AuditStatus
    metrics: Metrics = Field(default_factory=lambda: MappingProxyType({}))
    findings: tuple[Finding, ...] = ()
    duration: float = 0.0  # seconds
    started_at: datetime
    ended_at: datetime

    def negative_findings(self) -> list[Finding]:
        """Return the findings with a negative impact."""
        return [f for f in self.findings if f.impact == FindingImpact.NEGATIVE]


class AuditIssue(BaseModel):
    """A tracked, severity-tagged problem accumulated across a run."""

    model_config = ConfigDict(frozen=True)

    type: AuditErrorType
    severity: IssueSeverity
    message: str
    location: str
    evidence: JsonValue = None
    recommendation: str
    phase: AuditPhase


class AuditMetrics(BaseModel):
    """Aggregate metrics for a run, all percentages except the counts."""

    model_config = ConfigDict(frozen=True)

    bundle_size_reduction: float = 0.0
    response_time_improvement: float = 0.0
    memory_reduction: float = 0.0
    compilation_time_improvement: float = 0.0
    duplicate_code_elimination: float = 0.0
    type_error_count: int = 0
    compatibility_issues: int = 0


class PerformanceThresholds(BaseModel):
    """Minimum improvement percentages a run is evaluated against."""

    model_config = ConfigDict(frozen=True)

    bundle_size_reduction_min: float = 13.5
    response_time_improvement_min: float = 24.0
    memory_reduction_min: float = 20.0
    compilation_time_improvement_min: float = 15.0


class AuditResult(BaseModel):
    """Terminal artifact of one controller run."""

    model_config = ConfigDict(frozen=True)

    overall: AuditStatus
    phases: tuple[PhaseResult, ...] = ()
    metrics: AuditMetrics = Field(default_factory=AuditMetrics)
    issues: tuple[AuditIssue, ...] = ()
    recommendations: tuple[str, ...] = ()
    timestamp: datetime
    duration: float = 0.0  # seconds
    thresholds: PerformanceThresholds = Field(default_factory=PerformanceThresholds)

    @property
    def passed(self) -> bool:
        return self.overall == AuditStatus.PASS

    @property
    def exit_code(self) -> int:
        """Process exit code: 0 iff the overall status is PASS."""
        return 0 if self.overall == AuditStatus.PASS else 1

    def find_phase(self, phase: AuditPhase) -> PhaseResult | None:
        """Return the last result recorded for a phase, if any."""
        for result in reversed(self.phases):
            if result.phase == phase:
                return result
        return None

    def count_issues(self, *severities: IssueSeverity) -> int:
        return sum(1 for issue in self.issues if issue.severity in severities)
