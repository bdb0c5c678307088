"""Readiness scoring and executive summary derivation.

Everything here is a pure function of an AuditResult: nothing is cached or
persisted, so rescoring a saved result always reproduces the same output.
"""

from __future__ import annotations

import math

from pydantic import BaseModel, ConfigDict, Field

from vigil.core.models import (
    AuditPhase,
    AuditResult,
    AuditStatus,
    CompatibilityClass,
    IssueSeverity,
)

READINESS_THRESHOLD = 80

STATUS_POINTS: dict[AuditStatus, int] = {
    AuditStatus.PASS: 40,
    AuditStatus.WARNING: 25,
    AuditStatus.FAIL: 0,
    AuditStatus.PENDING: 0,
}
PERFORMANCE_POINTS = 30
COMPATIBILITY_POINTS: dict[CompatibilityClass, int] = {
    CompatibilityClass.MAINTAINED: 20,
    CompatibilityClass.PARTIAL: 10,
    CompatibilityClass.BROKEN: 0,
}


class ReadinessScore(BaseModel):
    """Weighted 0-100 deployment readiness score."""

    model_config = ConfigDict(frozen=True)

    score: int = Field(ge=0, le=100)
    readiness: bool
    compatibility: CompatibilityClass


class PerformanceSummary(BaseModel):
    model_config = ConfigDict(frozen=True)

    bundle_size_reduction: float
    response_time_improvement: float
    memory_reduction: float
    meets_all_targets: bool


class ExecutiveSummary(BaseModel):
    """Top-level view of a run for reports and the CLI."""

    model_config = ConfigDict(frozen=True)

    overall_status: AuditStatus
    critical_issues: int
    warning_issues: int
    performance_gains: PerformanceSummary
    compatibility_status: CompatibilityClass
    recommendations: tuple[str, ...]
    readiness_score: int


def classify_compatibility(result: AuditResult) -> CompatibilityClass:
    """Map the compatibility phase status to a class; an absent phase is BROKEN."""
    phase = result.find_phase(AuditPhase.COMPATIBILITY_VALIDATION)
    if phase is None:
        return CompatibilityClass.BROKEN
    if phase.status == AuditStatus.PASS:
        return CompatibilityClass.MAINTAINED
    if phase.status == AuditStatus.WARNING:
        return CompatibilityClass.PARTIAL
    return CompatibilityClass.BROKEN


def performance_targets_met(result: AuditResult) -> int:
    """Count the bundle, response and memory thresholds met by the run metrics."""
    metrics, thresholds = result.metrics, result.thresholds
    return sum(
        (
            metrics.bundle_size_reduction >= thresholds.bundle_size_reduction_min,
            metrics.response_time_improvement >= thresholds.response_time_improvement_min,
            metrics.memory_reduction >= thresholds.memory_reduction_min,
        )
    )


def critical_issue_points(critical_count: int) -> int:
    if critical_count == 0:
        return 10
    if critical_count <= 2:
        return 5
    return 0


def round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def score(result: AuditResult) -> ReadinessScore:
    """Compute the readiness score for a run.

    The four components are summed unrounded and rounded half-up once at
    the end.

    Args:
        result: A completed audit result

    Returns:
        ReadinessScore with the clamped score, readiness flag and
        compatibility class
    """
    compatibility = classify_compatibility(result)

    total = float(STATUS_POINTS[result.overall])
    total += PERFORMANCE_POINTS * performance_targets_met(result) / 3
    total += COMPATIBILITY_POINTS[compatibility]
    total += critical_issue_points(result.count_issues(IssueSeverity.CRITICAL))

    value = max(0, min(100, round_half_up(total)))
    return ReadinessScore(score=value, readiness=value >= READINESS_THRESHOLD, compatibility=compatibility)


def deployment_tier(readiness_score: int) -> str:
    """User-facing deployment language; has no effect on pass/fail."""
    if readiness_score >= 90:
        return "Ready for production deployment"
    if readiness_score >= 75:
        return "Nearly ready - minor improvements needed"
    return "Requires additional work before deployment"


def top_recommendations(result: AuditResult, limit: int = 5) -> tuple[str, ...]:
    recommendations: list[str] = []

    if result.overall != AuditStatus.PASS:
        recommendations.append("Address critical and high-priority issues identified in the audit")

    if result.metrics.bundle_size_reduction < result.thresholds.bundle_size_reduction_min:
        recommendations.append("Implement additional bundle optimization to meet size reduction targets")

    compatibility = result.find_phase(AuditPhase.COMPATIBILITY_VALIDATION)
    if compatibility is not None and compatibility.status != AuditStatus.PASS:
        recommendations.append("Complete migration to unified API response and error handling systems")

    recommendations.append("Implement continuous monitoring and automated audit execution")
    recommendations.append("Create comprehensive deployment validation checklist")

    return tuple(recommendations[:limit])


def build_executive_summary(result: AuditResult) -> ExecutiveSummary:
    """Derive the executive summary for a run."""
    readiness = score(result)
    metrics = result.metrics
    return ExecutiveSummary(
        overall_status=result.overall,
        critical_issues=result.count_issues(IssueSeverity.CRITICAL),
        warning_issues=result.count_issues(IssueSeverity.HIGH, IssueSeverity.MEDIUM),
        performance_gains=PerformanceSummary(
            bundle_size_reduction=metrics.bundle_size_reduction,
            response_time_improvement=metrics.response_time_improvement,
            memory_reduction=metrics.memory_reduction,
            meets_all_targets=performance_targets_met(result) == 3,
        ),
        compatibility_status=readiness.compatibility,
        recommendations=top_recommendations(result),
        readiness_score=readiness.score,
    )
