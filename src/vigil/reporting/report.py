"""Detailed report derived from an audit result."""

from __future__ import annotations

import json
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from vigil.core.models import (
    AuditPhase,
    AuditResult,
    AuditStatus,
    Finding,
    FindingImpact,
    IssueSeverity,
    PhaseResult,
)
from vigil.core.scoring import ExecutiveSummary, build_executive_summary

Priority = Literal["HIGH", "MEDIUM", "LOW"]

KEY_FINDING_LIMIT = 10
SIGNIFICANT_CATEGORIES: frozenset[str] = frozenset(
    {
        "Bundle Size",
        "API Performance",
        "Memory Usage",
        "Type System Coherence",
        "Cross-Layer Integration",
    }
)


class ReportModel(BaseModel):
    model_config = ConfigDict(frozen=True)


class PhaseAnalysis(ReportModel):
    phase: AuditPhase
    status: AuditStatus
    summary: str
    key_metrics: dict[str, float] = Field(default_factory=dict)
    critical_findings: tuple[str, ...] = ()
    recommendations: tuple[str, ...] = ()


class KeyFinding(ReportModel):
    category: str
    impact: IssueSeverity
    description: str
    evidence: str
    recommendation: str


class TargetCheck(ReportModel):
    """A measured value, its improvement and whether the threshold was met."""

    current: str
    improvement: str
    target_met: bool


class PerformanceMetrics(ReportModel):
    bundle: TargetCheck
    api: TargetCheck
    memory: TargetCheck


class CompatibilityArea(ReportModel):
    status: str
    detail: str
    issues: tuple[str, ...] = ()


class CompatibilityAnalysis(ReportModel):
    backward_compatibility: CompatibilityArea
    api_contracts: CompatibilityArea
    error_handling: CompatibilityArea


class RecommendationSection(ReportModel):
    category: str
    priority: Priority
    recommendations: tuple[str, ...]
    action_items: tuple[str, ...]


class DetailedReport(ReportModel):
    executive_summary: ExecutiveSummary
    phase_results: tuple[PhaseAnalysis, ...]
    key_findings: tuple[KeyFinding, ...]
    performance_metrics: PerformanceMetrics
    compatibility_analysis: CompatibilityAnalysis
    recommendations: tuple[RecommendationSection, ...]
    conclusion: str


# =============================================================================
# Helpers
# =============================================================================


def format_bytes(size: float) -> str:
    """Human readable size using binary units, e.g. ``1.5 KB``."""
    if size <= 0:
        return "0 B"
    value = float(size)
    for unit in ("B", "KB", "MB"):
        if value < 1024:
            return f"{round(value, 2):g} {unit}"
        value /= 1024
    return f"{round(value, 2):g} GB"


def stringify_evidence(evidence: object) -> str:
    if isinstance(evidence, str):
        return evidence
    return json.dumps(evidence)


def coverage_status(working: float, total: float) -> str:
    """Qualitative label for a working/total ratio."""
    if not total:
        return "Unknown"
    percentage = working / total * 100
    if percentage >= 95:
        return "Excellent"
    if percentage >= 80:
        return "Good"
    if percentage >= 60:
        return "Fair"
    return "Needs Improvement"


def phase_summary(result: PhaseResult) -> str:
    positive = sum(1 for f in result.findings if f.impact == FindingImpact.POSITIVE)
    negative = len(result.negative_findings())
    if result.status == AuditStatus.PASS:
        return f"Phase completed successfully with {positive} positive findings and {negative} issues."
    if result.status == AuditStatus.WARNING:
        return f"Phase completed with warnings. {negative} issues need attention."
    if result.status == AuditStatus.PENDING:
        return "Phase is pending implementation."
    return f"Phase failed with {negative} critical issues that must be resolved."


def is_significant(finding: Finding) -> bool:
    return finding.category in SIGNIFICANT_CATEGORIES


# =============================================================================
# Sections
# =============================================================================


def analyze_phases(result: AuditResult) -> tuple[PhaseAnalysis, ...]:
    return tuple(
        PhaseAnalysis(
            phase=phase.phase,
            status=phase.status,
            summary=phase_summary(phase),
            key_metrics=phase.metrics,
            critical_findings=tuple(f.description for f in phase.negative_findings()),
            recommendations=tuple(f.recommendation for f in phase.findings if f.recommendation),
        )
        for phase in result.phases
    )


def extract_key_findings(result: AuditResult, limit: int = KEY_FINDING_LIMIT) -> tuple[KeyFinding, ...]:
    """CRITICAL and HIGH issues first, then significant positive findings."""
    findings = [
        KeyFinding(
            category=issue.type.value,
            impact=issue.severity,
            description=issue.message,
            evidence=stringify_evidence(issue.evidence),
            recommendation=issue.recommendation,
        )
        for issue in result.issues
        if issue.severity in (IssueSeverity.CRITICAL, IssueSeverity.HIGH)
    ]

    for phase in result.phases:
        for finding in phase.findings:
            if finding.impact == FindingImpact.POSITIVE and is_significant(finding):
                findings.append(
                    KeyFinding(
                        category=finding.category,
                        impact=IssueSeverity.MEDIUM,
                        description=finding.description,
                        evidence=stringify_evidence(finding.evidence),
                        recommendation=finding.recommendation or "Continue maintaining current practices",
                    )
                )

    return tuple(findings[:limit])


def performance_metrics(result: AuditResult) -> PerformanceMetrics:
    metrics, thresholds = result.metrics, result.thresholds
    phase = result.find_phase(AuditPhase.PERFORMANCE_VALIDATION)
    raw = phase.metrics if phase is not None else {}

    return PerformanceMetrics(
        bundle=TargetCheck(
            current=format_bytes(raw.get("bundleSize", 0)),
            improvement=f"{metrics.bundle_size_reduction:.1f}%",
            target_met=metrics.bundle_size_reduction >= thresholds.bundle_size_reduction_min,
        ),
        api=TargetCheck(
            current=f"{raw.get('averageResponseTime', 0):.0f}ms",
            improvement=f"{metrics.response_time_improvement:.1f}%",
            target_met=metrics.response_time_improvement >= thresholds.response_time_improvement_min,
        ),
        memory=TargetCheck(
            current=format_bytes(raw.get("memoryUsage", 0)),
            improvement=f"{metrics.memory_reduction:.1f}%",
            target_met=metrics.memory_reduction >= thresholds.memory_reduction_min,
        ),
    )


def _negative_descriptions(phase: PhaseResult, keyword: str, limit: int = 3) -> tuple[str, ...]:
    matches = [f.description for f in phase.negative_findings() if keyword in f.category.lower()]
    return tuple(matches[:limit])


def compatibility_analysis(result: AuditResult) -> CompatibilityAnalysis:
    phase = result.find_phase(AuditPhase.COMPATIBILITY_VALIDATION)
    if phase is None:
        unknown = CompatibilityArea(status="Unknown", detail="N/A")
        return CompatibilityAnalysis(backward_compatibility=unknown, api_contracts=unknown, error_handling=unknown)

    m = phase.metrics
    working, total_imports = m.get("workingImports", 0), m.get("totalImports", 0)
    validated, total_endpoints = m.get("validatedEndpoints", 0), m.get("totalEndpoints", 0)
    error_issues = int(m.get("errorResponseIssues", 0))

    return CompatibilityAnalysis(
        backward_compatibility=CompatibilityArea(
            status=coverage_status(working, total_imports),
            detail=f"{working:.0f}/{total_imports:.0f} imports working",
            issues=_negative_descriptions(phase, "backward"),
        ),
        api_contracts=CompatibilityArea(
            status=coverage_status(validated, total_endpoints),
            detail=f"{validated:.0f}/{total_endpoints:.0f} endpoints validated",
            issues=_negative_descriptions(phase, "contract"),
        ),
        error_handling=CompatibilityArea(
            status="Consistent" if error_issues == 0 else "Needs Improvement",
            detail=f"{error_issues} issues found",
            issues=_negative_descriptions(phase, "error"),
        ),
    )


def recommendation_sections(result: AuditResult) -> tuple[RecommendationSection, ...]:
    sections: list[RecommendationSection] = []

    if result.metrics.bundle_size_reduction < result.thresholds.bundle_size_reduction_min:
        sections.append(
            RecommendationSection(
                category="Performance Optimization",
                priority="HIGH",
                recommendations=(
                    "Implement additional bundle optimization techniques",
                    "Review and eliminate remaining duplicate code",
                    "Optimize tree-shaking configuration",
                ),
                action_items=(
                    "Analyze webpack bundle composition",
                    "Implement code splitting strategies",
                    "Review and optimize import patterns",
                ),
            )
        )

    compatibility = result.find_phase(AuditPhase.COMPATIBILITY_VALIDATION)
    if compatibility is not None and compatibility.status != AuditStatus.PASS:
        sections.append(
            RecommendationSection(
                category="Compatibility & Integration",
                priority="HIGH",
                recommendations=(
                    "Standardize API response formats across all endpoints",
                    "Implement unified error handling system",
                    "Complete migration to centralized authentication",
                ),
                action_items=(
                    "Update remaining API routes to use unified response system",
                    "Implement consistent error message formatting",
                    "Migrate all authentication to centralized system",
                ),
            )
        )

    static = result.find_phase(AuditPhase.STATIC_ANALYSIS)
    if static is not None and static.status != AuditStatus.PASS:
        sections.append(
            RecommendationSection(
                category="System Integration",
                priority="MEDIUM",
                recommendations=(
                    "Complete migration to unified utility functions",
                    "Resolve remaining TypeScript compilation issues",
                    "Standardize import patterns across codebase",
                ),
                action_items=(
                    "Update deprecated import statements",
                    "Fix TypeScript type inconsistencies",
                    "Implement consistent coding patterns",
                ),
            )
        )

    sections.append(
        RecommendationSection(
            category="Production Readiness",
            priority="MEDIUM",
            recommendations=(
                "Implement comprehensive monitoring and logging",
                "Set up automated performance regression testing",
                "Create deployment validation checklist",
            ),
            action_items=(
                "Configure application performance monitoring",
                "Set up automated audit execution in CI/CD",
                "Create production deployment guidelines",
            ),
        )
    )
    return tuple(sections)


def conclusion(result: AuditResult, summary: ExecutiveSummary) -> str:
    status_text = {
        AuditStatus.PASS: "successful",
        AuditStatus.WARNING: "partially successful",
    }.get(result.overall, "incomplete")
    performance_text = (
        "All performance targets have been achieved"
        if summary.performance_gains.meets_all_targets
        else "Some performance targets need additional optimization"
    )
    compatibility_text = (
        "backward compatibility has been fully maintained"
        if summary.compatibility_status.value == "MAINTAINED"
        else "some compatibility issues need to be addressed"
    )

    score = summary.readiness_score
    if score >= 90:
        quality, deployment = "excellent", "ready for production deployment"
    elif score >= 75:
        quality, deployment = "good", "nearly ready for production with minor improvements"
    else:
        quality, deployment = "moderate", "requires additional work before production deployment"

    if summary.critical_issues:
        critical = f"Critical issues ({summary.critical_issues}) must be addressed before production deployment."
    else:
        critical = "No critical issues were identified."

    paragraphs = (
        f"The system integration audit has been {status_text}. {performance_text}, and {compatibility_text}.",
        f"The audit reveals a readiness score of {score}%, indicating {quality} system integration.",
        critical,
        f"The system is {deployment}.",
    )
    return "\n\n".join(paragraphs)


def build_report(result: AuditResult) -> DetailedReport:
    """Assemble the full detailed report for a run."""
    summary = build_executive_summary(result)
    return DetailedReport(
        executive_summary=summary,
        phase_results=analyze_phases(result),
        key_findings=extract_key_findings(result),
        performance_metrics=performance_metrics(result),
        compatibility_analysis=compatibility_analysis(result),
        recommendations=recommendation_sections(result),
        conclusion=conclusion(result, summary),
    )
