"""Markdown rendering of detailed reports and executive summaries."""

from __future__ import annotations

from datetime import datetime

from vigil.core.models import PerformanceThresholds
from vigil.core.scoring import ExecutiveSummary, deployment_tier
from vigil.reporting.report import DetailedReport, PhaseAnalysis, RecommendationSection, TargetCheck


def _yes_no(value: bool) -> str:
    return "Yes" if value else "No"


def _bullets(items: tuple[str, ...] | list[str]) -> list[str]:
    return [f"- {item}" for item in items]


def _summary_block(summary: ExecutiveSummary) -> list[str]:
    gains = summary.performance_gains
    return [
        f"**Overall Status:** {summary.overall_status.value}  ",
        f"**Readiness Score:** {summary.readiness_score}%  ",
        f"**Critical Issues:** {summary.critical_issues}  ",
        f"**Warning Issues:** {summary.warning_issues}  ",
        "",
        "### Performance Gains",
        f"- **Bundle Size Reduction:** {gains.bundle_size_reduction:.1f}%",
        f"- **Response Time Improvement:** {gains.response_time_improvement:.1f}%",
        f"- **Memory Reduction:** {gains.memory_reduction:.1f}%",
        f"- **Meets All Targets:** {_yes_no(gains.meets_all_targets)}",
        "",
        "### Compatibility Status",
        f"**{summary.compatibility_status.value}**",
    ]


def _phase_block(phase: PhaseAnalysis, include_metrics: bool) -> list[str]:
    lines = [
        f"### {phase.phase.value}",
        f"**Status:** {phase.status.value}  ",
        f"**Summary:** {phase.summary}",
        "",
    ]
    if include_metrics and phase.key_metrics:
        lines.append("**Key Metrics:**")
        lines.extend(f"- {key}: {value:g}" for key, value in phase.key_metrics.items())
        lines.append("")
    if phase.critical_findings:
        lines.append("**Critical Findings:**")
        lines.extend(_bullets(phase.critical_findings))
        lines.append("")
    return lines


def _target_block(title: str, label: str, check: TargetCheck) -> list[str]:
    return [
        f"### {title}",
        f"- **{label}:** {check.current}",
        f"- **Improvement:** {check.improvement}",
        f"- **Target Met:** {_yes_no(check.target_met)}",
        "",
    ]


def _recommendation_block(section: RecommendationSection) -> list[str]:
    return [
        f"### {section.category} ({section.priority} Priority)",
        "",
        "**Recommendations:**",
        *_bullets(section.recommendations),
        "",
        "**Action Items:**",
        *_bullets(section.action_items),
        "",
    ]


def render_report(report: DetailedReport, generated_at: datetime, include_metrics: bool = True) -> str:
    """Render the full report as Markdown.

    Args:
        report: Report to render
        generated_at: Timestamp printed in the footer
        include_metrics: Include per-phase key metrics

    Returns:
        Markdown document
    """
    lines = ["# System Integration & Consistency Audit Report", "", "## Executive Summary", ""]
    lines.extend(_summary_block(report.executive_summary))

    lines.extend(["", "## Phase Results", ""])
    for phase in report.phase_results:
        lines.extend(_phase_block(phase, include_metrics))

    lines.extend(["## Key Findings", ""])
    for finding in report.key_findings:
        lines.extend(
            [
                f"### {finding.category} ({finding.impact.value})",
                f"**Description:** {finding.description}  ",
                f"**Evidence:** {finding.evidence}  ",
                f"**Recommendation:** {finding.recommendation}",
                "",
            ]
        )

    perf = report.performance_metrics
    lines.extend(["## Performance Metrics", ""])
    lines.extend(_target_block("Bundle Analysis", "Current Size", perf.bundle))
    lines.extend(_target_block("API Performance", "Average Response Time", perf.api))
    lines.extend(_target_block("Memory Usage", "Current Usage", perf.memory))

    compat = report.compatibility_analysis
    lines.extend(["## Compatibility Analysis", ""])
    for title, area in (
        ("Backward Compatibility", compat.backward_compatibility),
        ("API Contracts", compat.api_contracts),
        ("Error Handling", compat.error_handling),
    ):
        lines.extend([f"### {title}", f"- **Status:** {area.status}", f"- **Detail:** {area.detail}"])
        lines.extend(f"  - {issue}" for issue in area.issues)
        lines.append("")

    lines.extend(["## Recommendations", ""])
    for section in report.recommendations:
        lines.extend(_recommendation_block(section))

    lines.extend(["## Conclusion", "", report.conclusion, "", "---", f"*Report generated on {generated_at.isoformat()}*"])
    return "\n".join(lines) + "\n"


def render_executive_summary(
    summary: ExecutiveSummary,
    thresholds: PerformanceThresholds,
    generated_at: datetime,
) -> str:
    """Render the standalone executive summary as Markdown."""
    gains = summary.performance_gains
    lines = [
        "# Executive Summary - System Integration Audit",
        "",
        "## Overall Assessment",
        f"- **Status:** {summary.overall_status.value}",
        f"- **Readiness Score:** {summary.readiness_score}%",
        f"- **Critical Issues:** {summary.critical_issues}",
        f"- **Warning Issues:** {summary.warning_issues}",
        "",
        "## Performance Achievements",
        f"- **Bundle Size Reduction:** {gains.bundle_size_reduction:.1f}% "
        f"(Target: {thresholds.bundle_size_reduction_min:g}%)",
        f"- **Response Time Improvement:** {gains.response_time_improvement:.1f}% "
        f"(Target: {thresholds.response_time_improvement_min:g}%)",
        f"- **Memory Reduction:** {gains.memory_reduction:.1f}% (Target: {thresholds.memory_reduction_min:g}%)",
        f"- **All Targets Met:** {_yes_no(gains.meets_all_targets)}",
        "",
        "## Compatibility Status",
        f"**{summary.compatibility_status.value}**",
        "",
        "## Top Recommendations",
        *_bullets(summary.recommendations),
        "",
        "## Deployment Readiness",
        deployment_tier(summary.readiness_score),
        "",
        "---",
        f"*Generated on {generated_at.isoformat()}*",
    ]
    return "\n".join(lines) + "\n"
