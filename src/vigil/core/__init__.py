"""Core audit pipeline logic."""

from vigil.core.controller import AuditController, ControllerState, determine_overall_status, run_audit
from vigil.core.executor import PhaseExecutor, PhaseOutcome
from vigil.core.models import (
    AuditErrorType,
    AuditIssue,
    AuditMetrics,
    AuditPhase,
    AuditResult,
    AuditStatus,
    CompatibilityClass,
    Finding,
    FindingImpact,
    IssueSeverity,
    PerformanceThresholds,
    PhaseResult,
)
from vigil.core.scoring import ExecutiveSummary, ReadinessScore, build_executive_summary, score

__all__ = [
    "AuditController",
    "AuditErrorType",
    "AuditIssue",
    "AuditMetrics",
    "AuditPhase",
    "AuditResult",
    "AuditStatus",
    "CompatibilityClass",
    "ControllerState",
    "ExecutiveSummary",
    "Finding",
    "FindingImpact",
    "IssueSeverity",
    "PerformanceThresholds",
    "PhaseExecutor",
    "PhaseOutcome",
    "PhaseResult",
    "ReadinessScore",
    "build_executive_summary",
    "determine_overall_status",
    "run_audit",
    "score",
]
