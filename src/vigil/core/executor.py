"""Phase execution with timing and failure isolation."""

from __future__ import annotations

import logging
import time
from datetime import UTC, datetime
from typing import TYPE_CHECKING, NamedTuple

from vigil.core.models import (
    AuditErrorType,
    AuditIssue,
    AuditPhase,
    AuditStatus,
    Finding,
    FindingImpact,
    IssueSeverity,
    PhaseResult,
)
from vigil.core.results import (
    CompatibilityResult,
    IntegrationResult,
    NotImplementedResult,
    PerformanceResult,
    ProductionReadinessResult,
)
from vigil.observers.base import CompositeObserver, NullObserver

if TYPE_CHECKING:
    from vigil.analyzers.base import Analyzer
    from vigil.core.results import AnalyzerResult
    from vigil.observers.base import AuditObserver

logger = logging.getLogger(__name__)

# Category and recommendation for the finding synthesized when an analyzer raises.
FAILURE_FINDINGS: dict[AuditPhase, tuple[str, str]] = {
    AuditPhase.STATIC_ANALYSIS: (
        "Static Analysis Error",
        "Check analyzer implementation and project structure",
    ),
    AuditPhase.INTEGRATION_ANALYSIS: (
        "Integration Analysis Error",
        "Check integration analyzer setup and project structure",
    ),
    AuditPhase.PERFORMANCE_VALIDATION: (
        "Performance Analysis Error",
        "Check build configuration and performance analyzer setup",
    ),
    AuditPhase.COMPATIBILITY_VALIDATION: (
        "Compatibility Analysis Error",
        "Check compatibility analyzer setup and project structure",
    ),
    AuditPhase.PRODUCTION_READINESS: (
        "Production Readiness Error",
        "Check production readiness validator configuration",
    ),
}


class PhaseOutcome(NamedTuple):
    """A phase result plus any issues raised while producing it."""

    result: PhaseResult
    issues: tuple[AuditIssue, ...] = ()


def describe_exception(exc: BaseException) -> dict[str, str]:
    """Serializable evidence for an exception."""
    return {"error_type": type(exc).__name__, "message": str(exc)}


def _flag(value: bool) -> float:
    return 1.0 if value else 0.0


# =============================================================================
# Status derivation, one rule per analyzer variant
# =============================================================================


def integration_status(result: IntegrationResult) -> AuditStatus:
    """PASS only when coherent, consistent and issue-free; FAIL on any HIGH issue."""
    if result.type_system_coherence and result.cross_layer_consistency and not result.issues:
        return AuditStatus.PASS
    if any(issue.severity == "HIGH" for issue in result.issues):
        return AuditStatus.FAIL
    return AuditStatus.WARNING


def performance_status(result: PerformanceResult) -> AuditStatus:
    """Shortfalls are never fatal on their own."""
    return AuditStatus.PASS if result.performance_gains.meets_thresholds else AuditStatus.WARNING


def compatibility_status(result: CompatibilityResult) -> AuditStatus:
    has_issues = (
        not result.api_contract_validation.overall_compatibility
        or not result.backward_compatibility.overall_compatibility
        or result.sub_check_issue_count > 0
    )
    return AuditStatus.WARNING if has_issues else AuditStatus.PASS


def readiness_status(result: ProductionReadinessResult) -> AuditStatus:
    return AuditStatus.PASS if result.overall_readiness else AuditStatus.WARNING


# =============================================================================
# Phase metrics and findings
# =============================================================================


def _integration_findings(result: IntegrationResult) -> tuple[Finding, ...]:
    return (
        Finding(
            category="Type System Coherence",
            description=f"TypeScript compilation {'successful' if result.type_system_coherence else 'failed'}",
            impact=FindingImpact.POSITIVE if result.type_system_coherence else FindingImpact.NEGATIVE,
            evidence=result.type_system_coherence,
        ),
        Finding(
            category="Cross-Layer Integration",
            description=f"Cross-layer consistency {'maintained' if result.cross_layer_consistency else 'issues found'}",
            impact=FindingImpact.POSITIVE if result.cross_layer_consistency else FindingImpact.NEGATIVE,
            evidence=result.cross_layer_consistency,
        ),
        Finding(
            category="Authentication Integration",
            description=f"Authentication integration {'working' if result.authentication_integration else 'needs attention'}",
            impact=FindingImpact.POSITIVE if result.authentication_integration else FindingImpact.NEGATIVE,
            evidence=result.authentication_integration,
        ),
        Finding(
            category="Error Handling Chain",
            description=f"Error handling chain {'consistent' if result.error_handling_chain else 'inconsistent'}",
            impact=FindingImpact.POSITIVE if result.error_handling_chain else FindingImpact.NEGATIVE,
            evidence=result.error_handling_chain,
        ),
    )


def _integration_metrics(result: IntegrationResult) -> dict[str, float]:
    return {
        "typeErrors": sum(1 for i in result.issues if i.type == "INCONSISTENT_INTERFACE"),
        "compilationTime": result.compilation_time,
        "importInconsistencies": sum(1 for i in result.issues if i.type == "DEPRECATED_IMPORT"),
        "crossLayerIntegration": _flag(result.cross_layer_consistency),
        "authenticationIntegration": _flag(result.authentication_integration),
        "errorHandlingChain": _flag(result.error_handling_chain),
    }


def _performance_metrics(result: PerformanceResult) -> dict[str, float]:
    gains = result.performance_gains
    return {
        "bundleSizeReduction": gains.bundle_size_reduction,
        "responseTimeImprovement": gains.response_time_improvement,
        "memoryReduction": gains.memory_reduction,
        "bundleSize": result.bundle_analysis.total_size,
        "averageResponseTime": result.api_performance.average_response_time,
        "memoryUsage": result.memory_analysis.current_usage,
        "meetsThresholds": _flag(gains.meets_thresholds),
    }


def _compatibility_metrics(result: CompatibilityResult) -> dict[str, float]:
    contracts = result.api_contract_validation
    imports = result.backward_compatibility.import_compatibility
    return {
        "apiContractIssues": sum(1 for c in contracts.contract_issues if not c.valid),
        "backwardCompatibilityIssues": len(imports.broken_imports),
        "errorResponseIssues": len(result.error_response_validation.issues),
        "authenticationIssues": len(result.authentication_integration.issues),
        "databaseIssues": len(result.database_integration.issues),
        "totalEndpoints": contracts.total_endpoints,
        "validatedEndpoints": contracts.validated_endpoints,
        "workingImports": imports.working_imports,
        "totalImports": imports.total_imports,
    }


def _readiness_metrics(result: ProductionReadinessResult) -> dict[str, float]:
    return {
        "readinessScore": result.readiness_score,
        "buildSuccessful": _flag(result.build_validation.build_successful),
        "typeScriptErrors": result.build_validation.type_script_errors,
        "securityVulnerabilities": result.security_validation.vulnerabilities,
        "environmentConfigured": _flag(result.environment_validation.configuration_valid),
    }


def classify(
    raw: AnalyzerResult,
) -> tuple[AuditStatus, dict[str, float], tuple[Finding, ...]]:
    """Derive status, metrics and findings from an analyzer result.

    Only the fields that decide status are branched on; everything else is
    passed through as metrics and findings.

    Raises:
        TypeError: If the result is not a known analyzer result shape.
    """
    if isinstance(raw, IntegrationResult):
        return integration_status(raw), _integration_metrics(raw), _integration_findings(raw)
    if isinstance(raw, PerformanceResult):
        return performance_status(raw), _performance_metrics(raw), raw.findings
    if isinstance(raw, CompatibilityResult):
        return compatibility_status(raw), _compatibility_metrics(raw), raw.findings
    if isinstance(raw, ProductionReadinessResult):
        return readiness_status(raw), _readiness_metrics(raw), raw.findings
    if isinstance(raw, NotImplementedResult):
        finding = Finding(
            category="Not Implemented",
            description=raw.description,
            impact=FindingImpact.NEUTRAL,
            evidence=None,
            recommendation=raw.recommendation,
        )
        return AuditStatus.PENDING, dict(raw.metrics), (finding,)
    raise TypeError(f"Unsupported analyzer result: {type(raw).__name__}")


class PhaseExecutor:
    """Runs one analyzer per phase and always produces a PhaseResult.

    Any exception raised by the analyzer (or by classifying its result) is
    converted into a FAIL result with a single negative finding and one
    CONFIGURATION_ERROR issue; it never propagates to the caller. Observer
    errors are logged and dropped.
    """

    def __init__(self, observer: AuditObserver | None = None) -> None:
        self.observer = CompositeObserver([observer or NullObserver()])

    async def execute(self, phase: AuditPhase, analyzer: Analyzer) -> PhaseOutcome:
        """Execute a single phase.

        Args:
            phase: Phase tag the analyzer backs
            analyzer: Analyzer to invoke

        Returns:
            PhaseOutcome with the phase result and any issues raised
        """
        self.observer.phase_started(phase)
        started_at = datetime.now(UTC)
        start = time.perf_counter()

        try:
            raw = await analyzer.run()
            status, metrics, findings = classify(raw)
        except Exception as e:
            logger.exception(f"Phase {phase.value} failed")
            outcome = self._failure(phase, e, started_at, time.perf_counter() - start)
        else:
            result = PhaseResult(
                phase=phase,
                status=status,
                metrics=metrics,
                findings=findings,
                duration=time.perf_counter() - start,
                started_at=started_at,
                ended_at=datetime.now(UTC),
            )
            outcome = PhaseOutcome(result)

        self.observer.phase_completed(outcome.result)
        return outcome

    def _failure(
        self,
        phase: AuditPhase,
        error: Exception,
        started_at: datetime,
        duration: float,
    ) -> PhaseOutcome:
        category, recommendation = FAILURE_FINDINGS[phase]
        evidence = describe_exception(error)
        result = PhaseResult(
            phase=phase,
            status=AuditStatus.FAIL,
            metrics={},
            findings=(
                Finding(
                    category=category,
                    description=f"Analysis failed: {error}",
                    impact=FindingImpact.NEGATIVE,
                    evidence=evidence,
                    recommendation=recommendation,
                ),
            ),
            duration=duration,
            started_at=started_at,
            ended_at=datetime.now(UTC),
        )
        # Gate-phase crashes are HIGH, configured-phase crashes CRITICAL.
        severity = IssueSeverity.HIGH if phase == AuditPhase.PRODUCTION_READINESS else IssueSeverity.CRITICAL
        issue = AuditIssue(
            type=AuditErrorType.CONFIGURATION_ERROR,
            severity=severity,
            message=f"Phase {phase.value} execution failed: {error}",
            location=f"{type(self).__name__}.execute",
            evidence=evidence,
            recommendation="Check audit configuration and system dependencies",
            phase=phase,
        )
        return PhaseOutcome(result, (issue,))
