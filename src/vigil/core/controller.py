"""Audit controller: runs phases in order, applies the readiness gate, aggregates."""

from __future__ import annotations

import logging
import time
from collections.abc import Iterable, Mapping, Sequence
from datetime import UTC, datetime
from enum import Enum
from typing import TYPE_CHECKING

from vigil.core.executor import PhaseExecutor, describe_exception
from vigil.core.models import (
    AuditErrorType,
    AuditIssue,
    AuditMetrics,
    AuditPhase,
    AuditResult,
    AuditStatus,
    IssueSeverity,
    PhaseResult,
)
from vigil.observers.base import CompositeObserver, NullObserver

if TYPE_CHECKING:
    from vigil.analyzers.base import Analyzer
    from vigil.config import AuditConfig
    from vigil.observers.base import AuditObserver

logger = logging.getLogger(__name__)

ISSUES_RECOMMENDATION = "Review and address identified issues"
DEFAULT_RECOMMENDATIONS: tuple[str, ...] = (
    "Continue monitoring system performance",
    "Maintain current architectural patterns",
)
CRASH_RECOMMENDATIONS: tuple[str, ...] = (
    "Review audit configuration",
    "Check system dependencies",
    "Verify project structure",
)

COMPATIBILITY_ISSUE_METRICS: tuple[str, ...] = (
    "apiContractIssues",
    "backwardCompatibilityIssues",
    "errorResponseIssues",
    "authenticationIssues",
    "databaseIssues",
)


class ControllerState(str, Enum):
    """Lifecycle of a single controller run."""

    IDLE = "IDLE"
    RUNNING_PHASE = "RUNNING_PHASE"
    GATE_CHECK = "GATE_CHECK"
    RUNNING_PRODUCTION_READINESS = "RUNNING_PRODUCTION_READINESS"
    FINALIZING = "FINALIZING"
    DONE = "DONE"


def determine_overall_status(statuses: Iterable[AuditStatus]) -> AuditStatus:
    """Aggregate phase statuses with first-match priority FAIL > WARNING > PENDING > PASS."""
    seen = set(statuses)
    for status in (AuditStatus.FAIL, AuditStatus.WARNING, AuditStatus.PENDING):
        if status in seen:
            return status
    return AuditStatus.PASS


def should_run_production_readiness(phases: Iterable[PhaseResult]) -> bool:
    """The readiness gate runs only when no phase failed."""
    return not any(p.status == AuditStatus.FAIL for p in phases)


def generate_recommendations(phases: Iterable[PhaseResult], issues: Sequence[AuditIssue]) -> tuple[str, ...]:
    """Build run-level recommendations.

    Order: the generic issue notice, then one entry per FAIL/WARNING phase in
    execution order, then the maintenance defaults only if nothing else applied.
    """
    recommendations: list[str] = []
    if issues:
        recommendations.append(ISSUES_RECOMMENDATION)

    for result in phases:
        if result.status in (AuditStatus.FAIL, AuditStatus.WARNING):
            recommendations.append(f"Review {result.phase.value} phase findings")

    if not recommendations:
        recommendations.extend(DEFAULT_RECOMMENDATIONS)
    return tuple(recommendations)


def aggregate_metrics(phases: Iterable[PhaseResult]) -> AuditMetrics:
    """Collect run-level metrics from the last result of each contributing phase."""
    latest: dict[AuditPhase, PhaseResult] = {}
    for result in phases:
        latest[result.phase] = result

    values: dict[str, float | int] = {}
    performance = latest.get(AuditPhase.PERFORMANCE_VALIDATION)
    if performance is not None:
        values["bundle_size_reduction"] = performance.metrics.get("bundleSizeReduction", 0.0)
        values["response_time_improvement"] = performance.metrics.get("responseTimeImprovement", 0.0)
        values["memory_reduction"] = performance.metrics.get("memoryReduction", 0.0)
        values["compilation_time_improvement"] = performance.metrics.get("compilationTimeImprovement", 0.0)
        values["duplicate_code_elimination"] = performance.metrics.get("duplicateCodeElimination", 0.0)

    static = latest.get(AuditPhase.STATIC_ANALYSIS)
    if static is not None:
        values["type_error_count"] = int(static.metrics.get("typeErrors", 0))

    compatibility = latest.get(AuditPhase.COMPATIBILITY_VALIDATION)
    if compatibility is not None:
        values["compatibility_issues"] = int(
            sum(compatibility.metrics.get(name, 0) for name in COMPATIBILITY_ISSUE_METRICS)
        )

    return AuditMetrics(**values)


class AuditController:
    """Drives one audit run.

    Phases run strictly in configured order without reordering or
    deduplication. Once they are done, the production readiness gate runs
    through the same executor if no phase failed. ``execute_audit`` never
    raises: any error outside the per-phase boundary becomes a FAIL result.
    """

    def __init__(
        self,
        config: AuditConfig,
        analyzers: Mapping[AuditPhase, Analyzer],
        observer: AuditObserver | None = None,
    ) -> None:
        self.config = config
        self.analyzers = dict(analyzers)
        # Observer errors are logged and dropped, never turned into phase failures.
        self.observer = CompositeObserver([observer or NullObserver()])
        self.executor = PhaseExecutor(self.observer)
        self.state = ControllerState.IDLE
        self.started_at = datetime.now(UTC)
        self._start = time.perf_counter()
        self._results: list[PhaseResult] = []
        self._issues: list[AuditIssue] = []
        self._current_phase: AuditPhase | None = None

    async def execute_audit(self) -> AuditResult:
        """Execute the complete audit.

        Returns:
            The terminal AuditResult; a crashed run yields an overall FAIL
        """
        try:
            if self.state != ControllerState.IDLE:
                raise RuntimeError("AuditController instances run only once")

            self.observer.audit_started(self.config.phases)
            for phase in self.config.phases:
                await self._run_phase(phase)

            self.state = ControllerState.GATE_CHECK
            run_gate = should_run_production_readiness(self._results)
            self.observer.gate_decision(run_gate)
            if run_gate:
                await self._run_phase(AuditPhase.PRODUCTION_READINESS)

            self.state = ControllerState.FINALIZING
            result = self._build_result()
        except Exception as e:
            logger.exception("Audit execution failed")
            result = self._build_failure_result(e)

        self.state = ControllerState.DONE
        self.observer.audit_completed(result)
        return result

    async def _run_phase(self, phase: AuditPhase) -> None:
        self._current_phase = phase
        analyzer = self.analyzers.get(phase)
        if analyzer is None:
            raise LookupError(f"No analyzer registered for phase {phase.value}")

        if phase == AuditPhase.PRODUCTION_READINESS:
            self.state = ControllerState.RUNNING_PRODUCTION_READINESS
        else:
            self.state = ControllerState.RUNNING_PHASE

        outcome = await self.executor.execute(phase, analyzer)
        self._results.append(outcome.result)
        self._issues.extend(outcome.issues)

    def _elapsed(self) -> float:
        return time.perf_counter() - self._start

    def _build_result(self) -> AuditResult:
        return AuditResult(
            overall=determine_overall_status(r.status for r in self._results),
            phases=tuple(self._results),
            metrics=aggregate_metrics(self._results),
            issues=tuple(self._issues),
            recommendations=generate_recommendations(self._results, self._issues),
            timestamp=datetime.now(UTC),
            duration=self._elapsed(),
            thresholds=self.config.thresholds,
        )

    def _build_failure_result(self, error: Exception) -> AuditResult:
        # A crash before any phase started is attributed to the first configured phase.
        phase = self._current_phase or next(iter(self.config.phases), AuditPhase.STATIC_ANALYSIS)
        issue = AuditIssue(
            type=AuditErrorType.CONFIGURATION_ERROR,
            severity=IssueSeverity.CRITICAL,
            message=f"Audit execution failed: {error}",
            location=f"{type(self).__name__}.execute_audit",
            evidence=describe_exception(error),
            recommendation="Check audit configuration and system setup",
            phase=phase,
        )
        return AuditResult(
            overall=AuditStatus.FAIL,
            phases=tuple(self._results),
            metrics=AuditMetrics(),
            issues=(issue,),
            recommendations=CRASH_RECOMMENDATIONS,
            timestamp=datetime.now(UTC),
            duration=self._elapsed(),
            thresholds=self.config.thresholds,
        )

    def get_config(self) -> AuditConfig:
        """Return the configuration this controller runs with."""
        return self.config

    def get_results(self) -> list[PhaseResult]:
        """Return a copy of the phase results recorded so far."""
        return list(self._results)

    def get_issues(self) -> list[AuditIssue]:
        """Return a copy of the issues recorded so far."""
        return list(self._issues)


async def run_audit(
    config: AuditConfig,
    analyzers: Mapping[AuditPhase, Analyzer] | None = None,
    observer: AuditObserver | None = None,
) -> AuditResult:
    """Run an audit with the default analyzers unless a registry is given."""
    if analyzers is None:
        from vigil.analyzers import default_analyzers

        analyzers = default_analyzers(config)
    controller = AuditController(config, analyzers, observer)
    return await controller.execute_audit()
