"""Shared fixtures for vigil tests."""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime
from pathlib import Path

import pytest

from vigil.analyzers.base import Analyzer
from vigil.core.models import (
    AuditMetrics,
    AuditPhase,
    AuditResult,
    AuditStatus,
    Finding,
    FindingImpact,
    PhaseResult,
)
from vigil.core.results import (
    ApiContractValidation,
    BackwardCompatibility,
    CompatibilityResult,
    IntegrationResult,
    NotImplementedResult,
    PerformanceGains,
    PerformanceResult,
    ProductionReadinessResult,
)

EPOCH = datetime(2025, 1, 1, tzinfo=UTC)


class StubAnalyzer(Analyzer):
    """Returns a fixed result and counts invocations."""

    def __init__(self, result: object) -> None:
        self.result = result
        self.calls = 0

    async def run(self):  # type: ignore[override]
        self.calls += 1
        return self.result


class FailingAnalyzer(Analyzer):
    """Raises the given exception."""

    def __init__(self, error: Exception | None = None) -> None:
        self.error = error or RuntimeError("analyzer exploded")
        self.calls = 0

    async def run(self):  # type: ignore[override]
        self.calls += 1
        raise self.error


@pytest.fixture
def temp_dir(tmp_path: Path) -> Path:
    """Project root for filesystem based tests."""
    return tmp_path


def passing_integration() -> IntegrationResult:
    return IntegrationResult(
        type_system_coherence=True,
        cross_layer_consistency=True,
        authentication_integration=True,
        error_handling_chain=True,
    )


def performance_result(
    meets: bool = True,
    bundle: float = 15.0,
    response: float = 30.0,
    memory: float = 25.0,
) -> PerformanceResult:
    return PerformanceResult(
        performance_gains=PerformanceGains(
            bundle_size_reduction=bundle,
            response_time_improvement=response,
            memory_reduction=memory,
            meets_thresholds=meets,
        )
    )


def passing_compatibility() -> CompatibilityResult:
    return CompatibilityResult(
        api_contract_validation=ApiContractValidation(overall_compatibility=True),
        backward_compatibility=BackwardCompatibility(overall_compatibility=True),
    )


def readiness_result(ready: bool = True, score: int = 95) -> ProductionReadinessResult:
    return ProductionReadinessResult(overall_readiness=ready, readiness_score=score)


@pytest.fixture
def passing_analyzers() -> dict[AuditPhase, StubAnalyzer]:
    """One passing analyzer per phase; INTEGRATION_ANALYSIS passes too."""
    return {
        AuditPhase.STATIC_ANALYSIS: StubAnalyzer(passing_integration()),
        AuditPhase.INTEGRATION_ANALYSIS: StubAnalyzer(passing_integration()),
        AuditPhase.PERFORMANCE_VALIDATION: StubAnalyzer(performance_result()),
        AuditPhase.COMPATIBILITY_VALIDATION: StubAnalyzer(passing_compatibility()),
        AuditPhase.PRODUCTION_READINESS: StubAnalyzer(readiness_result()),
    }


@pytest.fixture
def pending_result() -> NotImplementedResult:
    return NotImplementedResult(description="pending", recommendation="implement it")


@pytest.fixture
def make_phase() -> Callable[..., PhaseResult]:
    """Factory for PhaseResult objects."""

    def _make(
        phase: AuditPhase = AuditPhase.STATIC_ANALYSIS,
        status: AuditStatus = AuditStatus.PASS,
        metrics: dict[str, float] | None = None,
        findings: tuple[Finding, ...] = (),
    ) -> PhaseResult:
        return PhaseResult(
            phase=phase,
            status=status,
            metrics=metrics or {},
            findings=findings,
            duration=0.1,
            started_at=EPOCH,
            ended_at=EPOCH,
        )

    return _make


@pytest.fixture
def make_result(make_phase: Callable[..., PhaseResult]) -> Callable[..., AuditResult]:
    """Factory for AuditResult objects.

    ``phases`` is a list of (phase, status) pairs.
    """

    def _make(
        overall: AuditStatus = AuditStatus.PASS,
        phases: list[tuple[AuditPhase, AuditStatus]] | None = None,
        metrics: AuditMetrics | None = None,
        issues: tuple = (),
    ) -> AuditResult:
        return AuditResult(
            overall=overall,
            phases=tuple(make_phase(phase, status) for phase, status in phases or []),
            metrics=metrics or AuditMetrics(),
            issues=issues,
            timestamp=EPOCH,
            duration=1.0,
        )

    return _make


@pytest.fixture
def finding() -> Callable[..., Finding]:
    def _make(category: str = "General", impact: FindingImpact = FindingImpact.NEGATIVE) -> Finding:
        return Finding(category=category, description=f"{category} finding", impact=impact, recommendation="Fix it")

    return _make


@pytest.fixture
def stub_analyzer() -> type[StubAnalyzer]:
    return StubAnalyzer


@pytest.fixture
def failing_analyzer() -> type[FailingAnalyzer]:
    return FailingAnalyzer
