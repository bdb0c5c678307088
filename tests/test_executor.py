"""Tests for per-phase execution and status derivation."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from vigil.core.executor import (
    PhaseExecutor,
    classify,
    compatibility_status,
    integration_status,
    performance_status,
    readiness_status,
)
from vigil.core.models import (
    AuditErrorType,
    AuditPhase,
    AuditStatus,
    FindingImpact,
    IssueSeverity,
)
from vigil.core.results import (
    ApiContractValidation,
    BackwardCompatibility,
    CheckGroup,
    CompatibilityResult,
    ContractValidation,
    ImportCompatibility,
    IntegrationIssue,
    IntegrationResult,
    NotImplementedResult,
    PerformanceGains,
    PerformanceResult,
    ProductionReadinessResult,
)
from vigil.observers.base import AuditObserver


def integration(
    issues: tuple[IntegrationIssue, ...] = (),
    coherent: bool = True,
    consistent: bool = True,
) -> IntegrationResult:
    return IntegrationResult(
        type_system_coherence=coherent,
        cross_layer_consistency=consistent,
        authentication_integration=True,
        error_handling_chain=False,
        issues=issues,
    )


def issue(severity: str, type_: str = "MISSING_INTEGRATION") -> IntegrationIssue:
    return IntegrationIssue(type=type_, file="src/app/api/route.ts", description="x", severity=severity)  # type: ignore[arg-type]


def compatibility(
    contracts_ok: bool = True,
    backward_ok: bool = True,
    error_issues: tuple[str, ...] = (),
) -> CompatibilityResult:
    return CompatibilityResult(
        api_contract_validation=ApiContractValidation(overall_compatibility=contracts_ok),
        backward_compatibility=BackwardCompatibility(overall_compatibility=backward_ok),
        error_response_validation=CheckGroup(issues=error_issues),
    )


class TestStatusRules:
    """Each analyzer variant has its own status rule."""

    def test_integration_clean_is_pass(self) -> None:
        assert integration_status(integration()) == AuditStatus.PASS

    def test_integration_high_issue_is_fail(self) -> None:
        result = integration(issues=(issue("MEDIUM"), issue("HIGH")))
        assert integration_status(result) == AuditStatus.FAIL

    def test_integration_medium_issue_is_warning(self) -> None:
        assert integration_status(integration(issues=(issue("MEDIUM"),))) == AuditStatus.WARNING

    def test_integration_incoherent_without_issues_is_warning(self) -> None:
        """Incoherence alone never escalates to FAIL."""
        assert integration_status(integration(coherent=False)) == AuditStatus.WARNING

    @pytest.mark.parametrize(("meets", "expected"), [(True, AuditStatus.PASS), (False, AuditStatus.WARNING)])
    def test_performance(self, meets: bool, expected: AuditStatus) -> None:
        """Missing targets is a WARNING, never a FAIL."""
        result = PerformanceResult(performance_gains=PerformanceGains(meets_thresholds=meets))
        assert performance_status(result) == expected

    def test_compatibility_clean_is_pass(self) -> None:
        assert compatibility_status(compatibility()) == AuditStatus.PASS

    @pytest.mark.parametrize(
        "result",
        [
            compatibility(contracts_ok=False),
            compatibility(backward_ok=False),
            compatibility(error_issues=("route.ts: Missing Arabic error messages",)),
        ],
    )
    def test_compatibility_problems_are_warning(self, result: CompatibilityResult) -> None:
        """Compatibility problems never escalate beyond WARNING."""
        assert compatibility_status(result) == AuditStatus.WARNING

    @pytest.mark.parametrize(("ready", "expected"), [(True, AuditStatus.PASS), (False, AuditStatus.WARNING)])
    def test_readiness(self, ready: bool, expected: AuditStatus) -> None:
        assert readiness_status(ProductionReadinessResult(overall_readiness=ready)) == expected


class TestClassify:
    """Tests for metrics and findings derived from analyzer results."""

    def test_integration_metrics_and_findings(self) -> None:
        result = integration(
            issues=(
                issue("MEDIUM", "INCONSISTENT_INTERFACE"),
                issue("HIGH", "DEPRECATED_IMPORT"),
                issue("HIGH", "DEPRECATED_IMPORT"),
            )
        )

        status, metrics, findings = classify(result)

        assert status == AuditStatus.FAIL
        assert metrics["typeErrors"] == 1
        assert metrics["importInconsistencies"] == 2
        assert metrics["errorHandlingChain"] == 0.0
        assert [f.category for f in findings] == [
            "Type System Coherence",
            "Cross-Layer Integration",
            "Authentication Integration",
            "Error Handling Chain",
        ]
        assert findings[3].impact == FindingImpact.NEGATIVE

    def test_compatibility_metrics(self) -> None:
        result = CompatibilityResult(
            api_contract_validation=ApiContractValidation(
                total_endpoints=2,
                validated_endpoints=1,
                contract_issues=(
                    ContractValidation(
                        endpoint="/users",
                        method="GET",
                        response_format_match=True,
                        status_code_match=True,
                        error_handling_match=True,
                    ),
                    ContractValidation(
                        endpoint="/courses",
                        method="POST",
                        response_format_match=False,
                        status_code_match=True,
                        error_handling_match=True,
                    ),
                ),
            ),
            backward_compatibility=BackwardCompatibility(
                import_compatibility=ImportCompatibility(total_imports=4, working_imports=3, broken_imports=("x",)),
            ),
            database_integration=CheckGroup(issues=("No transaction handling found",)),
        )

        status, metrics, _ = classify(result)

        assert status == AuditStatus.WARNING
        assert metrics["apiContractIssues"] == 1
        assert metrics["backwardCompatibilityIssues"] == 1
        assert metrics["databaseIssues"] == 1
        assert metrics["totalEndpoints"] == 2

    def test_not_implemented_is_pending(self) -> None:
        """Placeholder phases surface as PENDING with a neutral finding."""
        result = NotImplementedResult(description="pending", recommendation="build it", metrics={"dependencyIssues": 0})

        status, metrics, findings = classify(result)

        assert status == AuditStatus.PENDING
        assert metrics == {"dependencyIssues": 0}
        assert len(findings) == 1
        assert findings[0].category == "Not Implemented"
        assert findings[0].impact == FindingImpact.NEUTRAL
        assert findings[0].recommendation == "build it"

    def test_unknown_result_raises(self) -> None:
        with pytest.raises(TypeError, match="Unsupported analyzer result"):
            classify({"status": "PASS"})  # type: ignore[arg-type]


class TestPhaseExecutor:
    """Tests for PhaseExecutor.execute."""

    @pytest.mark.asyncio
    async def test_success_produces_result(self, stub_analyzer: type) -> None:
        executor = PhaseExecutor()

        outcome = await executor.execute(AuditPhase.STATIC_ANALYSIS, stub_analyzer(integration()))

        assert outcome.result.phase == AuditPhase.STATIC_ANALYSIS
        assert outcome.result.status == AuditStatus.PASS
        assert outcome.result.duration >= 0
        assert outcome.result.ended_at >= outcome.result.started_at
        assert outcome.issues == ()

    @pytest.mark.asyncio
    async def test_exception_becomes_fail(self, failing_analyzer: type) -> None:
        """An analyzer crash yields FAIL, one negative finding and one CRITICAL issue."""
        executor = PhaseExecutor()

        outcome = await executor.execute(AuditPhase.INTEGRATION_ANALYSIS, failing_analyzer(ValueError("bad tsconfig")))

        result = outcome.result
        assert result.status == AuditStatus.FAIL
        assert result.metrics == {}
        assert len(result.findings) == 1
        assert result.findings[0].impact == FindingImpact.NEGATIVE
        assert result.findings[0].description == "Analysis failed: bad tsconfig"
        assert result.findings[0].category == "Integration Analysis Error"

        assert len(outcome.issues) == 1
        crash = outcome.issues[0]
        assert crash.type == AuditErrorType.CONFIGURATION_ERROR
        assert crash.severity == IssueSeverity.CRITICAL
        assert crash.phase == AuditPhase.INTEGRATION_ANALYSIS
        assert crash.evidence == {"error_type": "ValueError", "message": "bad tsconfig"}

    @pytest.mark.asyncio
    async def test_gate_phase_crash_is_high(self, failing_analyzer: type) -> None:
        executor = PhaseExecutor()

        outcome = await executor.execute(AuditPhase.PRODUCTION_READINESS, failing_analyzer())

        assert outcome.result.status == AuditStatus.FAIL
        assert outcome.issues[0].severity == IssueSeverity.HIGH

    @pytest.mark.asyncio
    async def test_unclassifiable_result_becomes_fail(self, stub_analyzer: type) -> None:
        """A malformed analyzer result is isolated like a crash."""
        executor = PhaseExecutor()

        outcome = await executor.execute(AuditPhase.STATIC_ANALYSIS, stub_analyzer("not a result"))

        assert outcome.result.status == AuditStatus.FAIL
        assert outcome.issues[0].evidence["error_type"] == "TypeError"  # type: ignore[index]

    @pytest.mark.asyncio
    async def test_notifies_observer(self, stub_analyzer: type, failing_analyzer: type) -> None:
        """Observer sees start and completion for successful and failed phases."""
        observer = MagicMock(spec=AuditObserver)
        executor = PhaseExecutor(observer)

        await executor.execute(AuditPhase.STATIC_ANALYSIS, stub_analyzer(integration()))
        await executor.execute(AuditPhase.PERFORMANCE_VALIDATION, failing_analyzer())

        assert [c.args[0] for c in observer.phase_started.call_args_list] == [
            AuditPhase.STATIC_ANALYSIS,
            AuditPhase.PERFORMANCE_VALIDATION,
        ]
        completed = [c.args[0].status for c in observer.phase_completed.call_args_list]
        assert completed == [AuditStatus.PASS, AuditStatus.FAIL]
