"""Tests for core data models."""

from __future__ import annotations

from collections.abc import Callable

import pytest
from pydantic import ValidationError

from vigil.core.models import (
    AuditPhase,
    AuditResult,
    AuditStatus,
    Finding,
    FindingImpact,
    PhaseResult,
)


class TestPhaseResult:
    """Tests for PhaseResult."""

    def test_negative_findings(
        self,
        make_phase: Callable[..., PhaseResult],
        finding: Callable[..., Finding],
    ) -> None:
        """Only NEGATIVE findings are returned, in order."""
        findings = (
            finding("A", FindingImpact.POSITIVE),
            finding("B", FindingImpact.NEGATIVE),
            finding("C", FindingImpact.NEUTRAL),
            finding("D", FindingImpact.NEGATIVE),
        )
        phase = make_phase(findings=findings)

        assert [f.category for f in phase.negative_findings()] == ["B", "D"]

    def test_is_frozen(self, make_phase: Callable[..., PhaseResult]) -> None:
        phase = make_phase()
        with pytest.raises(ValidationError):
            phase.status = AuditStatus.FAIL  # type: ignore[misc]

    def test_metrics_are_read_only(self, make_phase: Callable[..., PhaseResult]) -> None:
        source = {"typeErrors": 2.0}
        phase = make_phase(metrics=source)

        with pytest.raises(TypeError):
            phase.metrics["typeErrors"] = 0  # type: ignore[index]
        source["typeErrors"] = 9.0

        assert phase.metrics == {"typeErrors": 2.0}
        assert phase.model_dump(mode="json")["metrics"] == {"typeErrors": 2.0}
        assert PhaseResult.model_validate_json(phase.model_dump_json()) == phase

    def test_default_metrics_are_read_only(self, make_phase: Callable[..., PhaseResult]) -> None:
        phase = make_phase()
        with pytest.raises(TypeError):
            phase.metrics["x"] = 1  # type: ignore[index]

    def test_evidence_accepts_json_values(self) -> None:
        """Evidence holds any JSON-serializable value."""
        f = Finding(
            category="Bundle Size",
            description="ok",
            impact=FindingImpact.POSITIVE,
            evidence={"sizes": [1, 2, 3], "estimated": False, "note": None},
        )
        assert f.model_dump(mode="json")["evidence"]["sizes"] == [1, 2, 3]


class TestAuditResult:
    """Tests for AuditResult helpers."""

    @pytest.mark.parametrize(
        ("overall", "code"),
        [
            (AuditStatus.PASS, 0),
            (AuditStatus.WARNING, 1),
            (AuditStatus.FAIL, 1),
            (AuditStatus.PENDING, 1),
        ],
    )
    def test_exit_code(self, make_result: Callable[..., AuditResult], overall: AuditStatus, code: int) -> None:
        """Exit code is 0 only for PASS."""
        result = make_result(overall=overall)
        assert result.exit_code == code
        assert result.passed is (code == 0)

    def test_find_phase_returns_last_match(self, make_result: Callable[..., AuditResult]) -> None:
        result = make_result(
            phases=[
                (AuditPhase.STATIC_ANALYSIS, AuditStatus.FAIL),
                (AuditPhase.PERFORMANCE_VALIDATION, AuditStatus.PASS),
                (AuditPhase.STATIC_ANALYSIS, AuditStatus.WARNING),
            ]
        )

        found = result.find_phase(AuditPhase.STATIC_ANALYSIS)

        assert found is not None
        assert found.status == AuditStatus.WARNING
        assert result.find_phase(AuditPhase.COMPATIBILITY_VALIDATION) is None

    def test_json_round_trip_preserves_phase_order(self, make_result: Callable[..., AuditResult]) -> None:
        """Serialized results load back with the same phase order."""
        result = make_result(
            phases=[
                (AuditPhase.PERFORMANCE_VALIDATION, AuditStatus.PASS),
                (AuditPhase.STATIC_ANALYSIS, AuditStatus.PASS),
            ]
        )

        loaded = AuditResult.model_validate_json(result.model_dump_json())

        assert loaded == result
        assert [p.phase for p in loaded.phases] == [AuditPhase.PERFORMANCE_VALIDATION, AuditPhase.STATIC_ANALYSIS]
