"""Tests for audit lifecycle observers."""

from __future__ import annotations

import io
import logging
from collections.abc import Callable
from unittest.mock import MagicMock

import pytest
from rich.console import Console

from vigil.core.models import AuditPhase, AuditResult, AuditStatus, PhaseResult
from vigil.observers import (
    AuditObserver,
    CompositeObserver,
    ConsoleObserver,
    LoggingObserver,
    NullObserver,
)


class TestLoggingObserver:
    """Tests for LoggingObserver."""

    def test_phase_events(self, caplog: pytest.LogCaptureFixture, make_phase: Callable[..., PhaseResult]) -> None:
        observer = LoggingObserver()

        with caplog.at_level(logging.INFO, logger="vigil.observers.base"):
            observer.phase_started(AuditPhase.STATIC_ANALYSIS)
            observer.phase_completed(make_phase(AuditPhase.STATIC_ANALYSIS, AuditStatus.FAIL))

        started, completed = caplog.records
        assert started.event == "phase_started"  # type: ignore[attr-defined]
        assert started.phase == "STATIC_ANALYSIS"  # type: ignore[attr-defined]
        assert completed.levelno == logging.WARNING
        assert completed.status == "FAIL"  # type: ignore[attr-defined]
        assert "completed with status FAIL" in completed.getMessage()

    def test_gate_and_completion(
        self,
        caplog: pytest.LogCaptureFixture,
        make_result: Callable[..., AuditResult],
    ) -> None:
        observer = LoggingObserver(logging.getLogger("vigil.test"))

        with caplog.at_level(logging.INFO, logger="vigil.test"):
            observer.gate_decision(False)
            observer.audit_completed(make_result(overall=AuditStatus.WARNING))

        assert caplog.messages == ["Production readiness gate: skipping", "Audit completed with status WARNING"]


class TestConsoleObserver:
    """Tests for ConsoleObserver output."""

    def test_prints_progress(
        self,
        make_phase: Callable[..., PhaseResult],
        make_result: Callable[..., AuditResult],
    ) -> None:
        buffer = io.StringIO()
        observer = ConsoleObserver(Console(file=buffer, no_color=True, width=120))

        observer.audit_started((AuditPhase.STATIC_ANALYSIS, AuditPhase.PERFORMANCE_VALIDATION))
        observer.phase_completed(make_phase(AuditPhase.STATIC_ANALYSIS, AuditStatus.PASS))
        observer.gate_decision(False)
        observer.audit_completed(make_result(overall=AuditStatus.FAIL))

        output = buffer.getvalue()
        assert "Phases to execute: STATIC_ANALYSIS, PERFORMANCE_VALIDATION" in output
        assert "PASS STATIC_ANALYSIS" in output
        assert "Skipping production readiness" in output
        assert "Audit completed with status: FAIL" in output


class TestCompositeObserver:
    """Tests for CompositeObserver."""

    def test_forwards_in_order(self) -> None:
        calls: list[str] = []
        first = MagicMock(spec=AuditObserver)
        first.phase_started.side_effect = lambda phase: calls.append("first")
        second = MagicMock(spec=AuditObserver)
        second.phase_started.side_effect = lambda phase: calls.append("second")

        CompositeObserver([first, second]).phase_started(AuditPhase.STATIC_ANALYSIS)

        assert calls == ["first", "second"]

    def test_failing_observer_is_isolated(self, caplog: pytest.LogCaptureFixture) -> None:
        broken = MagicMock(spec=AuditObserver)
        broken.gate_decision.side_effect = RuntimeError("terminal closed")
        healthy = MagicMock(spec=AuditObserver)

        with caplog.at_level(logging.WARNING):
            CompositeObserver([broken, healthy]).gate_decision(True)

        healthy.gate_decision.assert_called_once_with(True)
        assert "failed on gate_decision: terminal closed" in caplog.text

    def test_null_observer_accepts_everything(self, make_result: Callable[..., AuditResult]) -> None:
        observer = NullObserver()
        observer.audit_started(())
        observer.gate_decision(True)
        observer.audit_completed(make_result())
