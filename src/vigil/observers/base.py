"""Audit lifecycle observer interface."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from rich.console import Console

if TYPE_CHECKING:
    from vigil.core.models import AuditPhase, AuditResult, PhaseResult

logger = logging.getLogger(__name__)


class AuditObserver(ABC):
    """Receives lifecycle events from an audit run.

    Observers must not raise; the controller treats them as fire-and-forget.
    """

    @abstractmethod
    def audit_started(self, phases: tuple[AuditPhase, ...]) -> None:
        """Called once before the first phase runs."""

    @abstractmethod
    def phase_started(self, phase: AuditPhase) -> None:
        """Called before a phase's analyzer is invoked."""

    @abstractmethod
    def phase_completed(self, result: PhaseResult) -> None:
        """Called after a phase produced a result, including synthesized failures."""

    @abstractmethod
    def gate_decision(self, run_production_readiness: bool) -> None:
        """Called once all configured phases finished.

        Args:
            run_production_readiness: Whether the readiness gate will run
        """

    @abstractmethod
    def audit_completed(self, result: AuditResult) -> None:
        """Called with the terminal result, for normal and crashed runs."""


class NullObserver(AuditObserver):
    """No-op observer for testing or when output is disabled."""

    def audit_started(self, phases: tuple[AuditPhase, ...]) -> None:
        """Do nothing."""

    def phase_started(self, phase: AuditPhase) -> None:
        """Do nothing."""

    def phase_completed(self, result: PhaseResult) -> None:
        """Do nothing."""

    def gate_decision(self, run_production_readiness: bool) -> None:
        """Do nothing."""

    def audit_completed(self, result: AuditResult) -> None:
        """Do nothing."""


class LoggingObserver(AuditObserver):
    """Emits lifecycle events as structured log records."""

    def __init__(self, log: logging.Logger | None = None) -> None:
        self.log = log or logger

    def audit_started(self, phases: tuple[AuditPhase, ...]) -> None:
        names = ", ".join(p.value for p in phases)
        self.log.info(f"Audit started: {names}", extra={"event": "audit_started", "phases": [p.value for p in phases]})

    def phase_started(self, phase: AuditPhase) -> None:
        self.log.info(f"Phase {phase.value} started", extra={"event": "phase_started", "phase": phase.value})

    def phase_completed(self, result: PhaseResult) -> None:
        level = logging.WARNING if result.status.value == "FAIL" else logging.INFO
        self.log.log(
            level,
            f"Phase {result.phase.value} completed with status {result.status.value} ({result.duration:.2f}s)",
            extra={
                "event": "phase_completed",
                "phase": result.phase.value,
                "status": result.status.value,
                "duration": result.duration,
            },
        )

    def gate_decision(self, run_production_readiness: bool) -> None:
        decision = "running" if run_production_readiness else "skipping"
        self.log.info(
            f"Production readiness gate: {decision}",
            extra={"event": "gate_decision", "run_production_readiness": run_production_readiness},
        )

    def audit_completed(self, result: AuditResult) -> None:
        self.log.info(
            f"Audit completed with status {result.overall.value}",
            extra={"event": "audit_completed", "status": result.overall.value, "phases": len(result.phases)},
        )


class ConsoleObserver(AuditObserver):
    """Live progress output using Rich."""

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    def audit_started(self, phases: tuple[AuditPhase, ...]) -> None:
        self.console.print("[bold blue]Starting audit[/bold blue]")
        self.console.print(f"    Phases to execute: {', '.join(p.value for p in phases)}")

    def phase_started(self, phase: AuditPhase) -> None:
        self.console.print(f"[blue]>[/blue] Executing phase: {phase.value}")

    def phase_completed(self, result: PhaseResult) -> None:
        styles = {
            "PASS": "green",
            "WARNING": "yellow",
            "FAIL": "red",
            "PENDING": "dim",
        }
        style = styles.get(result.status.value, "blue")
        self.console.print(
            f"  [{style}]{result.status.value}[/{style}] {result.phase.value} ({result.duration:.2f}s)"
        )

    def gate_decision(self, run_production_readiness: bool) -> None:
        if run_production_readiness:
            self.console.print("[blue]>[/blue] Running production readiness validation")
        else:
            self.console.print("[yellow][!] Skipping production readiness: a phase failed[/yellow]")

    def audit_completed(self, result: AuditResult) -> None:
        style = "green" if result.passed else "red" if result.overall.value == "FAIL" else "yellow"
        self.console.print(f"[{style}]Audit completed with status: {result.overall.value}[/{style}]")


class CompositeObserver(AuditObserver):
    """Forwards events to several observers.

    A failing observer is logged and skipped so it cannot break the run.
    """

    def __init__(self, observers: list[AuditObserver]) -> None:
        """Initialize with list of observers.

        Args:
            observers: Observers to forward events to, in order
        """
        self.observers = observers

    def _dispatch(self, method: str, *args: object) -> None:
        for observer in self.observers:
            try:
                getattr(observer, method)(*args)
            except Exception as e:
                logger.warning(f"Observer {type(observer).__name__} failed on {method}: {e}")

    def audit_started(self, phases: tuple[AuditPhase, ...]) -> None:
        self._dispatch("audit_started", phases)

    def phase_started(self, phase: AuditPhase) -> None:
        self._dispatch("phase_started", phase)

    def phase_completed(self, result: PhaseResult) -> None:
        self._dispatch("phase_completed", result)

    def gate_decision(self, run_production_readiness: bool) -> None:
        self._dispatch("gate_decision", run_production_readiness)

    def audit_completed(self, result: AuditResult) -> None:
        self._dispatch("audit_completed", result)
