"""Phase analyzers."""

from __future__ import annotations

from typing import TYPE_CHECKING

from vigil.analyzers.base import Analyzer
from vigil.analyzers.compatibility import CompatibilityAnalyzer
from vigil.analyzers.integration import IntegrationAnalyzer
from vigil.analyzers.performance import PerformanceAnalyzer
from vigil.analyzers.placeholder import NotImplementedAnalyzer
from vigil.analyzers.readiness import ProductionReadinessAnalyzer
from vigil.core.models import AuditPhase
from vigil.runners.commands import CommandRunner

if TYPE_CHECKING:
    from vigil.config import AuditConfig


def default_analyzers(config: AuditConfig) -> dict[AuditPhase, Analyzer]:
    """Build the analyzer registry for every phase, sharing one command runner."""
    root = config.project_root
    runner = CommandRunner(root, timeout=config.command_timeout)
    return {
        AuditPhase.STATIC_ANALYSIS: IntegrationAnalyzer(root, runner),
        AuditPhase.INTEGRATION_ANALYSIS: NotImplementedAnalyzer(),
        AuditPhase.PERFORMANCE_VALIDATION: PerformanceAnalyzer(root, config.thresholds, config.probe, runner),
        AuditPhase.COMPATIBILITY_VALIDATION: CompatibilityAnalyzer(root),
        AuditPhase.PRODUCTION_READINESS: ProductionReadinessAnalyzer(root, runner),
    }


__all__ = [
    "Analyzer",
    "CompatibilityAnalyzer",
    "IntegrationAnalyzer",
    "NotImplementedAnalyzer",
    "PerformanceAnalyzer",
    "ProductionReadinessAnalyzer",
    "default_analyzers",
]
