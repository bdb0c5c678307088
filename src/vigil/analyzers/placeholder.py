"""Placeholder for phases whose analyzer has not been written."""

from __future__ import annotations

from vigil.analyzers.base import Analyzer
from vigil.core.results import NotImplementedResult


class NotImplementedAnalyzer(Analyzer):
    """Reports a phase as PENDING instead of silently skipping it."""

    def __init__(
        self,
        description: str = "Integration analysis implementation pending",
        recommendation: str = "Implement cross-layer integration validator and dependency analyzer",
        metrics: dict[str, float] | None = None,
    ) -> None:
        self.description = description
        self.recommendation = recommendation
        self.metrics = metrics if metrics is not None else {
            "crossLayerIntegrations": 0,
            "dependencyIssues": 0,
            "interfaceInconsistencies": 0,
        }

    async def run(self) -> NotImplementedResult:
        return NotImplementedResult(
            description=self.description,
            recommendation=self.recommendation,
            metrics=self.metrics,
        )
