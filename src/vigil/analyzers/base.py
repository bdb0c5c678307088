"""Analyzer interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from vigil.core.results import AnalyzerResult


class Analyzer(ABC):
    """Produces a structured result for one phase.

    Analyzers are stateless with respect to the pipeline and read-only with
    respect to the audited codebase. ``run`` either returns a complete result
    or raises.
    """

    @abstractmethod
    async def run(self) -> AnalyzerResult:
        """Run the analysis."""
