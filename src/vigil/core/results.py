"""Analyzer result shapes consumed by the phase executor."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from vigil.core.models import Finding


class AnalyzerResultModel(BaseModel):
    model_config = ConfigDict(frozen=True)


# =============================================================================
# Integration
# =============================================================================


class IntegrationIssue(AnalyzerResultModel):
    """A single integration problem found by static analysis."""

    type: Literal["MISSING_INTEGRATION", "DEPRECATED_IMPORT", "INCONSISTENT_INTERFACE"]
    file: str
    line: int | None = None
    description: str
    severity: Literal["HIGH", "MEDIUM", "LOW"]


class IntegrationResult(AnalyzerResultModel):
    kind: Literal["integration"] = "integration"
    type_system_coherence: bool
    cross_layer_consistency: bool
    authentication_integration: bool
    error_handling_chain: bool
    issues: tuple[IntegrationIssue, ...] = ()
    compilation_time: float = 0.0  # seconds
    total_imports: int = 0
    unified_imports: int = 0


# =============================================================================
# Performance
# =============================================================================


class ChunkInfo(AnalyzerResultModel):
    name: str
    size: int


class BundleAnalysis(AnalyzerResultModel):
    total_size: int = 0
    baseline_size: int = 0
    size_reduction: float = 0.0
    estimated: bool = False
    chunks: tuple[ChunkInfo, ...] = ()


class ApiPerformance(AnalyzerResultModel):
    average_response_time: float = 0.0  # milliseconds
    p95_response_time: float = 0.0
    baseline_response_time: float = 0.0
    throughput: float = 0.0  # requests per second
    error_rate: float = 0.0  # percent
    measured: bool = False


class MemoryAnalysis(AnalyzerResultModel):
    current_usage: int = 0  # bytes
    baseline_usage: int = 0
    reduction_percentage: float = 0.0


class PerformanceGains(AnalyzerResultModel):
    bundle_size_reduction: float = 0.0
    response_time_improvement: float = 0.0
    memory_reduction: float = 0.0
    meets_thresholds: bool = False

    def thresholds_met(
        self,
        bundle_min: float,
        response_min: float,
        memory_min: float,
    ) -> int:
        """Count how many of the three thresholds these gains meet."""
        return sum(
            (
                self.bundle_size_reduction >= bundle_min,
                self.response_time_improvement >= response_min,
                self.memory_reduction >= memory_min,
            )
        )


class PerformanceResult(AnalyzerResultModel):
    kind: Literal["performance"] = "performance"
    bundle_analysis: BundleAnalysis = Field(default_factory=BundleAnalysis)
    api_performance: ApiPerformance = Field(default_factory=ApiPerformance)
    memory_analysis: MemoryAnalysis = Field(default_factory=MemoryAnalysis)
    performance_gains: PerformanceGains = Field(default_factory=PerformanceGains)
    findings: tuple[Finding, ...] = ()


# =============================================================================
# Compatibility
# =============================================================================


class ContractValidation(AnalyzerResultModel):
    endpoint: str
    method: str
    response_format_match: bool
    status_code_match: bool
    error_handling_match: bool
    issues: tuple[str, ...] = ()

    @property
    def valid(self) -> bool:
        return self.response_format_match and self.status_code_match and self.error_handling_match


class ApiContractValidation(AnalyzerResultModel):
    total_endpoints: int = 0
    validated_endpoints: int = 0
    contract_issues: tuple[ContractValidation, ...] = ()
    overall_compatibility: bool = False


class ImportCompatibility(AnalyzerResultModel):
    total_imports: int = 0
    working_imports: int = 0
    broken_imports: tuple[str, ...] = ()
    deprecated_imports: tuple[str, ...] = ()


class BackwardCompatibility(AnalyzerResultModel):
    import_compatibility: ImportCompatibility = Field(default_factory=ImportCompatibility)
    overall_compatibility: bool = False


class CheckGroup(AnalyzerResultModel):
    """Named boolean checks plus the human-readable issues they raised."""

    checks: dict[str, bool] = Field(default_factory=dict)
    issues: tuple[str, ...] = ()


class CompatibilityResult(AnalyzerResultModel):
    kind: Literal["compatibility"] = "compatibility"
    api_contract_validation: ApiContractValidation = Field(default_factory=ApiContractValidation)
    backward_compatibility: BackwardCompatibility = Field(default_factory=BackwardCompatibility)
    error_response_validation: CheckGroup = Field(default_factory=CheckGroup)
    authentication_integration: CheckGroup = Field(default_factory=CheckGroup)
    database_integration: CheckGroup = Field(default_factory=CheckGroup)
    findings: tuple[Finding, ...] = ()

    @property
    def sub_check_issue_count(self) -> int:
        return (
            len(self.error_response_validation.issues)
            + len(self.authentication_integration.issues)
            + len(self.database_integration.issues)
        )


# =============================================================================
# Production readiness
# =============================================================================


class BuildValidation(AnalyzerResultModel):
    build_successful: bool = False
    type_script_errors: int = 0
    eslint_warnings: int = 0
    build_time: float = 0.0
    build_size: int = 0


class EnvironmentValidation(AnalyzerResultModel):
    required_env_vars: tuple[str, ...] = ()
    missing_env_vars: tuple[str, ...] = ()
    configuration_valid: bool = False
    database_connection: bool = False


class SecurityValidation(AnalyzerResultModel):
    vulnerabilities: int = 0
    security_headers: bool = False
    authentication_secure: bool = False


class DeploymentPerformance(AnalyzerResultModel):
    bundle_optimized: bool = False
    cache_headers: bool = False
    compression_enabled: bool = False
    image_optimization: bool = False

    @property
    def enabled_count(self) -> int:
        return sum((self.bundle_optimized, self.cache_headers, self.compression_enabled, self.image_optimization))


class ProductionReadinessResult(AnalyzerResultModel):
    kind: Literal["production_readiness"] = "production_readiness"
    build_validation: BuildValidation = Field(default_factory=BuildValidation)
    environment_validation: EnvironmentValidation = Field(default_factory=EnvironmentValidation)
    security_validation: SecurityValidation = Field(default_factory=SecurityValidation)
    performance_validation: DeploymentPerformance = Field(default_factory=DeploymentPerformance)
    overall_readiness: bool = False
    readiness_score: int = 0
    findings: tuple[Finding, ...] = ()


# =============================================================================
# Placeholder
# =============================================================================


class NotImplementedResult(AnalyzerResultModel):
    """Result of a phase whose analyzer does not exist yet."""

    kind: Literal["not_implemented"] = "not_implemented"
    description: str
    recommendation: str
    metrics: dict[str, float] = Field(default_factory=dict)


AnalyzerResult = (
    IntegrationResult | PerformanceResult | CompatibilityResult | ProductionReadinessResult | NotImplementedResult
)
