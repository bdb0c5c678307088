"""Configuration management for vigil."""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator

from vigil.core.models import AuditPhase, PerformanceThresholds

DEFAULT_PHASES: tuple[AuditPhase, ...] = (
    AuditPhase.STATIC_ANALYSIS,
    AuditPhase.INTEGRATION_ANALYSIS,
    AuditPhase.PERFORMANCE_VALIDATION,
    AuditPhase.COMPATIBILITY_VALIDATION,
)

DEFAULT_ENDPOINTS: tuple[str, ...] = (
    "/api/users",
    "/api/categories",
    "/api/courses",
    "/api/admin/dashboard-stats",
)

OutputFormat = Literal["json", "markdown", "both"]


class CompatibilityPolicy(BaseModel):
    """Compatibility guarantees the audited refactor is expected to keep."""

    model_config = ConfigDict(frozen=True)

    zero_breaking_changes: bool = Field(default=True, description="No breaking changes allowed")
    backward_compatibility: bool = Field(default=True, description="Old import paths must keep working")
    api_contract_preservation: bool = Field(default=True, description="API response contracts must be preserved")


class ReportingPolicy(BaseModel):
    """Report output settings."""

    model_config = ConfigDict(frozen=True)

    generate_executive_summary: bool = Field(default=True, description="Write the executive summary file")
    include_detailed_metrics: bool = Field(default=True, description="Include per-phase metrics in reports")
    output_format: OutputFormat = Field(default="both", description="Report format: json, markdown, or both")
    output_path: Path = Field(default=Path("./audit-results"), description="Directory reports are written to")


class PerformanceProbe(BaseModel):
    """How the performance analyzer measures the running application.

    Baselines are pre-refactor measurements. When a baseline is missing the
    analyzer estimates it from the current measurement.
    """

    model_config = ConfigDict(frozen=True)

    base_url: str | None = Field(default=None, description="Base URL of a running instance to probe")
    endpoints: tuple[str, ...] = Field(default=DEFAULT_ENDPOINTS, description="Endpoints to time")
    request_timeout: float = Field(default=10.0, description="Per-request timeout in seconds")
    baseline_bundle_bytes: int | None = None
    baseline_response_ms: float | None = None
    baseline_memory_bytes: int | None = None


class AuditConfig(BaseModel):
    """Audit run configuration.

    Instances are immutable; use ``create_audit_config`` or ``with_overrides``
    to derive a modified copy.
    """

    model_config = ConfigDict(frozen=True)

    phases: tuple[AuditPhase, ...] = Field(default=DEFAULT_PHASES, description="Phases to run, in order")
    thresholds: PerformanceThresholds = Field(default_factory=PerformanceThresholds)
    compatibility: CompatibilityPolicy = Field(default_factory=CompatibilityPolicy)
    reporting: ReportingPolicy = Field(default_factory=ReportingPolicy)
    probe: PerformanceProbe = Field(default_factory=PerformanceProbe)
    project_root: Path = Field(default=Path("."), description="Root of the codebase under audit")
    command_timeout: int = Field(default=300, description="Timeout for external commands in seconds")

    @field_validator("phases")
    @classmethod
    def _reject_gate_phase(cls, phases: tuple[AuditPhase, ...]) -> tuple[AuditPhase, ...]:
        if AuditPhase.PRODUCTION_READINESS in phases:
            raise ValueError("PRODUCTION_READINESS is run automatically and cannot be configured")
        return phases

    def with_overrides(self, overrides: Mapping[str, Any]) -> AuditConfig:
        """Return a new config with ``overrides`` overlaid onto this one."""
        merged = overlay(self.model_dump(), overrides)
        return AuditConfig.model_validate(merged)

    @classmethod
    def load(cls, config_path: Path | None = None, preset: str = "default") -> AuditConfig:
        """Load configuration from file on top of a preset.

        Raises:
            KeyError: If the preset is unknown.
            ValueError: If the file is not valid YAML or holds invalid values.
        """
        if config_path is None:
            # Look for config in .vigil/config.yaml
            config_path = Path(".vigil/config.yaml")

        base = get_preset(preset)
        if config_path.exists():
            with config_path.open() as f:
                try:
                    data = yaml.safe_load(f) or {}
                except yaml.YAMLError as e:
                    raise ValueError(f"{config_path} is not valid YAML: {e}") from e
            if not isinstance(data, Mapping):
                raise ValueError(f"{config_path} must contain a mapping of settings")
            return base.with_overrides(data)

        return base

    def save(self, config_path: Path) -> None:
        """Save the settings that differ from the defaults.

        Unchanged settings are left out so a preset given to ``load`` still applies to them.
        """
        config_path.parent.mkdir(parents=True, exist_ok=True)
        with config_path.open("w") as f:
            yaml.dump(self.model_dump(mode="json", exclude_defaults=True), f, default_flow_style=False, sort_keys=False)


def overlay(base: Mapping[str, Any], overrides: Mapping[str, Any]) -> dict[str, Any]:
    """Merge ``overrides`` onto ``base`` key by key, recursing into mappings.

    Neither argument is modified. Non-mapping values (including lists)
    replace the base value wholesale.
    """
    merged: dict[str, Any] = dict(base)
    for key, value in overrides.items():
        current = merged.get(key)
        if isinstance(current, Mapping) and isinstance(value, Mapping):
            merged[key] = overlay(current, value)
        else:
            merged[key] = value
    return merged


def create_audit_config(overrides: Mapping[str, Any] | None = None) -> AuditConfig:
    """Build a config from the defaults with optional nested overrides."""
    if not overrides:
        return AuditConfig()
    return AuditConfig().with_overrides(overrides)


PRESETS: dict[str, Mapping[str, Any]] = {
    "default": {},
    "integration": {
        "phases": [AuditPhase.INTEGRATION_ANALYSIS],
        "reporting": {"generate_executive_summary": False, "output_path": "./integration-audit"},
    },
    "performance": {
        "phases": [AuditPhase.PERFORMANCE_VALIDATION],
        "reporting": {"output_path": "./performance-audit"},
    },
    "compatibility": {
        "phases": [AuditPhase.COMPATIBILITY_VALIDATION],
        "reporting": {"output_path": "./compatibility-audit"},
    },
    "ci": {
        "phases": [AuditPhase.STATIC_ANALYSIS, AuditPhase.INTEGRATION_ANALYSIS],
        "thresholds": {
            "bundle_size_reduction_min": 10,
            "response_time_improvement_min": 20,
            "memory_reduction_min": 15,
            "compilation_time_improvement_min": 10,
        },
        "reporting": {
            "generate_executive_summary": True,
            "include_detailed_metrics": False,
            "output_format": "json",
            "output_path": "./ci-audit-results",
        },
    },
}


def get_preset(name: str) -> AuditConfig:
    """Return the named preset config.

    Raises:
        KeyError: If no preset has that name.
    """
    try:
        overrides = PRESETS[name.lower()]
    except KeyError:
        available = ", ".join(PRESETS)
        raise KeyError(f"Unknown preset '{name}'. Available: {available}") from None
    return create_audit_config(overrides)


def parse_phases(value: str) -> tuple[AuditPhase, ...]:
    """Parse a comma-separated phase list such as ``static_analysis,performance_validation``.

    Raises:
        ValueError: If a name is not a configurable phase.
    """
    phases: list[AuditPhase] = []
    for raw in value.split(","):
        name = raw.strip().upper()
        if not name:
            continue
        try:
            phase = AuditPhase(name)
        except ValueError:
            raise ValueError(f"Invalid phase: {raw.strip()}") from None
        if phase == AuditPhase.PRODUCTION_READINESS:
            raise ValueError(f"Invalid phase: {raw.strip()}")
        phases.append(phase)
    return tuple(phases)


def get_vigil_dir(project_root: Path | None = None) -> Path:
    """Get the .vigil directory, creating if needed."""
    if project_root is None:
        project_root = Path.cwd()
    vigil_dir = project_root / ".vigil"
    vigil_dir.mkdir(parents=True, exist_ok=True)
    return vigil_dir
