"""Production readiness validation run as the final gate phase."""

from __future__ import annotations

import json
import logging
import os
import re
from collections.abc import Mapping
from pathlib import Path

from vigil.analyzers.base import Analyzer
from vigil.analyzers.scanning import ProjectLayout, directory_size, read_text
from vigil.core.models import Finding, FindingImpact
from vigil.core.results import (
    BuildValidation,
    DeploymentPerformance,
    EnvironmentValidation,
    ProductionReadinessResult,
    SecurityValidation,
)
from vigil.runners.commands import CommandRunner

logger = logging.getLogger(__name__)

BUILD_COMMAND = "npm run build"
TSC_COMMAND = "npx tsc --noEmit --pretty false"
ESLINT_COMMAND = "npx eslint . --ext .ts,.tsx --format json"
AUDIT_COMMAND = "npm audit --audit-level high --json"

REQUIRED_ENV_VARS: tuple[str, ...] = ("DATABASE_URL", "NEXTAUTH_SECRET", "NEXTAUTH_URL")
TS_ERROR_RE = re.compile(r"error TS\d+:")

READY_SCORE = 80
MAX_ESLINT_WARNINGS = 10


def count_eslint_warnings(output: str) -> int:
    """Sum ``warningCount`` over eslint's JSON report; unparseable output counts as one."""
    try:
        report = json.loads(output)
    except json.JSONDecodeError:
        return 1
    if not isinstance(report, list):
        return 1
    return sum(int(entry.get("warningCount", 0)) for entry in report if isinstance(entry, dict))


def count_high_vulnerabilities(output: str) -> int:
    """Read the high severity count from ``npm audit --json``; unparseable output counts as one."""
    try:
        report = json.loads(output)
    except json.JSONDecodeError:
        return 1
    vulnerabilities = report.get("metadata", {}).get("vulnerabilities", {}) if isinstance(report, dict) else {}
    return int(vulnerabilities.get("high", 0))


def calculate_readiness_score(
    build: BuildValidation,
    environment: EnvironmentValidation,
    security: SecurityValidation,
    performance: DeploymentPerformance,
) -> int:
    """Weighted score: build 40, environment 25, security 20, performance 15."""
    score = 0.0

    if build.build_successful:
        score += 25
    if build.type_script_errors == 0:
        score += 10
    if build.eslint_warnings < MAX_ESLINT_WARNINGS:
        score += 5

    if environment.configuration_valid:
        score += 15
    if environment.database_connection:
        score += 10

    if security.vulnerabilities == 0:
        score += 10
    if security.authentication_secure:
        score += 5
    if security.security_headers:
        score += 5

    score += performance.enabled_count / 4 * 15
    return int(score + 0.5)


class ProductionReadinessAnalyzer(Analyzer):
    """Validates build, environment, security and deployment configuration."""

    def __init__(
        self,
        project_root: Path,
        runner: CommandRunner | None = None,
        environ: Mapping[str, str] | None = None,
        build_if_missing: bool = True,
    ) -> None:
        self.layout = ProjectLayout(project_root)
        self.runner = runner or CommandRunner(project_root)
        self.environ = environ if environ is not None else os.environ
        self.build_if_missing = build_if_missing

    async def run(self) -> ProductionReadinessResult:
        build = await self.validate_build()
        environment = self.validate_environment()
        security = await self.validate_security()
        performance = self.validate_performance()

        readiness_score = calculate_readiness_score(build, environment, security, performance)
        overall = readiness_score >= READY_SCORE
        logger.info(f"Production readiness score: {readiness_score}%")

        return ProductionReadinessResult(
            build_validation=build,
            environment_validation=environment,
            security_validation=security,
            performance_validation=performance,
            overall_readiness=overall,
            readiness_score=readiness_score,
            findings=self.generate_findings(build, environment, security, performance, overall),
        )

    async def validate_build(self) -> BuildValidation:
        total_time = 0.0
        if self.layout.build.exists():
            build_ok = True
        elif self.build_if_missing:
            build = await self.runner.run(BUILD_COMMAND)
            total_time += build.duration
            build_ok = build.ok
            if not build_ok:
                logger.warning(f"Build failed with exit status {build.returncode}")
        else:
            build_ok = False

        tsc = await self.runner.run(TSC_COMMAND)
        total_time += tsc.duration
        ts_errors = 0 if tsc.ok else max(len(TS_ERROR_RE.findall(tsc.output)), 1)

        eslint = await self.runner.run(ESLINT_COMMAND)
        total_time += eslint.duration
        warnings = count_eslint_warnings(eslint.stdout) if eslint.stdout.strip() else int(not eslint.ok)

        return BuildValidation(
            build_successful=build_ok,
            type_script_errors=ts_errors,
            eslint_warnings=warnings,
            build_time=total_time,
            build_size=directory_size(self.layout.build) if build_ok else 0,
        )

    def validate_environment(self) -> EnvironmentValidation:
        missing = tuple(name for name in REQUIRED_ENV_VARS if not self.environ.get(name))
        return EnvironmentValidation(
            required_env_vars=REQUIRED_ENV_VARS,
            missing_env_vars=missing,
            configuration_valid=not missing,
            # Only presence of the URL is checked; no connection is attempted.
            database_connection=bool(self.environ.get("DATABASE_URL")),
        )

    async def validate_security(self) -> SecurityValidation:
        audit = await self.runner.run(AUDIT_COMMAND)
        vulnerabilities = 0 if audit.ok else count_high_vulnerabilities(audit.stdout)

        next_config = self._read_next_config()
        headers = "headers" in next_config or "security" in next_config

        auth_secure = True
        auth_config = self.layout.lib / "auth.ts"
        if auth_config.exists():
            content = read_text(auth_config)
            auth_secure = "secret" in content and "session" in content

        return SecurityValidation(
            vulnerabilities=vulnerabilities,
            security_headers=headers,
            authentication_secure=auth_secure,
        )

    def validate_performance(self) -> DeploymentPerformance:
        config = self._read_next_config()
        return DeploymentPerformance(
            bundle_optimized="webpack" in config or "optimization" in config,
            cache_headers="headers" in config or "cache" in config,
            compression_enabled="compress" in config or "gzip" in config,
            image_optimization="images" in config or "optimization" in config,
        )

    def _read_next_config(self) -> str:
        for name in ("next.config.js", "next.config.mjs", "next.config.ts"):
            path = self.layout.root / name
            if path.exists():
                return read_text(path)
        return ""

    def generate_findings(
        self,
        build: BuildValidation,
        environment: EnvironmentValidation,
        security: SecurityValidation,
        performance: DeploymentPerformance,
        overall: bool,
    ) -> tuple[Finding, ...]:
        build_ok = build.build_successful and build.type_script_errors == 0
        enabled = performance.enabled_count

        return (
            Finding(
                category="Build Validation",
                description=(
                    f"Build {'successful' if build.build_successful else 'failed'} "
                    f"with {build.type_script_errors} TypeScript errors"
                ),
                impact=FindingImpact.POSITIVE if build_ok else FindingImpact.NEGATIVE,
                evidence=build.model_dump(mode="json"),
                recommendation=(
                    "Build process is working correctly"
                    if build.build_successful
                    else "Fix build errors before deployment"
                ),
            ),
            Finding(
                category="Environment Configuration",
                description=f"{len(environment.missing_env_vars)} missing environment variables",
                impact=FindingImpact.POSITIVE if environment.configuration_valid else FindingImpact.NEGATIVE,
                evidence=environment.model_dump(mode="json"),
                recommendation=(
                    "Environment configuration is complete"
                    if environment.configuration_valid
                    else "Set missing environment variables"
                ),
            ),
            Finding(
                category="Security Configuration",
                description=f"{security.vulnerabilities} high-severity vulnerabilities found",
                impact=FindingImpact.POSITIVE if security.vulnerabilities == 0 else FindingImpact.NEGATIVE,
                evidence=security.model_dump(mode="json"),
                recommendation=(
                    "Security configuration is good"
                    if security.vulnerabilities == 0
                    else "Address security vulnerabilities"
                ),
            ),
            Finding(
                category="Performance Configuration",
                description=f"{enabled}/4 performance optimizations enabled",
                impact=FindingImpact.POSITIVE if enabled >= 3 else FindingImpact.NEGATIVE,
                evidence=performance.model_dump(mode="json"),
                recommendation=(
                    "Performance configuration is good"
                    if enabled >= 3
                    else "Enable additional performance optimizations"
                ),
            ),
            Finding(
                category="Production Readiness",
                description=f"System is {'ready' if overall else 'not ready'} for production deployment",
                impact=FindingImpact.POSITIVE if overall else FindingImpact.NEGATIVE,
                evidence={"overallReadiness": overall},
                recommendation=(
                    "System is ready for production deployment"
                    if overall
                    else "Address identified issues before deployment"
                ),
            ),
        )
