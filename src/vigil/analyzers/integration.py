"""Integration and type system analyzer."""

from __future__ import annotations

import logging
import re
from collections import defaultdict
from dataclasses import dataclass
from pathlib import Path

from vigil.analyzers.base import Analyzer
from vigil.analyzers.scanning import (
    ProjectLayout,
    contains_any,
    extract_imports,
    extract_interfaces,
    iter_ts_files,
    read_text,
)
from vigil.core.results import IntegrationIssue, IntegrationResult
from vigil.runners.commands import CommandRunner

logger = logging.getLogger(__name__)

TSC_COMMAND = "npx tsc --noEmit --pretty false"
TS_ERROR_RE = re.compile(r"error TS\d+:")

DEPRECATED_IMPORTS: tuple[str, ...] = (
    "@/lib/utils",
    "@/lib/shared-utils",
    "@/lib/analytics-utils",
    "@/lib/user-management-utils",
    "@/lib/api-error-handler",
)
UNIFIED_IMPORTS: tuple[str, ...] = (
    "@/lib/core-utils",
    "@/lib/api-response",
    "@/lib/api",
    "@/lib/types",
)


@dataclass(frozen=True)
class CompilationCheck:
    success: bool
    error_count: int
    duration: float


def is_deprecated_import(path: str) -> bool:
    return contains_any(path, *DEPRECATED_IMPORTS)


def is_unified_import(path: str) -> bool:
    return contains_any(path, *UNIFIED_IMPORTS)


def has_inconsistent_pattern(path: str) -> bool:
    """Relative imports reaching into lib/ bypass the ``@/lib`` alias."""
    return "../" in path and "lib/" in path


def uses_unified_api_utilities(content: str) -> bool:
    return contains_any(content, "@/lib/api", "createSuccessResponse", "createErrorResponse")


def uses_unified_response_system(content: str) -> bool:
    return contains_any(content, "createSuccessResponse", "createErrorResponse", "ApiResponse")


def uses_unified_authentication(content: str) -> bool:
    return contains_any(content, "authenticateApiUser", "authenticateAdmin", "@/lib/api/auth")


def uses_unified_error_handling(content: str) -> bool:
    return contains_any(content, "withErrorHandling", "createErrorResponse", "ApiErrors")


class IntegrationAnalyzer(Analyzer):
    """Checks type coherence, import hygiene and cross-layer integration of API routes."""

    def __init__(self, project_root: Path, runner: CommandRunner | None = None) -> None:
        self.layout = ProjectLayout(project_root)
        self.runner = runner or CommandRunner(project_root)

    async def run(self) -> IntegrationResult:
        issues: list[IntegrationIssue] = []

        compilation = await self.check_compilation()
        if not compilation.success:
            issues.append(
                IntegrationIssue(
                    type="INCONSISTENT_INTERFACE",
                    file="TypeScript Compilation",
                    description=f"TypeScript compilation failed with {compilation.error_count} errors",
                    severity="HIGH",
                )
            )

        api_sources = {path: read_text(path) for path in iter_ts_files(self.layout.api)}

        import_issues, total_imports, unified_imports = self.check_imports(api_sources)
        issues.extend(import_issues)

        cross_layer = self.check_cross_layer(api_sources)
        issues.extend(cross_layer)

        issues.extend(self.check_interfaces(api_sources))

        result = IntegrationResult(
            type_system_coherence=compilation.success and compilation.error_count == 0,
            cross_layer_consistency=not cross_layer,
            authentication_integration=any(uses_unified_authentication(c) for c in api_sources.values()),
            error_handling_chain=any(uses_unified_error_handling(c) for c in api_sources.values()),
            issues=tuple(issues),
            compilation_time=compilation.duration,
            total_imports=total_imports,
            unified_imports=unified_imports,
        )
        logger.info(f"Integration analysis completed with {len(issues)} issues")
        return result

    async def check_compilation(self) -> CompilationCheck:
        """Run the TypeScript compiler without emitting output."""
        if not (self.layout.root / "tsconfig.json").exists():
            logger.warning("tsconfig.json not found, treating compilation as failed")
            return CompilationCheck(success=False, error_count=1, duration=0.0)

        result = await self.runner.run(TSC_COMMAND)
        error_count = len(TS_ERROR_RE.findall(result.output))
        if not result.ok:
            # A non-zero exit without parseable diagnostics still counts as one error.
            error_count = max(error_count, 1)
        return CompilationCheck(success=result.ok, error_count=error_count, duration=result.duration)

    def check_imports(self, sources: dict[Path, str]) -> tuple[list[IntegrationIssue], int, int]:
        """Flag deprecated utility imports and relative lib imports.

        Returns:
            Tuple of (issues, total imports, unified imports)
        """
        issues: list[IntegrationIssue] = []
        total = unified = 0

        for path, content in sources.items():
            for ref in extract_imports(content):
                total += 1
                if is_deprecated_import(ref.path):
                    issues.append(
                        IntegrationIssue(
                            type="DEPRECATED_IMPORT",
                            file=self.layout.relative(path),
                            line=ref.line,
                            description=f"DEPRECATED_UTILITY: {ref.path}",
                            severity="HIGH",
                        )
                    )
                if is_unified_import(ref.path):
                    unified += 1
                if has_inconsistent_pattern(ref.path):
                    issues.append(
                        IntegrationIssue(
                            type="INCONSISTENT_INTERFACE",
                            file=self.layout.relative(path),
                            line=ref.line,
                            description=f"INCONSISTENT_PATTERN: {ref.path}",
                            severity="MEDIUM",
                        )
                    )

        logger.debug(f"Import analysis: {total} total, {unified} unified")
        return issues, total, unified

    def check_cross_layer(self, sources: dict[Path, str]) -> list[IntegrationIssue]:
        issues: list[IntegrationIssue] = []
        for path, content in sources.items():
            if not uses_unified_api_utilities(content):
                issues.append(
                    IntegrationIssue(
                        type="MISSING_INTEGRATION",
                        file=self.layout.relative(path),
                        description="API route does not use unified utilities from @/lib/api",
                        severity="MEDIUM",
                    )
                )
            if not uses_unified_response_system(content):
                issues.append(
                    IntegrationIssue(
                        type="MISSING_INTEGRATION",
                        file=self.layout.relative(path),
                        description="API route does not use unified response system",
                        severity="MEDIUM",
                    )
                )
        return issues

    def check_interfaces(self, api_sources: dict[Path, str]) -> list[IntegrationIssue]:
        """Flag interface names declared in more than one lib or API file."""
        locations: dict[str, list[str]] = defaultdict(list)
        sources = {path: read_text(path) for path in iter_ts_files(self.layout.lib)}
        sources.update(api_sources)

        for path, content in sources.items():
            for name in extract_interfaces(content):
                locations[name].append(self.layout.relative(path))

        return [
            IntegrationIssue(
                type="INCONSISTENT_INTERFACE",
                file=", ".join(files),
                description=f"Interface '{name}' is defined in multiple files",
                severity="MEDIUM",
            )
            for name, files in locations.items()
            if len(files) > 1
        ]
