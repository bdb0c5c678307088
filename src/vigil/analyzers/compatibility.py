"""API contract and backward compatibility analyzer."""

from __future__ import annotations

import logging
import re
from pathlib import Path

from vigil.analyzers.base import Analyzer
from vigil.analyzers.scanning import (
    ProjectLayout,
    contains_any,
    extract_imports,
    iter_route_files,
    iter_ts_files,
    read_text,
)
from vigil.core.models import Finding, FindingImpact
from vigil.core.results import (
    ApiContractValidation,
    BackwardCompatibility,
    CheckGroup,
    CompatibilityResult,
    ContractValidation,
    ImportCompatibility,
)

logger = logging.getLogger(__name__)

DEPRECATED_IMPORTS: tuple[str, ...] = (
    "@/lib/api-error-handler",
    "@/lib/utils",
    "@/lib/shared-utils",
)
HTTP_METHODS: tuple[str, ...] = ("GET", "POST", "PUT", "PATCH", "DELETE")
ARABIC_RE = re.compile(r"[\u0600-\u06FF]")


def _impact(ok: bool) -> FindingImpact:
    return FindingImpact.POSITIVE if ok else FindingImpact.NEGATIVE


def extract_method(content: str) -> str:
    """First HTTP handler exported by a route module."""
    for method in HTTP_METHODS:
        if f"export const {method}" in content or f"export async function {method}" in content:
            return method
    return "UNKNOWN"


class CompatibilityAnalyzer(Analyzer):
    """Checks that the refactor kept API contracts, imports and integrations intact."""

    def __init__(self, project_root: Path) -> None:
        self.layout = ProjectLayout(project_root)

    async def run(self) -> CompatibilityResult:
        api_sources = {path: read_text(path) for path in iter_ts_files(self.layout.api)}

        contracts = self.validate_api_contracts()
        backward = self.check_backward_compatibility()
        errors = self.validate_error_responses(api_sources)
        auth = self.validate_authentication(api_sources)
        database = self.validate_database(api_sources)

        logger.info(
            f"Compatibility analysis: {contracts.validated_endpoints}/{contracts.total_endpoints} endpoints, "
            f"{len(backward.import_compatibility.broken_imports)} broken imports"
        )
        return CompatibilityResult(
            api_contract_validation=contracts,
            backward_compatibility=backward,
            error_response_validation=errors,
            authentication_integration=auth,
            database_integration=database,
            findings=self.generate_findings(contracts, backward, errors, auth, database),
        )

    # -------------------------------------------------------------------------
    # API contracts
    # -------------------------------------------------------------------------

    def validate_api_contracts(self) -> ApiContractValidation:
        validations = tuple(self.validate_route(path) for path in iter_route_files(self.layout.api))
        validated = sum(1 for v in validations if v.valid)
        return ApiContractValidation(
            total_endpoints=len(validations),
            validated_endpoints=validated,
            contract_issues=validations,
            overall_compatibility=validated == len(validations),
        )

    def validate_route(self, route: Path) -> ContractValidation:
        content = read_text(route)
        response_ok = contains_any(content, "createSuccessResponse", "NextResponse.json")
        status_ok = contains_any(content, "status:", "{ status")
        errors_ok = contains_any(content, "createErrorResponse", "catch")

        issues: list[str] = []
        if not response_ok:
            issues.append("Response format is not using unified ApiResponse interface")
        if not status_ok:
            issues.append("Status codes are not consistent with API standards")
        if not errors_ok:
            issues.append("Error handling is not using unified error response system")

        endpoint = "/" + route.parent.relative_to(self.layout.api).as_posix()
        return ContractValidation(
            endpoint=endpoint.rstrip("/.") or "/",
            method=extract_method(content),
            response_format_match=response_ok,
            status_code_match=status_ok,
            error_handling_match=errors_ok,
            issues=tuple(issues),
        )

    # -------------------------------------------------------------------------
    # Backward compatibility
    # -------------------------------------------------------------------------

    def import_exists(self, specifier: str) -> bool:
        """Resolve ``@/`` aliases against ``src/``; other specifiers are assumed to exist."""
        if not specifier.startswith("@/"):
            return True
        target = self.layout.src / specifier[2:]
        candidates = (
            target.with_name(target.name + ".ts"),
            target.with_name(target.name + ".tsx"),
            target.with_name(target.name + ".js"),
            target / "index.ts",
            target / "index.tsx",
        )
        return any(candidate.exists() for candidate in candidates)

    def check_backward_compatibility(self) -> BackwardCompatibility:
        broken: list[str] = []
        deprecated: list[str] = []
        total = 0

        for path in iter_ts_files(self.layout.src):
            content = read_text(path)
            for ref in extract_imports(content):
                total += 1
                location = f"{self.layout.relative(path)}:{ref.line} - {ref.path}"
                if not self.import_exists(ref.path):
                    broken.append(location)
                if contains_any(ref.path, *DEPRECATED_IMPORTS):
                    deprecated.append(location)

        imports = ImportCompatibility(
            total_imports=total,
            working_imports=total - len(broken),
            broken_imports=tuple(broken),
            deprecated_imports=tuple(deprecated),
        )
        return BackwardCompatibility(import_compatibility=imports, overall_compatibility=not broken)

    # -------------------------------------------------------------------------
    # Error, authentication and database sub-checks
    # -------------------------------------------------------------------------

    def validate_error_responses(self, sources: dict[Path, str]) -> CheckGroup:
        checks = {
            "consistent_error_format": True,
            "localized_messages": True,
            "error_code_consistency": True,
            "error_handling_chain": True,
        }
        issues: list[str] = []

        for path, content in sources.items():
            name = self.layout.relative(path)
            if not contains_any(content, "createErrorResponse", "ApiResponse", "@/lib/api-response"):
                checks["consistent_error_format"] = False
                issues.append(f"{name}: Not using unified error response")
            if not ARABIC_RE.search(content):
                checks["localized_messages"] = False
                issues.append(f"{name}: Missing Arabic error messages")
            if not contains_any(content, "ApiErrors", "error.code"):
                checks["error_code_consistency"] = False
                issues.append(f"{name}: Inconsistent error codes")
            if not ("withErrorHandling" in content or ("try" in content and "catch" in content)):
                checks["error_handling_chain"] = False
                issues.append(f"{name}: Missing error handling chain")

        return CheckGroup(checks=checks, issues=tuple(issues))

    def validate_authentication(self, sources: dict[Path, str]) -> CheckGroup:
        contents = list(sources.values())
        checks = {
            "middleware_integration": (self.layout.root / "middleware.ts").exists(),
            "unified_auth_usage": any(
                contains_any(c, "authenticateApiUser", "authenticateAdmin", "@/lib/api/auth") for c in contents
            ),
            "role_based_access_control": any(contains_any(c, "UserRole", "allowedRoles", "role") for c in contents),
            "session_management": any(contains_any(c, "session", "auth()") for c in contents),
        }

        issues: list[str] = []
        if not checks["middleware_integration"]:
            issues.append("Next.js middleware not found")
        if not checks["unified_auth_usage"]:
            issues.append("No unified authentication usage found")
        if not checks["role_based_access_control"]:
            issues.append("No role-based access control found")
        return CheckGroup(checks=checks, issues=tuple(issues))

    def validate_database(self, sources: dict[Path, str]) -> CheckGroup:
        contents = list(sources.values())
        checks = {
            "query_optimization": any("prisma." in c and contains_any(c, "include", "select") for c in contents),
            "transaction_handling": any(contains_any(c, "$transaction", "executeTransaction") for c in contents),
            "crud_operations": any(contains_any(c, "findMany", "create", "update", "delete") for c in contents),
        }

        issues: list[str] = []
        if not checks["query_optimization"]:
            issues.append("No optimized Prisma queries found")
        if not checks["transaction_handling"]:
            issues.append("No transaction handling found")
        return CheckGroup(checks=checks, issues=tuple(issues))

    # -------------------------------------------------------------------------
    # Findings
    # -------------------------------------------------------------------------

    def generate_findings(
        self,
        contracts: ApiContractValidation,
        backward: BackwardCompatibility,
        errors: CheckGroup,
        auth: CheckGroup,
        database: CheckGroup,
    ) -> tuple[Finding, ...]:
        imports = backward.import_compatibility
        unified_auth = auth.checks.get("unified_auth_usage", False)
        return (
            Finding(
                category="API Contract Validation",
                description=(
                    f"{contracts.validated_endpoints}/{contracts.total_endpoints} endpoints "
                    "maintain contract compatibility"
                ),
                impact=_impact(contracts.overall_compatibility),
                evidence={
                    "totalEndpoints": contracts.total_endpoints,
                    "validatedEndpoints": contracts.validated_endpoints,
                    "invalidEndpoints": [c.endpoint for c in contracts.contract_issues if not c.valid],
                },
                recommendation=(
                    "All API contracts are maintained"
                    if contracts.overall_compatibility
                    else "Review and fix API contract inconsistencies"
                ),
            ),
            Finding(
                category="Backward Compatibility",
                description=f"Import compatibility: {imports.working_imports}/{imports.total_imports} working",
                impact=_impact(backward.overall_compatibility),
                evidence=imports.model_dump(mode="json"),
                recommendation=(
                    "Backward compatibility is maintained"
                    if backward.overall_compatibility
                    else "Fix broken imports and function signatures"
                ),
            ),
            Finding(
                category="Error Response Consistency",
                description=f"Error handling consistency: {len(errors.issues)} issues found",
                impact=_impact(not errors.issues),
                evidence=errors.model_dump(mode="json"),
                recommendation=(
                    "Error responses are consistent"
                    if not errors.issues
                    else "Standardize error response formats and messages"
                ),
            ),
            Finding(
                category="Authentication Integration",
                description=f"Authentication system integration: {'unified' if unified_auth else 'inconsistent'}",
                impact=_impact(unified_auth),
                evidence=auth.model_dump(mode="json"),
                recommendation=(
                    "Authentication integration is working correctly"
                    if unified_auth
                    else "Implement unified authentication across all endpoints"
                ),
            ),
            Finding(
                category="Database Integration",
                description=f"Database operations: {len(database.issues)} issues found",
                impact=_impact(not database.issues),
                evidence=database.model_dump(mode="json"),
                recommendation=(
                    "Database integration is optimized"
                    if not database.issues
                    else "Optimize database queries and transaction handling"
                ),
            ),
        )
