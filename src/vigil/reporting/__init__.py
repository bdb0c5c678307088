"""Audit report generation."""

from vigil.reporting.report import DetailedReport, build_report
from vigil.reporting.writer import AuditReporter, ReportError, ReportFiles, load_audit_result

__all__ = [
    "AuditReporter",
    "DetailedReport",
    "ReportError",
    "ReportFiles",
    "build_report",
    "load_audit_result",
]
