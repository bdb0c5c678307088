"""Writes audit reports to disk and reads them back."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path

from pydantic import ValidationError

from vigil.config import ReportingPolicy
from vigil.core.models import AuditResult
from vigil.reporting.markdown import render_executive_summary, render_report
from vigil.reporting.report import DetailedReport, build_report

logger = logging.getLogger(__name__)

RAW_RESULT_KEY = "raw_audit_result"


class ReportError(Exception):
    """A saved report could not be read back."""


@dataclass
class ReportFiles:
    """Paths written by one reporter call."""

    json: Path | None = None
    markdown: Path | None = None
    executive_summary: Path | None = None

    def written(self) -> list[Path]:
        return [p for p in (self.json, self.markdown, self.executive_summary) if p is not None]


def file_timestamp(moment: datetime) -> str:
    """ISO timestamp safe for file names, e.g. ``2025-01-02T03-04-05-678901``."""
    return moment.isoformat(timespec="microseconds").split("+")[0].replace(":", "-").replace(".", "-")


class AuditReporter:
    """Builds the detailed report for a run and writes it per the reporting policy."""

    def __init__(self, policy: ReportingPolicy | None = None) -> None:
        self.policy = policy or ReportingPolicy()

    @property
    def output_path(self) -> Path:
        return self.policy.output_path

    def generate(self, result: AuditResult, now: datetime | None = None) -> tuple[DetailedReport, ReportFiles]:
        """Build and save the report.

        Args:
            result: Completed audit result
            now: Generation time, defaults to the current UTC time

        Returns:
            Tuple of (report, files written)
        """
        generated_at = now or datetime.now(UTC)
        stamp = file_timestamp(generated_at)
        report = build_report(result)
        files = ReportFiles()

        self.output_path.mkdir(parents=True, exist_ok=True)
        fmt = self.policy.output_format

        if fmt in ("json", "both"):
            files.json = self.output_path / f"audit-report-{stamp}.json"
            payload = {
                **report.model_dump(mode="json"),
                RAW_RESULT_KEY: result.model_dump(mode="json"),
                "generated_at": generated_at.isoformat(),
            }
            files.json.write_text(json.dumps(payload, indent=2), encoding="utf-8")

        if fmt in ("markdown", "both"):
            files.markdown = self.output_path / f"audit-report-{stamp}.md"
            markdown = render_report(report, generated_at, include_metrics=self.policy.include_detailed_metrics)
            files.markdown.write_text(markdown, encoding="utf-8")

        if self.policy.generate_executive_summary:
            files.executive_summary = self.output_path / f"executive-summary-{stamp}.md"
            summary = render_executive_summary(report.executive_summary, result.thresholds, generated_at)
            files.executive_summary.write_text(summary, encoding="utf-8")

        logger.info(f"Reports saved to: {self.output_path}")
        return report, files


def load_audit_result(path: Path) -> AuditResult:
    """Read an AuditResult from a JSON report or a bare result dump.

    Raises:
        ReportError: If the file cannot be read, is not valid JSON or does not hold a result.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ReportError(f"Cannot read {path}: {e}") from e
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ReportError(f"{path} is not valid JSON: {e}") from e

    raw = data.get(RAW_RESULT_KEY, data) if isinstance(data, dict) else data
    try:
        return AuditResult.model_validate(raw)
    except ValidationError as e:
        raise ReportError(f"{path} does not contain an audit result: {e}") from e
