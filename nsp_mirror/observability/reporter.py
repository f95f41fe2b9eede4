"""
Generate human-readable mirror run reports in Markdown format.

This module provides RunReporter, which transforms RunMetrics and quality check
results into formatted Markdown reports for human consumption.

Report sections:
- Header with run metadata (ID, timestamp, duration, final state)
- Summary table with core metrics
- Mapping warnings per field
- Data quality check results
- Errors

Design decisions:
- Markdown output for readability and version control friendliness
- Uses tabulate library for clean table formatting (GitHub-flavored)
- Reports saved with timestamp for historical tracking
"""
from datetime import datetime
from typing import List
from pathlib import Path
from tabulate import tabulate

from .metrics import RunMetrics
from .quality_checks import QualityCheckResult


class RunReporter:
    """
    Generates Markdown reports from mirror run metrics.
    """

    def generate_report(
        self,
        metrics: RunMetrics,
        quality_results: List[QualityCheckResult]
    ) -> str:
        """
        Generate full run report in Markdown format.

        Args:
            metrics: RunMetrics object from a finished mirror run
            quality_results: List of quality check results

        Returns:
            Markdown-formatted report as string
        """
        lines = []

        lines.append("# NSP Mirror Run Report")
        lines.append(f"**Run ID:** {metrics.run_id}")
        lines.append(f"**Started:** {metrics.started_at.isoformat()}")
        if metrics.completed_at:
            duration = (metrics.completed_at - metrics.started_at).total_seconds()
            lines.append(f"**Duration:** {duration:.1f} seconds")
        lines.append(f"**Status:** {metrics.status or 'unknown'}")
        if metrics.failure_reason:
            lines.append(f"**Failure:** {metrics.failure_reason}")
        lines.append("")

        lines.append("## Summary")
        summary_data = [
            ["Pages Fetched", metrics.pages_fetched],
            ["Advisories Processed", metrics.advisories_processed],
            ["Records Synchronized", metrics.records_synced],
            ["Mapping Warnings", metrics.mapping_warning_total],
            ["Errors", metrics.errors],
        ]
        lines.append(tabulate(summary_data, headers=["Metric", "Value"], tablefmt="github"))
        lines.append("")

        if metrics.mapping_warnings:
            lines.append("## Mapping Warnings")
            warning_data = [[k, v] for k, v in sorted(metrics.mapping_warnings.items())]
            lines.append(tabulate(warning_data, headers=["Field", "Count"], tablefmt="github"))
            lines.append("")

        if quality_results:
            lines.append("## Data Quality Checks")
            quality_data = []
            for qr in quality_results:
                status = "✓" if qr.passed else "✗"
                quality_data.append([status, qr.check_name, qr.message])
            lines.append(tabulate(quality_data, headers=["Status", "Check", "Details"], tablefmt="github"))
            lines.append("")

        if metrics.quality_issues:
            lines.append("## Errors")
            for issue in metrics.quality_issues:
                lines.append(f"- {issue['message']}")
            lines.append("")

        return "\n".join(lines)

    def save_report(self, report: str, output_dir: Path) -> Path:
        """
        Save report to file with timestamp.

        Args:
            report: Markdown report content
            output_dir: Directory to save report in

        Returns:
            Path to saved report file
        """
        output_dir.mkdir(parents=True, exist_ok=True)
        timestamp = datetime.utcnow().strftime("%Y%m%d-%H%M%S")
        filepath = output_dir / f"mirror-report-{timestamp}.md"
        filepath.write_text(report)
        return filepath
