"""
Metrics collection for mirror runs.

This module provides RunMetrics, a dataclass that tracks all observability
metrics for a single mirror execution including:
- Pages fetched, advisories processed and records synchronized
- Mapping warnings per field (unparseable dates or CVSS vectors)
- Errors and the final run state

Design decisions:
- Single metrics object per run for simplicity
- Defaultdict used for automatic initialization of counters
- Serializable to_dict() for storage in the mirror_runs table
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Any, Optional
from collections import defaultdict


@dataclass
class RunMetrics:
    """
    Metrics for a single mirror run.

    Tracks page and record counts, mapping warnings and errors.
    Designed to be serialized to JSON for storage in the mirror_runs table.
    """
    run_id: str
    started_at: datetime
    completed_at: datetime = None

    # Final state of the run (completed | failed)
    status: Optional[str] = None
    failure_reason: Optional[str] = None

    # Core counts
    pages_fetched: int = 0
    advisories_processed: int = 0
    records_synced: int = 0
    errors: int = 0

    # Fields left unset during mapping
    # Key: field name (e.g., "created", "cvss_vector"), Value: count
    mapping_warnings: Dict[str, int] = field(default_factory=lambda: defaultdict(int))

    # Errors encountered
    quality_issues: List[Dict] = field(default_factory=list)

    @property
    def mapping_warning_total(self) -> int:
        return sum(self.mapping_warnings.values())

    def record_page(self, advisories: int, synced: int):
        """
        Record one synchronized page.

        Args:
            advisories: Advisories in the page
            synced: Records written for the page
        """
        self.pages_fetched += 1
        self.advisories_processed += advisories
        self.records_synced += synced

    def record_mapping_warning(self, field_name: str, vuln_id: str = None):
        """
        Record that a field could not be mapped and was left unset.

        Args:
            field_name: Record field that was skipped
            vuln_id: Advisory the field belongs to
        """
        self.mapping_warnings[field_name] += 1

    def record_error(self, error: str, context: Dict = None):
        """
        Record an error encountered during the run.

        Args:
            error: Error message
            context: Optional dict with additional context (e.g., offset)
        """
        self.errors += 1
        self.quality_issues.append({
            "type": "error",
            "message": error,
            "context": context or {}
        })

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert metrics to dictionary for JSON serialization.

        Returns:
            Dictionary representation suitable for JSON storage
        """
        return {
            "run_id": self.run_id,
            "started_at": self.started_at.isoformat(),
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "status": self.status,
            "failure_reason": self.failure_reason,
            "pages_fetched": self.pages_fetched,
            "advisories_processed": self.advisories_processed,
            "records_synced": self.records_synced,
            "errors": self.errors,
            "mapping_warnings": dict(self.mapping_warnings),
            "quality_issues": self.quality_issues
        }
