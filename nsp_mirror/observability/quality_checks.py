"""
Data quality checks for mirrored vulnerabilities.

This module implements QualityChecker, which runs SQL-based validation checks
against the vulnerabilities table after each mirror run.

Checks implemented:
- CVSS exclusivity: A record carries v2 or v3 scores, never both
- No blank IDs: Every record has a non-blank vuln_id
- Score range: Every base score lies within [0, 10]
- Vector presence: A score is only stored together with its vector

Design decisions:
- Each check returns a QualityCheckResult with pass/fail and details
- Checks are SQL-based for performance (run against database, not Python)
"""
from typing import List, Dict, Any
from dataclasses import dataclass


@dataclass
class QualityCheckResult:
    """
    Result of a single quality check.

    Attributes:
        check_name: Unique identifier for the check
        passed: True if check passed, False otherwise
        message: Human-readable summary of the result
        details: Optional dict with additional context (e.g., counts)
    """
    check_name: str
    passed: bool
    message: str
    details: Dict[str, Any] = None


class QualityChecker:
    """
    Runs data quality checks against the vulnerabilities table.

    Each check method executes a SQL query against the database and returns
    a QualityCheckResult indicating pass/fail status.
    """

    def __init__(self, database):
        """
        Initialize quality checker.

        Args:
            database: Database instance with active connection
        """
        self.db = database

    def run_all_checks(self) -> List[QualityCheckResult]:
        """
        Run all quality checks.

        Returns:
            List of QualityCheckResult objects, one per check
        """
        return [
            self.check_cvss_exclusive(),
            self.check_no_blank_ids(),
            self.check_score_range(),
            self.check_vector_present(),
        ]

    def check_cvss_exclusive(self) -> QualityCheckResult:
        """
        Ensure no record carries both v2 and v3 CVSS data.
        """
        conn = self.db.connect()
        result = conn.execute("""
            SELECT count(*) FROM vulnerabilities
            WHERE cvss_v2_vector IS NOT NULL
              AND cvss_v3_vector IS NOT NULL
        """).fetchone()[0]

        return QualityCheckResult(
            check_name="cvss_exclusive",
            passed=result == 0,
            message=f"{result} records with both CVSS v2 and v3" if result > 0 else "CVSS versions are exclusive",
            details={"conflict_count": result}
        )

    def check_no_blank_ids(self) -> QualityCheckResult:
        conn = self.db.connect()
        result = conn.execute("""
            SELECT count(*) FROM vulnerabilities
            WHERE vuln_id IS NULL OR trim(vuln_id) = ''
        """).fetchone()[0]

        return QualityCheckResult(
            check_name="no_blank_ids",
            passed=result == 0,
            message=f"{result} records with blank vuln_id" if result > 0 else "All records have an ID",
            details={"blank_count": result}
        )

    def check_score_range(self) -> QualityCheckResult:
        """
        Check that base scores are within the CVSS range of 0.0 to 10.0.
        """
        conn = self.db.connect()
        result = conn.execute("""
            SELECT count(*) FROM vulnerabilities
            WHERE cvss_v2_base_score NOT BETWEEN 0 AND 10
               OR cvss_v3_base_score NOT BETWEEN 0 AND 10
        """).fetchone()[0]

        return QualityCheckResult(
            check_name="score_range",
            passed=result == 0,
            message=f"{result} scores out of range" if result > 0 else "All scores in range",
            details={"invalid_count": result}
        )

    def check_vector_present(self) -> QualityCheckResult:
        conn = self.db.connect()
        result = conn.execute("""
            SELECT count(*) FROM vulnerabilities
            WHERE (cvss_v2_base_score IS NOT NULL AND cvss_v2_vector IS NULL)
               OR (cvss_v3_base_score IS NOT NULL AND cvss_v3_vector IS NULL)
        """).fetchone()[0]

        return QualityCheckResult(
            check_name="vector_present",
            passed=result == 0,
            message=f"{result} scores without vector" if result > 0 else "All scores have a vector",
            details={"missing_count": result}
        )
