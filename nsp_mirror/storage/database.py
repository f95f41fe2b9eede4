"""
Database connection and schema management for the NSP mirror.

This module provides:
- DuckDB connection lifecycle management
- The vulnerabilities table, keyed by (source, vuln_id)
- Mirror run metadata tracking
- Scoped sessions with explicit acquire/release around writes

Design decisions:
- Timestamps are stored as UTC TIMESTAMP columns; conversion to and from
  timezone-aware datetimes happens at this boundary
- CVSS scores stored as DECIMAL(3,1) so they round-trip as Decimal
- One transaction per session; a failing session rolls back only its own writes
"""
import json
import duckdb
from contextlib import contextmanager
from datetime import datetime
from typing import Iterator, Optional


class Database:
    """
    Manages DuckDB connection and schema initialization.

    This class is responsible for:
    - Creating and maintaining a single database connection
    - Initializing the vulnerabilities and mirror_runs tables
    - Handing out transactional sessions to writers
    - Providing run ID generation for mirror execution tracking
    """

    def __init__(self, db_path: str = "nsp_mirror.duckdb"):
        """
        Initialize database manager.

        Args:
            db_path: Path to DuckDB database file (created if doesn't exist)
        """
        self.db_path = db_path
        self.conn: Optional[duckdb.DuckDBPyConnection] = None

    def connect(self) -> duckdb.DuckDBPyConnection:
        """
        Get or create database connection.

        Returns:
            Active DuckDB connection
        """
        if self.conn is None:
            self.conn = duckdb.connect(self.db_path)
        return self.conn

    def close(self):
        """Close database connection."""
        if self.conn:
            self.conn.close()
            self.conn = None

    def initialize_schema(self):
        """
        Create all required tables if they don't exist.

        Tables created:
        - vulnerabilities: Normalized vulnerability records
        - mirror_runs: Mirror execution metadata
        """
        conn = self.connect()

        conn.execute("""
            CREATE TABLE IF NOT EXISTS vulnerabilities (
                source VARCHAR NOT NULL,
                vuln_id VARCHAR NOT NULL,
                title VARCHAR,
                sub_title VARCHAR,
                description VARCHAR,
                created TIMESTAMP,
                published TIMESTAMP,
                updated TIMESTAMP,
                cvss_v2_vector VARCHAR,
                cvss_v2_base_score DECIMAL(3, 1),
                cvss_v2_impact_subscore DECIMAL(3, 1),
                cvss_v2_exploitability_subscore DECIMAL(3, 1),
                cvss_v3_vector VARCHAR,
                cvss_v3_base_score DECIMAL(3, 1),
                cvss_v3_impact_subscore DECIMAL(3, 1),
                cvss_v3_exploitability_subscore DECIMAL(3, 1),
                credits VARCHAR,
                recommendation VARCHAR,
                "references" VARCHAR,
                vulnerable_versions VARCHAR,
                patched_versions VARCHAR,
                PRIMARY KEY (source, vuln_id)
            )
        """)

        conn.execute("""
            CREATE TABLE IF NOT EXISTS mirror_runs (
                run_id VARCHAR PRIMARY KEY,
                started_at TIMESTAMP,
                completed_at TIMESTAMP,
                status VARCHAR,
                pages_fetched INTEGER,
                advisories_processed INTEGER,
                mapping_warnings INTEGER,
                failure_reason VARCHAR,
                metadata JSON
            )
        """)

    @contextmanager
    def session(self) -> Iterator[duckdb.DuckDBPyConnection]:
        """
        Acquire the connection inside a transaction.

        Commits when the block exits normally, rolls back when it raises.
        """
        conn = self.connect()
        conn.execute("BEGIN TRANSACTION")
        try:
            yield conn
        except BaseException:
            conn.execute("ROLLBACK")
            raise
        else:
            conn.execute("COMMIT")

    def record_run(self, metrics):
        """
        Insert or replace the metadata row for a mirror run.

        Args:
            metrics: RunMetrics of the run
        """
        conn = self.connect()
        conn.execute("""
            INSERT OR REPLACE INTO mirror_runs
            (run_id, started_at, completed_at, status, pages_fetched,
             advisories_processed, mapping_warnings, failure_reason, metadata)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
        """, [
            metrics.run_id,
            metrics.started_at,
            metrics.completed_at,
            metrics.status,
            metrics.pages_fetched,
            metrics.advisories_processed,
            metrics.mapping_warning_total,
            metrics.failure_reason,
            json.dumps(metrics.to_dict())
        ])

    def get_current_run_id(self) -> str:
        """
        Generate a unique run ID for this mirror execution.

        Returns:
            Run ID in format: run_YYYYMMDD_HHMMSS
        """
        return f"run_{datetime.utcnow().strftime('%Y%m%d_%H%M%S')}"

    def __enter__(self):
        """Context manager entry."""
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()
