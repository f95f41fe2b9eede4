"""
Observability layer for the NSP mirror.

This module provides metrics collection, quality checks, and reporting
for mirror runs.

Main exports:
- RunMetrics: Tracks metrics for a mirror run
- QualityChecker: Runs data quality checks over mirrored vulnerabilities
- QualityCheckResult: Result of a quality check
- RunReporter: Generates Markdown reports
"""
from .metrics import RunMetrics
from .quality_checks import QualityChecker, QualityCheckResult
from .reporter import RunReporter

__all__ = [
    "RunMetrics",
    "QualityChecker",
    "QualityCheckResult",
    "RunReporter",
]
