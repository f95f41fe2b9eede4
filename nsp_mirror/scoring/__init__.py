"""
CVSS scoring for v2 and v3.x vectors.
"""
from .cvss import CvssParseError, CvssResult, CvssScorer, SchemaVersion

__all__ = [
    "CvssParseError",
    "CvssResult",
    "CvssScorer",
    "SchemaVersion",
]
