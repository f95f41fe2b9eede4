"""
Canonical vulnerability record produced from feed advisories.

This is the format the synchronizer writes to the store. The identity key
for upserts is (source, vuln_id). The cvss_v2_* and cvss_v3_* groups are
mutually exclusive: a record carries at most one of them.
"""
from dataclasses import asdict, dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Optional, Tuple

NSP_SOURCE = "NSP"


@dataclass
class VulnerabilityRecord:
    """Normalized vulnerability."""
    # Identity
    source: str
    vuln_id: str

    # Descriptive fields
    title: Optional[str] = None
    sub_title: Optional[str] = None
    description: Optional[str] = None

    # Timestamps (UTC, timezone-aware)
    created: Optional[datetime] = None
    published: Optional[datetime] = None
    updated: Optional[datetime] = None

    # CVSS v2
    cvss_v2_vector: Optional[str] = None
    cvss_v2_base_score: Optional[Decimal] = None
    cvss_v2_impact_subscore: Optional[Decimal] = None
    cvss_v2_exploitability_subscore: Optional[Decimal] = None

    # CVSS v3
    cvss_v3_vector: Optional[str] = None
    cvss_v3_base_score: Optional[Decimal] = None
    cvss_v3_impact_subscore: Optional[Decimal] = None
    cvss_v3_exploitability_subscore: Optional[Decimal] = None

    credits: Optional[str] = None
    recommendation: Optional[str] = None
    references: Optional[str] = None
    vulnerable_versions: Optional[str] = None
    patched_versions: Optional[str] = None

    @property
    def key(self) -> Tuple[str, str]:
        return self.source, self.vuln_id

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
