"""
Maps raw NSP advisories to canonical vulnerability records.

Pure mapping, no I/O. Problems with a single field (an unparseable date or
CVSS vector) leave that field unset and are reported through
``mapping_warnings``; the advisory itself is never dropped.
"""
import logging
from datetime import datetime, timezone
from typing import Callable, Optional

from scoring.cvss import CvssScorer, SchemaVersion

from .nsp_parser import Advisory
from .records import NSP_SOURCE, VulnerabilityRecord

logger = logging.getLogger(__name__)


class AdvisoryNormalizer:
    """
    Builds VulnerabilityRecord objects from NSP advisories.

    Args:
        scorer: CVSS scorer, defaults to CvssScorer()
        on_mapping_warning: Optional callback(field_name, advisory_id) invoked
            when a field has to be left unset because it could not be parsed
    """

    def __init__(
        self,
        scorer: Optional[CvssScorer] = None,
        on_mapping_warning: Optional[Callable[[str, str], None]] = None,
    ):
        self.scorer = scorer or CvssScorer()
        self.on_mapping_warning = on_mapping_warning

    def normalize(self, advisory: Advisory) -> VulnerabilityRecord:
        vuln_id = str(advisory.id)
        record = VulnerabilityRecord(
            source=NSP_SOURCE,
            vuln_id=vuln_id,
            title=advisory.title,
            sub_title=advisory.module_name,
            description=advisory.overview,
            created=self._parse_timestamp(advisory.created_at, "created", vuln_id),
            published=self._parse_timestamp(advisory.publish_date, "published", vuln_id),
            updated=self._parse_timestamp(advisory.updated_at, "updated", vuln_id),
            credits=advisory.author,
            recommendation=advisory.recommendation,
            references=advisory.references,
            vulnerable_versions=advisory.vulnerable_versions,
            patched_versions=advisory.patched_versions,
        )

        cvss = self.scorer.score(advisory.cvss_vector)
        if cvss is None:
            if advisory.cvss_vector and advisory.cvss_vector.strip():
                self._warn("cvss_vector", vuln_id)
        elif cvss.schema_version is SchemaVersion.V2:
            record.cvss_v2_vector = cvss.vector
            record.cvss_v2_base_score = cvss.base_score
            record.cvss_v2_impact_subscore = cvss.impact_subscore
            record.cvss_v2_exploitability_subscore = cvss.exploitability_subscore
        elif cvss.schema_version is SchemaVersion.V3:
            record.cvss_v3_vector = cvss.vector
            record.cvss_v3_base_score = cvss.base_score
            record.cvss_v3_impact_subscore = cvss.impact_subscore
            record.cvss_v3_exploitability_subscore = cvss.exploitability_subscore

        return record

    def _parse_timestamp(self, value: Optional[str], field_name: str, vuln_id: str) -> Optional[datetime]:
        if value is None or not str(value).strip():
            return None

        text = str(value).strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            self._warn(field_name, vuln_id, value)
            return None

        # Offset-less timestamps are ambiguous
        if parsed.tzinfo is None:
            self._warn(field_name, vuln_id, value)
            return None
        return parsed.astimezone(timezone.utc)

    def _warn(self, field_name: str, vuln_id: str, value: Optional[str] = None) -> None:
        if value is not None:
            logger.warning("NSP advisory %s: unable to parse %s %r", vuln_id, field_name, value)
        if self.on_mapping_warning:
            self.on_mapping_warning(field_name, vuln_id)
