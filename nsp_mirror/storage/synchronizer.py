"""
Synchronizes normalized vulnerability records into the store.

Records are upserted by (source, vuln_id). Each sync() call runs in its own
store session, so a page is either fully written or not at all. The reindex
notification is separate: the caller emits it once per completed run.
"""
import logging
from datetime import timezone
from typing import Iterable, List, Optional

from events.bus import Event, EventBus, EventKind
from ingestion.records import VulnerabilityRecord

from .database import Database

logger = logging.getLogger(__name__)

COLUMNS = [
    "source",
    "vuln_id",
    "title",
    "sub_title",
    "description",
    "created",
    "published",
    "updated",
    "cvss_v2_vector",
    "cvss_v2_base_score",
    "cvss_v2_impact_subscore",
    "cvss_v2_exploitability_subscore",
    "cvss_v3_vector",
    "cvss_v3_base_score",
    "cvss_v3_impact_subscore",
    "cvss_v3_exploitability_subscore",
    "credits",
    "recommendation",
    "references",
    "vulnerable_versions",
    "patched_versions",
]
TIMESTAMP_COLUMNS = {"created", "published", "updated"}

UPSERT_SQL = """
    INSERT INTO vulnerabilities ({columns})
    VALUES ({placeholders})
    ON CONFLICT (source, vuln_id) DO UPDATE SET {updates}
""".format(
    columns=", ".join(f'"{column}"' for column in COLUMNS),
    placeholders=", ".join("?" for _ in COLUMNS),
    updates=", ".join(f'"{column}" = excluded."{column}"' for column in COLUMNS[2:]),
)


def _row(record: VulnerabilityRecord) -> List:
    values = []
    for column in COLUMNS:
        value = getattr(record, column)
        if column in TIMESTAMP_COLUMNS and value is not None:
            value = value.astimezone(timezone.utc).replace(tzinfo=None)
        values.append(value)
    return values


class Synchronizer:
    """
    Upserts vulnerability records and signals downstream reindexing.

    Args:
        database: Store to write to
        bus: Event bus that receives the reindex notification
    """

    def __init__(self, database: Database, bus: Optional[EventBus] = None):
        self.db = database
        self.bus = bus

    def sync(self, records: Iterable[VulnerabilityRecord]) -> int:
        """
        Upsert records by (source, vuln_id).

        Returns:
            Number of records written
        """
        synced = 0
        with self.db.session() as conn:
            for record in records:
                conn.execute(UPSERT_SQL, _row(record))
                synced += 1
        logger.info("Synchronized %d vulnerabilities", synced)
        return synced

    def notify_reindex(self) -> None:
        """Emit one commit/reindex notification for vulnerability records."""
        if self.bus is None:
            return
        self.bus.publish(Event(kind=EventKind.INDEX_COMMIT, subject=VulnerabilityRecord.__name__))

    def get(self, source: str, vuln_id: str) -> Optional[VulnerabilityRecord]:
        """Load the stored record for a key, or None."""
        conn = self.db.connect()
        row = conn.execute(
            "SELECT {columns} FROM vulnerabilities WHERE source = ? AND vuln_id = ?".format(
                columns=", ".join(f'"{column}"' for column in COLUMNS)
            ),
            [source, vuln_id],
        ).fetchone()
        if row is None:
            return None

        values = dict(zip(COLUMNS, row))
        for column in TIMESTAMP_COLUMNS:
            if values[column] is not None:
                values[column] = values[column].replace(tzinfo=timezone.utc)
        return VulnerabilityRecord(**values)

    def count(self, source: Optional[str] = None) -> int:
        conn = self.db.connect()
        if source is None:
            return conn.execute("SELECT count(*) FROM vulnerabilities").fetchone()[0]
        return conn.execute("SELECT count(*) FROM vulnerabilities WHERE source = ?", [source]).fetchone()[0]
