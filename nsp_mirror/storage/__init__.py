"""
Storage layer for the NSP advisory mirror.

This module provides data persistence using DuckDB.

Components:
- Database: Connection management, schema initialization and run history
- Synchronizer: Upserts vulnerability records keyed by (source, vuln_id)

Usage:
    from storage import Database, Synchronizer

    db = Database("nsp_mirror.duckdb")
    db.initialize_schema()

    synchronizer = Synchronizer(db, bus)
    synchronizer.sync(records)
    synchronizer.notify_reindex()
"""

from .database import Database
from .synchronizer import Synchronizer

__all__ = [
    "Database",
    "Synchronizer",
]
