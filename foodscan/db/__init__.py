"""SQLite storage for the local scan history fallback."""

from .scan_history import LocalScanHistoryDB
from .schema import ensure_schema

__all__ = [
    "LocalScanHistoryDB",
    "ensure_schema",
]
