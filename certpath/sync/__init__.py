"""
Snapshot exchange: reconciliation, file export/import and remote sync.
"""

from .reconciler import ReconcileReport, Reconciler, validate_snapshot
from .remote import RemoteSnapshotClient, RemoteSync, SyncState, SyncStatus
from .transfer import export_all, export_topic, load_json_text, parse_topic_import

__all__ = [
    "ReconcileReport",
    "Reconciler",
    "RemoteSnapshotClient",
    "RemoteSync",
    "SyncState",
    "SyncStatus",
    "export_all",
    "export_topic",
    "load_json_text",
    "parse_topic_import",
    "validate_snapshot",
]
