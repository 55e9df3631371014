"""Infrastructure implementations of the storage ports."""

from .json_snapshot_store import JsonSnapshotStore, context_key

__all__ = [
    "JsonSnapshotStore",
    "context_key",
]
