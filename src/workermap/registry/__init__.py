"""
WorkerMap Registry Module.

Record validation, duplicate detection and durable snapshot storage.
"""

__all__ = [
    "DedupIndex",
    "LoadStatus",
    "RegistrySnapshot",
    "SnapshotStore",
    "canonical_key",
    "identity_key",
    "normalize_level",
    "normalize_text",
    "sanitize",
]

from workermap.registry.dedup import DedupIndex
from workermap.registry.storage import LoadStatus, RegistrySnapshot, SnapshotStore
from workermap.registry.validator import (
    canonical_key,
    identity_key,
    normalize_level,
    normalize_text,
    sanitize,
)
