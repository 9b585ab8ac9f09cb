from cloudsync.models.config import ConnectionDescriptor, EngineKind, SyncOptions
from cloudsync.models.results import (
    ComparisonStatus,
    ConnectionCheck,
    SyncStatus,
    TableComparisonResult,
    TableSyncResult,
)

__all__ = [
    "ConnectionDescriptor",
    "EngineKind",
    "SyncOptions",
    "ComparisonStatus",
    "ConnectionCheck",
    "SyncStatus",
    "TableComparisonResult",
    "TableSyncResult",
]
