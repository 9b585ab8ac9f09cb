from cloudsync.connectors import Connector, DatabaseHandle
from cloudsync.exceptions import DatabaseConnectionError, SchemaError, SyncError, TransferError
from cloudsync.models import (
    ComparisonStatus,
    ConnectionCheck,
    ConnectionDescriptor,
    EngineKind,
    SyncOptions,
    SyncStatus,
    TableComparisonResult,
    TableSyncResult,
)
from cloudsync.services.sync import SyncService

__version__ = "0.1"
