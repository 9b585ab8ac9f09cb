from typing import Any, Dict, Optional
from dataclasses import dataclass
from enum import Enum


class ComparisonStatus(str, Enum):
    MATCH = "match"
    MISMATCH = "mismatch"
    LOCAL_ONLY = "local-only"
    REMOTE_ONLY = "remote-only"
    ERROR = "error"


class SyncStatus(str, Enum):
    SUCCESS = "success"
    PARTIAL = "partial"
    FAILED = "failed"
    SKIPPED_NO_LOCAL_TABLE = "skipped-no-local-table"
    SKIPPED_NO_REMOTE_TABLE = "skipped-no-remote-table"


@dataclass
class ConnectionCheck:
    success: bool
    message: str

    def to_dict(self) -> Dict[str, Any]:
        return {"success": self.success, "message": self.message}


@dataclass
class TableComparisonResult:
    table_name: str
    status: ComparisonStatus
    local_count: Optional[int] = None
    remote_count: Optional[int] = None
    error_detail: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "table_name": self.table_name,
            "local_count": self.local_count,
            "remote_count": self.remote_count,
            "status": self.status.value,
            "error_detail": self.error_detail,
        }


@dataclass
class TableSyncResult:
    table_name: str
    status: SyncStatus
    rows_copied: int = 0
    error_detail: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.status == SyncStatus.SUCCESS

    @classmethod
    def failed(cls, table_name: str, detail: str, rows_copied: int = 0) -> "TableSyncResult":
        status = SyncStatus.PARTIAL if rows_copied else SyncStatus.FAILED
        return cls(table_name, status, rows_copied, detail)

    def to_dict(self) -> Dict[str, Any]:
        # synced_count / success / error_message 与前端接口字段保持一致
        return {
            "table_name": self.table_name,
            "synced_count": self.rows_copied,
            "success": self.success,
            "error_message": self.error_detail or "",
            "status": self.status.value,
        }
