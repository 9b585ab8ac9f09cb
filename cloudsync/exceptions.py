class SyncError(Exception):
    """同步子系统的异常基类"""


class DatabaseConnectionError(SyncError):
    """无法连接或认证远端数据库，整个操作终止"""


class SchemaError(SyncError):
    """系统目录查询失败（表不存在不属于此类错误）"""

    def __init__(self, table_name: str, detail: str):
        super().__init__(detail)
        self.table_name = table_name
        self.detail = detail


class TransferError(SyncError):
    """单个表的数据读取或批量写入失败"""

    def __init__(self, table_name: str, detail: str):
        super().__init__(detail)
        self.table_name = table_name
        self.detail = detail
