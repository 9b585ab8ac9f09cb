from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional, Sequence
import time
from cloudsync.connectors.base import DatabaseHandle
from cloudsync.connectors.factory import Connector
from cloudsync.exceptions import DatabaseConnectionError
from cloudsync.models.config import ConnectionDescriptor, SyncOptions
from cloudsync.models.results import (
    ConnectionCheck,
    SyncStatus,
    TableComparisonResult,
    TableSyncResult,
)
from cloudsync.services.comparator import Comparator
from cloudsync.services.introspector import SchemaIntrospector
from cloudsync.services.synchronizer import Synchronizer
from loguru import logger


class SyncService:
    """
    云端同步服务：测试连接、对比记录数、执行同步

    本地库句柄由调用方注入（只读使用）；每次调用独立打开远端连接，并在返回前关闭。
    """

    def __init__(self, local: DatabaseHandle, connector: Connector = None,
                 options: SyncOptions = None, default_tables: Optional[Sequence[str]] = None):
        self.local = local
        self.options = options or SyncOptions()
        self.connector = connector or Connector(self.options)
        self.default_tables = list(default_tables) if default_tables else None
        self.introspector = SchemaIntrospector()
        self.comparator = Comparator(self.introspector)
        self.synchronizer = Synchronizer(self.introspector, self.options)

    def test_connection(self, descriptor: ConnectionDescriptor) -> ConnectionCheck:
        """测试远端数据库连接，连接失败时返回驱动的原始错误信息"""
        logger.info(f"测试连接: {descriptor.label}")
        try:
            with self.connector.session(descriptor):
                pass
        except DatabaseConnectionError as e:
            return ConnectionCheck(False, str(e))
        return ConnectionCheck(True, "connection succeeded")

    def compare_data(self, descriptor: ConnectionDescriptor,
                     tables: Optional[Sequence[str]] = None) -> List[TableComparisonResult]:
        """
        对比本地与远端各表的记录数

        Args:
            descriptor: 远端数据库连接描述
            tables: 要对比的表，为空时使用 default_tables，否则使用本地库的全部表

        Returns:
            与表顺序一致的对比结果

        Raises:
            DatabaseConnectionError: 无法连接远端数据库
        """
        table_names = self._resolve_tables(tables)
        logger.info(f"开始对比 {len(table_names)} 个表: {descriptor.label}")
        with self.connector.session(descriptor) as remote:
            return self.comparator.compare(self.local, remote, table_names)

    def sync_tables(self, descriptor: ConnectionDescriptor, tables: Sequence[str]) -> List[TableSyncResult]:
        """
        将指定的本地表复制到远端

        Raises:
            DatabaseConnectionError: 无法连接远端数据库（不产生任何表结果）
        """
        table_names = list(tables)
        logger.info(f"开始同步 {len(table_names)} 个表: {descriptor.label}")
        start_time = time.time()

        with self.connector.session(descriptor) as remote:
            workers = min(self.options.max_workers, len(table_names))
            if workers > 1:
                results = self._sync_parallel(descriptor, remote, table_names, workers)
            else:
                results = self.synchronizer.sync_tables(self.local, remote, table_names)

        total_duration = time.time() - start_time
        succeeded = sum(1 for result in results if result.success)
        if succeeded == len(results):
            logger.success(f"所有表同步完成，总耗时: {total_duration:.2f}秒")
        else:
            logger.warning(f"同步结束，成功 {succeeded}/{len(results)} 个表，总耗时: {total_duration:.2f}秒")
        return results

    def _resolve_tables(self, tables: Optional[Sequence[str]]) -> List[str]:
        if tables is not None:
            return list(tables)
        if self.default_tables is not None:
            return list(self.default_tables)
        return self.introspector.list_tables(self.local)

    def _sync_parallel(self, descriptor: ConnectionDescriptor, remote: DatabaseHandle,
                       table_names: List[str], workers: int) -> List[TableSyncResult]:
        """
        按表并行同步，每个工作线程使用独立的远端连接

        第一组表复用已打开的连接，结果按输入顺序重新排列。
        """
        chunks = [list(range(worker, len(table_names), workers)) for worker in range(workers)]
        logger.info(f"并行同步，工作线程数: {workers}")

        def run_chunk(indexes: List[int], handle: Optional[DatabaseHandle]) -> List[TableSyncResult]:
            names = [table_names[idx] for idx in indexes]
            if handle is not None:
                return self.synchronizer.sync_tables(self.local, handle, names)
            try:
                with self.connector.session(descriptor) as own_remote:
                    return self.synchronizer.sync_tables(self.local, own_remote, names)
            except DatabaseConnectionError as e:
                return [TableSyncResult(name, SyncStatus.FAILED, 0, str(e)) for name in names]

        ordered: List[Optional[TableSyncResult]] = [None] * len(table_names)
        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = [
                executor.submit(run_chunk, indexes, remote if worker == 0 else None)
                for worker, indexes in enumerate(chunks)
            ]
            for indexes, future in zip(chunks, futures):
                for idx, result in zip(indexes, future.result()):
                    ordered[idx] = result
        return ordered
