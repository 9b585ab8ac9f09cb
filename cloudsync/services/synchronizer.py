import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence
from sqlalchemy import text
from cloudsync.connectors.base import DatabaseHandle
from cloudsync.connectors.factory import driver_message
from cloudsync.exceptions import SchemaError, TransferError
from cloudsync.models.config import SyncOptions
from cloudsync.models.results import SyncStatus, TableSyncResult
from cloudsync.services.introspector import SchemaIntrospector
from loguru import logger


@dataclass
class TableProgress:
    """单个表的批次结果累加器"""
    table_name: str
    rows_copied: int = 0
    completed_batches: int = 0
    failed_batches: int = 0
    first_error: Optional[str] = None

    def record_success(self, rows: int) -> None:
        self.rows_copied += rows
        self.completed_batches += 1

    def record_failure(self, detail: str) -> None:
        self.failed_batches += 1
        if self.first_error is None:
            self.first_error = detail

    def result(self) -> TableSyncResult:
        if self.first_error is None:
            return TableSyncResult(self.table_name, SyncStatus.SUCCESS, self.rows_copied)
        status = SyncStatus.PARTIAL if self.completed_batches else SyncStatus.FAILED
        return TableSyncResult(self.table_name, status, self.rows_copied, self.first_error)


@dataclass
class TablePlan:
    local_columns: List[str]
    remote_columns: List[str]
    primary_key: List[str]


class Synchronizer:
    """将本地表的数据分批复制到远端同名表"""

    def __init__(self, introspector: SchemaIntrospector = None, options: SyncOptions = None):
        self.introspector = introspector or SchemaIntrospector()
        self.options = options or SyncOptions()

    def sync_tables(self, local: DatabaseHandle, remote: DatabaseHandle,
                    table_names: Sequence[str]) -> List[TableSyncResult]:
        """
        按输入顺序同步每个表

        每个表独立处理，一个表失败不影响后续表。若失败后远端连接已不可用，
        剩余的表全部标记为 failed，而不是从结果中省略。

        Returns:
            与 table_names 一一对应的同步结果
        """
        table_names = list(table_names)
        results = []
        for index, table_name in enumerate(table_names):
            try:
                result = self.sync_table(local, remote, table_name)
            except Exception as e:
                logger.error(f"同步表 {table_name} 失败: {str(e)}")
                result = TableSyncResult.failed(table_name, str(e))
            results.append(result)

            if result.status in (SyncStatus.FAILED, SyncStatus.PARTIAL) and not remote.ping():
                detail = f"remote connection lost while syncing {table_name}: {result.error_detail}"
                remaining = table_names[index + 1:]
                if remaining:
                    logger.error(f"远端连接已断开，剩余 {len(remaining)} 个表无法同步")
                results.extend(TableSyncResult(name, SyncStatus.FAILED, 0, detail) for name in remaining)
                break
        return results

    def sync_table(self, local: DatabaseHandle, remote: DatabaseHandle, table_name: str) -> TableSyncResult:
        """同步单个表"""
        table_start_time = time.time()
        try:
            if not self.introspector.table_exists(local, table_name):
                logger.warning(f"本地表 {table_name} 不存在，跳过")
                return TableSyncResult(table_name, SyncStatus.SKIPPED_NO_LOCAL_TABLE)
            if not self.introspector.table_exists(remote, table_name):
                logger.warning(f"远端表 {table_name} 不存在，跳过")
                return TableSyncResult(table_name, SyncStatus.SKIPPED_NO_REMOTE_TABLE)
            plan = self.plan_table(local, remote, table_name)
        except (SchemaError, TransferError) as e:
            logger.error(f"同步表 {table_name} 失败: {e.detail}")
            return TableSyncResult.failed(table_name, e.detail)

        progress = TableProgress(table_name)
        self._copy_rows(local, remote, table_name, plan, progress)
        result = progress.result()

        total_duration = time.time() - table_start_time
        avg_speed = result.rows_copied / total_duration if total_duration > 0 else 0
        if result.success:
            logger.success(f"表 {table_name} 同步完成")
        else:
            logger.error(f"表 {table_name} 同步{'部分' if result.status == SyncStatus.PARTIAL else ''}失败: "
                         f"{result.error_detail}")
        logger.info(f"总记录数: {result.rows_copied}, "
                    f"总耗时: {total_duration:.2f}秒, "
                    f"平均速率: {avg_speed:.2f} 行/秒, "
                    f"完成批次数: {progress.completed_batches}/"
                    f"{progress.completed_batches + progress.failed_batches}")
        return result

    def plan_table(self, local: DatabaseHandle, remote: DatabaseHandle, table_name: str) -> TablePlan:
        """
        计算列映射：取本地与远端列的交集（保持本地列顺序）

        列名不区分大小写匹配，写入时使用远端的列名。仅本地存在的列被丢弃，
        仅远端存在的列使用默认值。

        Raises:
            TransferError: 两侧没有共同的列
        """
        local_columns = self.introspector.column_names(local, table_name)
        remote_lookup = {}
        for col in self.introspector.column_names(remote, table_name):
            remote_lookup.setdefault(col, col)
            remote_lookup.setdefault(col.lower(), col)

        columns, remote_columns, dropped = [], [], []
        for col in local_columns:
            remote_col = remote_lookup.get(col) or remote_lookup.get(col.lower())
            if remote_col is None or remote_col in remote_columns:
                dropped.append(col)
                continue
            columns.append(col)
            remote_columns.append(remote_col)
        if dropped:
            logger.warning(f"Columns {dropped} of table {table_name} not found in remote table, skipped")
        if not columns:
            raise TransferError(table_name, f"table {table_name} has no columns in common with the remote table")

        primary_key = []
        if self.options.upsert:
            remote_key = self.introspector.primary_key(remote, table_name)
            if remote_key and all(col in remote_columns for col in remote_key):
                primary_key = remote_key
            else:
                logger.debug(f"Table {table_name} has no usable primary key, using plain INSERT")
        return TablePlan(columns, remote_columns, primary_key)

    def _copy_rows(self, local: DatabaseHandle, remote: DatabaseHandle, table_name: str,
                   plan: TablePlan, progress: TableProgress) -> None:
        select = text(local.dialect.select_sql(table_name, plan.local_columns))
        insert = text(remote.dialect.insert_sql(table_name, plan.remote_columns, plan.primary_key))
        batch_size = self.options.batch_size

        try:
            with local.engine.connect() as conn:
                result = conn.execution_options(stream_results=True).execute(select)
                batch_num = 0
                while True:
                    rows = result.fetchmany(batch_size)
                    if not rows:
                        break
                    batch_num += 1
                    batch_data = [self._bind_row(row) for row in rows]
                    if not self._write_batch(remote, insert, table_name, batch_data, batch_num, progress):
                        if not remote.ping():
                            logger.error(f"远端连接已断开，停止同步表 {table_name}")
                            break
        except Exception as e:
            detail = f"failed to read local table {table_name}: {driver_message(e)}"
            logger.error(detail)
            progress.record_failure(detail)

    @staticmethod
    def _bind_row(row) -> Dict[str, Any]:
        return {f"p{idx}": value for idx, value in enumerate(row)}

    def _write_batch(self, remote: DatabaseHandle, insert, table_name: str,
                     batch_data: List[Dict[str, Any]], batch_num: int, progress: TableProgress) -> bool:
        """在独立事务中写入一个批次，结果记入累加器"""
        batch_start_time = time.time()
        try:
            with remote.engine.begin() as conn:
                conn.execute(insert, batch_data)
        except Exception as e:
            detail = driver_message(e)
            logger.error(f"表 {table_name} 批次 {batch_num} 写入失败: {detail}")
            progress.record_failure(detail)
            return False

        rows_written = len(batch_data)
        progress.record_success(rows_written)
        batch_duration = time.time() - batch_start_time
        rate = rows_written / batch_duration if batch_duration > 0 else 0
        logger.debug(f"表 {table_name} 批次 {batch_num} 同步完成: {rows_written} 行, "
                     f"耗时: {batch_duration:.2f}秒, 速率: {rate:.2f} 行/秒")
        return True
