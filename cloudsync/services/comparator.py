from typing import List, Sequence
from sqlalchemy.exc import SQLAlchemyError
from cloudsync.connectors.base import DatabaseHandle
from cloudsync.connectors.factory import driver_message
from cloudsync.exceptions import SchemaError
from cloudsync.models.results import ComparisonStatus, TableComparisonResult
from cloudsync.services.introspector import SchemaIntrospector
from loguru import logger


class Comparator:
    """按表对比本地与远端的记录数"""

    def __init__(self, introspector: SchemaIntrospector = None):
        self.introspector = introspector or SchemaIntrospector()

    def row_count(self, handle: DatabaseHandle, table_name: str) -> int:
        count = handle.scalar(handle.dialect.count_sql(table_name))
        logger.debug(f"Table {table_name} has {count} rows on {handle.label}")
        return int(count)

    def compare(self, local: DatabaseHandle, remote: DatabaseHandle,
                table_names: Sequence[str]) -> List[TableComparisonResult]:
        results = []
        for table_name in table_names:
            try:
                result = self.compare_table(local, remote, table_name)
            except SchemaError as e:
                result = TableComparisonResult(table_name, ComparisonStatus.ERROR, error_detail=e.detail)
            except SQLAlchemyError as e:
                logger.error(f"对比表 {table_name} 失败: {driver_message(e)}")
                result = TableComparisonResult(table_name, ComparisonStatus.ERROR,
                                               error_detail=driver_message(e))
            except Exception as e:
                logger.error(f"对比表 {table_name} 失败: {str(e)}")
                result = TableComparisonResult(table_name, ComparisonStatus.ERROR, error_detail=str(e))
            results.append(result)
        return results

    def compare_table(self, local: DatabaseHandle, remote: DatabaseHandle,
                      table_name: str) -> TableComparisonResult:
        """
        对比单个表

        本地不存在的表不会在任何一侧执行 COUNT；远端不存在的表只统计本地行数。
        """
        if not self.introspector.table_exists(local, table_name):
            if self.introspector.table_exists(remote, table_name):
                logger.warning(f"表 {table_name} 仅存在于远端")
                return TableComparisonResult(table_name, ComparisonStatus.REMOTE_ONLY)
            logger.warning(f"表 {table_name} 在本地和远端均不存在")
            return TableComparisonResult(
                table_name, ComparisonStatus.ERROR,
                error_detail="table does not exist locally or remotely",
            )

        if not self.introspector.table_exists(remote, table_name):
            logger.warning(f"表 {table_name} 在远端不存在")
            return TableComparisonResult(
                table_name, ComparisonStatus.LOCAL_ONLY,
                local_count=self.row_count(local, table_name),
            )

        local_count = self.row_count(local, table_name)
        remote_count = self.row_count(remote, table_name)
        status = ComparisonStatus.MATCH if local_count == remote_count else ComparisonStatus.MISMATCH
        logger.info(f"表 {table_name}: 本地 {local_count} 行, 远端 {remote_count} 行 ({status.value})")
        return TableComparisonResult(table_name, status, local_count, remote_count)
