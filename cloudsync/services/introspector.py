from typing import List
from sqlalchemy.exc import SQLAlchemyError
from cloudsync.connectors.base import DatabaseHandle
from cloudsync.connectors.factory import driver_message
from cloudsync.exceptions import SchemaError
from loguru import logger


class SchemaIntrospector:
    """
    通过各引擎的系统目录回答表结构问题

    表不存在是正常结果（False / 空列表），只有目录查询本身失败才抛出 SchemaError。
    """

    def table_exists(self, handle: DatabaseHandle, table_name: str) -> bool:
        count = self._query(handle, table_name, handle.dialect.table_exists_sql, scalar=True)
        return bool(count)

    def column_names(self, handle: DatabaseHandle, table_name: str) -> List[str]:
        """
        获取表的列名

        Returns:
            按表定义顺序排列的列名，表不存在时返回空列表
        """
        return self._query(handle, table_name, handle.dialect.columns_sql)

    def primary_key(self, handle: DatabaseHandle, table_name: str) -> List[str]:
        return self._query(handle, table_name, handle.dialect.primary_key_sql)

    def list_tables(self, handle: DatabaseHandle) -> List[str]:
        try:
            return handle.column(handle.dialect.list_tables_sql)
        except SQLAlchemyError as e:
            logger.error(f"Failed to list tables on {handle.label}: {driver_message(e)}")
            raise SchemaError("", driver_message(e)) from e

    def _query(self, handle: DatabaseHandle, table_name: str, query: str, scalar: bool = False):
        params = {"table": table_name}
        try:
            if scalar:
                return handle.scalar(query, params)
            return handle.column(query, params)
        except SQLAlchemyError as e:
            logger.error(f"Failed to inspect table {table_name} on {handle.label}: {driver_message(e)}")
            raise SchemaError(table_name, driver_message(e)) from e
