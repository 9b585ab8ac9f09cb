from contextlib import contextmanager
from typing import Any, Dict, Iterator
from sqlalchemy import create_engine, text
from sqlalchemy.engine import URL
from sqlalchemy.exc import SQLAlchemyError
from cloudsync.connectors.base import DatabaseHandle
from cloudsync.connectors.dialects import get_dialect
from cloudsync.exceptions import DatabaseConnectionError
from cloudsync.models.config import ConnectionDescriptor, EngineKind, SyncOptions
from loguru import logger


def driver_message(error: Exception) -> str:
    """取出底层驱动的原始错误信息（直接展示给最终用户）"""
    orig = getattr(error, "orig", None)
    return str(orig) if orig is not None else str(error)


class Connector:
    _drivers: Dict[EngineKind, str] = {
        EngineKind.MYSQL: "mysql+pymysql",
        EngineKind.POSTGRES: "postgresql+psycopg2",
    }

    def __init__(self, options: SyncOptions = None):
        self.options = options or SyncOptions()

    def build_url(self, descriptor: ConnectionDescriptor) -> URL:
        """
        根据连接描述构建 SQLAlchemy 连接 URL

        Args:
            descriptor: 远端数据库连接描述

        Returns:
            URL对象（密码由 SQLAlchemy 负责转义）

        Raises:
            ValueError: 如果数据库类型不支持
        """
        drivername = self._drivers.get(descriptor.engine_kind)
        if not drivername:
            raise ValueError(f"Unsupported database type: {descriptor.engine_kind.value}")

        query = {}
        if descriptor.engine_kind == EngineKind.MYSQL:
            query["charset"] = "utf8mb4"
        elif descriptor.ssl_mode:
            query["sslmode"] = descriptor.ssl_mode

        return URL.create(
            drivername,
            username=descriptor.user,
            password=descriptor.password,
            host=descriptor.host,
            port=descriptor.port,
            database=descriptor.database,
            query=query,
        )

    def engine_options(self) -> Dict[str, Any]:
        # 远端连接由单次调用独占
        return {
            "pool_size": 1,
            "max_overflow": 0,
            "connect_args": {"connect_timeout": self.options.connect_timeout},
        }

    def open(self, descriptor: ConnectionDescriptor) -> DatabaseHandle:
        """
        建立远端数据库连接并执行一次 SELECT 1 验证

        Raises:
            DatabaseConnectionError: 网络不可达、认证失败或数据库不存在
        """
        url = self.build_url(descriptor)
        engine = None
        try:
            engine = create_engine(url, **self.engine_options())
            with engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except (SQLAlchemyError, ImportError) as e:
            # 驱动缺失或 URL 参数无效时 engine 尚未创建
            if engine is not None:
                engine.dispose()
            message = driver_message(e)
            logger.error(f"Failed to connect to {descriptor.label}: {message}")
            raise DatabaseConnectionError(message) from e

        logger.info(f"Successfully connected to {descriptor.engine_kind.value} database: {descriptor.database}")
        return DatabaseHandle(engine, get_dialect(descriptor.engine_kind), descriptor.label)

    @contextmanager
    def session(self, descriptor: ConnectionDescriptor) -> Iterator[DatabaseHandle]:
        """打开远端连接，在任何退出路径上都保证关闭"""
        handle = self.open(descriptor)
        try:
            yield handle
        finally:
            handle.close()
