from typing import Any, Dict, List, Optional
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from cloudsync.connectors.dialects import Dialect, dialect_for_sqlalchemy
from loguru import logger


class DatabaseHandle:
    """
    一个已建立的数据库连接（SQLAlchemy Engine + 方言）

    本地库句柄由应用注入并共享，只读使用；远端句柄由单次同步调用独占，
    调用结束前必须 close()。
    """

    def __init__(self, engine: Engine, dialect: Dialect, label: Optional[str] = None):
        self.engine = engine
        self.dialect = dialect
        self.label = label or engine.url.render_as_string(hide_password=True)
        self._closed = False

    @classmethod
    def from_engine(cls, engine: Engine, label: Optional[str] = None) -> "DatabaseHandle":
        return cls(engine, dialect_for_sqlalchemy(engine.dialect.name), label)

    @classmethod
    def from_url(cls, url: str, **engine_kwargs: Any) -> "DatabaseHandle":
        """根据 SQLAlchemy URL 创建本地库句柄"""
        return cls.from_engine(create_engine(url, **engine_kwargs))

    @property
    def engine_kind(self):
        return self.dialect.kind

    @property
    def closed(self) -> bool:
        return self._closed

    def scalar(self, query: str, params: Dict[str, Any] = None) -> Any:
        with self.engine.connect() as conn:
            return conn.execute(text(query), params or {}).scalar()

    def column(self, query: str, params: Dict[str, Any] = None) -> List[Any]:
        with self.engine.connect() as conn:
            return [row[0] for row in conn.execute(text(query), params or {})]

    def ping(self) -> bool:
        """检查连接是否仍然可用"""
        if self._closed:
            return False
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError as e:
            logger.warning(f"Connection check failed for {self.label}: {str(e)}")
            return False

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self.engine.dispose()
        logger.info(f"Disconnected from {self.label}")

    def __enter__(self) -> "DatabaseHandle":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"DatabaseHandle({self.dialect.kind.value}, {self.label})"
