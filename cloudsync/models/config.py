from typing import Any, Dict, List, Optional
from dataclasses import dataclass, field
from enum import Enum


class EngineKind(str, Enum):
    SQLITE = "sqlite"
    MYSQL = "mysql"
    POSTGRES = "postgres"

    @classmethod
    def parse(cls, value: Any) -> "EngineKind":
        """
        解析数据库类型字符串

        Raises:
            ValueError: 如果数据库类型不支持
        """
        if isinstance(value, EngineKind):
            return value
        name = str(value or "").strip().lower()
        name = _ENGINE_ALIASES.get(name, name)
        try:
            return cls(name)
        except ValueError:
            raise ValueError(f"Unsupported database type: {value}") from None


_ENGINE_ALIASES = {
    "postgresql": "postgres",
    "pg": "postgres",
    "sqlite3": "sqlite",
}

# 同步目标只能是网络数据库
REMOTE_ENGINES = (EngineKind.MYSQL, EngineKind.POSTGRES)


@dataclass(frozen=True)
class ConnectionDescriptor:
    engine_kind: EngineKind
    host: str
    port: int
    user: str
    password: str = field(repr=False)
    database: str
    ssl_mode: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "engine_kind", EngineKind.parse(self.engine_kind))
        if self.engine_kind not in REMOTE_ENGINES:
            raise ValueError(f"{self.engine_kind.value} is not a valid sync target")

        for name in ("host", "user", "password", "database"):
            value = getattr(self, name)
            if not isinstance(value, str) or not value.strip():
                raise ValueError(f"Connection field '{name}' is required")

        try:
            port = int(self.port)
        except (TypeError, ValueError):
            raise ValueError(f"Invalid port: {self.port!r}") from None
        if not 0 < port < 65536:
            raise ValueError(f"Invalid port: {self.port!r}")
        object.__setattr__(self, "port", port)

        if not self.ssl_mode:
            object.__setattr__(self, "ssl_mode", None)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ConnectionDescriptor":
        """
        从请求参数构建连接描述

        Args:
            data: 包含 db_type, host, port, user, password, db_name, ssl_mode 的字典

        Returns:
            ConnectionDescriptor对象
        """
        return cls(
            engine_kind=data.get("db_type"),
            host=data.get("host"),
            port=data.get("port"),
            user=data.get("user"),
            password=data.get("password"),
            database=data.get("db_name"),
            ssl_mode=data.get("ssl_mode"),
        )

    def to_dict(self, mask_password: bool = True) -> Dict[str, Any]:
        return {
            "db_type": self.engine_kind.value,
            "host": self.host,
            "port": self.port,
            "user": self.user,
            "password": "******" if mask_password else self.password,
            "db_name": self.database,
            "ssl_mode": self.ssl_mode,
        }

    @property
    def label(self) -> str:
        return f"{self.engine_kind.value}://{self.host}:{self.port}/{self.database}"


@dataclass
class SyncOptions:
    batch_size: int = 1000
    connect_timeout: int = 10
    upsert: bool = True
    max_workers: int = 1

    def __post_init__(self):
        if self.batch_size < 1:
            raise ValueError("Batch size must be at least 1")
        if self.connect_timeout < 1:
            raise ValueError("Connect timeout must be at least 1 second")
        if self.max_workers < 1:
            raise ValueError("max_workers must be at least 1")


@dataclass
class JobConfig:
    local_url: str
    remote: ConnectionDescriptor
    tables: List[str]
    options: SyncOptions = field(default_factory=SyncOptions)
