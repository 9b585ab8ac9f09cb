from typing import Callable, Dict, Sequence
from dataclasses import dataclass
from cloudsync.models.config import EngineKind


@dataclass(frozen=True)
class Dialect:
    """
    单个数据库引擎的 SQL 方言能力

    所有目录查询使用 :table 作为表名参数，返回按声明顺序排列的单列结果。
    """
    kind: EngineKind
    quote_char: str
    table_exists_sql: str
    columns_sql: str
    primary_key_sql: str
    list_tables_sql: str
    upsert_clause: Callable[["Dialect", Sequence[str], Sequence[str]], str]
    schema: str = ""

    def quote(self, identifier: str) -> str:
        q = self.quote_char
        return f"{q}{identifier.replace(q, q + q)}{q}"

    def qualify(self, table_name: str) -> str:
        if self.schema:
            return f"{self.quote(self.schema)}.{self.quote(table_name)}"
        return self.quote(table_name)

    def count_sql(self, table_name: str) -> str:
        return f"SELECT COUNT(*) FROM {self.qualify(table_name)}"

    def select_sql(self, table_name: str, columns: Sequence[str]) -> str:
        column_names = ", ".join(self.quote(col) for col in columns)
        return f"SELECT {column_names} FROM {self.qualify(table_name)}"

    def insert_sql(self, table_name: str, columns: Sequence[str],
                   primary_key: Sequence[str] = ()) -> str:
        """
        构建批量写入语句

        Args:
            table_name: 目标表名
            columns: 写入的列（参数名为 p0, p1 ...，与列顺序对应）
            primary_key: 主键列，非空时生成 upsert 语句

        Returns:
            SQL语句
        """
        column_names = ", ".join(self.quote(col) for col in columns)
        placeholders = ", ".join(f":p{idx}" for idx in range(len(columns)))
        query = f"INSERT INTO {self.qualify(table_name)} ({column_names}) VALUES ({placeholders})"
        if primary_key:
            query += " " + self.upsert_clause(self, columns, primary_key)
        return query


def _on_conflict(dialect: Dialect, columns: Sequence[str], primary_key: Sequence[str]) -> str:
    conflict = ", ".join(dialect.quote(col) for col in primary_key)
    updates = [col for col in columns if col not in primary_key]
    if not updates:
        return f"ON CONFLICT ({conflict}) DO NOTHING"
    assignments = ", ".join(
        f"{dialect.quote(col)} = EXCLUDED.{dialect.quote(col)}" for col in updates
    )
    return f"ON CONFLICT ({conflict}) DO UPDATE SET {assignments}"


def _on_duplicate_key(dialect: Dialect, columns: Sequence[str], primary_key: Sequence[str]) -> str:
    # VALUES() 写法兼容 MySQL 5.7/8.x 与 MariaDB；行别名写法需要 MySQL 8.0.19+，MariaDB 不支持
    updates = [col for col in columns if col not in primary_key] or list(primary_key[:1])
    assignments = ", ".join(
        f"{dialect.quote(col)} = VALUES({dialect.quote(col)})" for col in updates
    )
    return f"ON DUPLICATE KEY UPDATE {assignments}"


MYSQL = Dialect(
    kind=EngineKind.MYSQL,
    quote_char="`",
    table_exists_sql="""
        SELECT COUNT(*) FROM information_schema.tables
        WHERE table_schema = DATABASE() AND table_name = :table
    """,
    columns_sql="""
        SELECT column_name FROM information_schema.columns
        WHERE table_schema = DATABASE() AND table_name = :table
        ORDER BY ordinal_position
    """,
    primary_key_sql="""
        SELECT column_name FROM information_schema.key_column_usage
        WHERE table_schema = DATABASE() AND table_name = :table
            AND constraint_name = 'PRIMARY'
        ORDER BY ordinal_position
    """,
    list_tables_sql="""
        SELECT table_name FROM information_schema.tables
        WHERE table_schema = DATABASE() AND table_type = 'BASE TABLE'
        ORDER BY table_name
    """,
    upsert_clause=_on_duplicate_key,
)

POSTGRES = Dialect(
    kind=EngineKind.POSTGRES,
    quote_char='"',
    schema="public",
    table_exists_sql="""
        SELECT COUNT(*) FROM information_schema.tables
        WHERE table_schema = 'public' AND table_name = :table
    """,
    columns_sql="""
        SELECT column_name FROM information_schema.columns
        WHERE table_schema = 'public' AND table_name = :table
        ORDER BY ordinal_position
    """,
    primary_key_sql="""
        SELECT ku.column_name
        FROM information_schema.table_constraints tc
        JOIN information_schema.key_column_usage ku
            ON tc.constraint_name = ku.constraint_name
            AND tc.table_schema = ku.table_schema
            AND tc.table_name = ku.table_name
        WHERE tc.constraint_type = 'PRIMARY KEY'
            AND tc.table_schema = 'public'
            AND tc.table_name = :table
        ORDER BY ku.ordinal_position
    """,
    list_tables_sql="""
        SELECT table_name FROM information_schema.tables
        WHERE table_schema = 'public' AND table_type = 'BASE TABLE'
        ORDER BY table_name
    """,
    upsert_clause=_on_conflict,
)

SQLITE = Dialect(
    kind=EngineKind.SQLITE,
    quote_char='"',
    table_exists_sql="""
        SELECT COUNT(*) FROM sqlite_master
        WHERE type = 'table' AND name = :table
    """,
    columns_sql="SELECT name FROM pragma_table_info(:table) ORDER BY cid",
    primary_key_sql="SELECT name FROM pragma_table_info(:table) WHERE pk > 0 ORDER BY pk",
    list_tables_sql="""
        SELECT name FROM sqlite_master
        WHERE type = 'table' AND name NOT LIKE 'sqlite_%'
        ORDER BY name
    """,
    upsert_clause=_on_conflict,
)

_DIALECTS: Dict[EngineKind, Dialect] = {
    EngineKind.MYSQL: MYSQL,
    EngineKind.POSTGRES: POSTGRES,
    EngineKind.SQLITE: SQLITE,
}

# SQLAlchemy 方言名 -> 引擎类型
_SQLALCHEMY_NAMES = {
    "mysql": EngineKind.MYSQL,
    "mariadb": EngineKind.MYSQL,
    "postgresql": EngineKind.POSTGRES,
    "sqlite": EngineKind.SQLITE,
}


def get_dialect(engine_kind: EngineKind) -> Dialect:
    dialect = _DIALECTS.get(EngineKind.parse(engine_kind))
    if not dialect:
        raise ValueError(f"Unsupported database type: {engine_kind}")
    return dialect


def dialect_for_sqlalchemy(name: str) -> Dialect:
    """根据 SQLAlchemy 引擎的方言名选择方言（用于本地库）"""
    engine_kind = _SQLALCHEMY_NAMES.get(name)
    if not engine_kind:
        raise ValueError(f"Unsupported database type: {name}")
    return _DIALECTS[engine_kind]

