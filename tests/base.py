import os
import tempfile
import unittest
from typing import Any, Dict, List
from sqlalchemy import text
from cloudsync.connectors.base import DatabaseHandle
from cloudsync.connectors.factory import Connector
from cloudsync.exceptions import DatabaseConnectionError
from cloudsync.models.config import ConnectionDescriptor


class SqliteConnector(Connector):
    """把远端连接替换为本地 SQLite 文件，记录每次打开的句柄"""

    def __init__(self, url: str, error: str = None, fail_after: int = None):
        super().__init__()
        self.url = url
        self.error = error
        self.fail_after = fail_after
        self.opened: List[DatabaseHandle] = []

    def open(self, descriptor) -> DatabaseHandle:
        if self.error or (self.fail_after is not None and len(self.opened) >= self.fail_after):
            raise DatabaseConnectionError(self.error or "connection refused")
        handle = DatabaseHandle.from_url(self.url)
        self.opened.append(handle)
        return handle


class SqliteTestCase(unittest.TestCase):
    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.local_url = "sqlite:///" + os.path.join(self.tmpdir.name, "local.db")
        self.remote_url = "sqlite:///" + os.path.join(self.tmpdir.name, "remote.db")
        self.local = DatabaseHandle.from_url(self.local_url)
        self.remote = DatabaseHandle.from_url(self.remote_url)

    def tearDown(self):
        self.local.close()
        self.remote.close()
        self.tmpdir.cleanup()

    def execute(self, handle: DatabaseHandle, *statements: str) -> None:
        with handle.engine.begin() as conn:
            for statement in statements:
                conn.execute(text(statement))

    def insert_rows(self, handle: DatabaseHandle, table: str, rows: List[Dict[str, Any]]) -> None:
        columns = list(rows[0].keys())
        query = f"INSERT INTO {table} ({', '.join(columns)}) VALUES ({', '.join(':' + c for c in columns)})"
        with handle.engine.begin() as conn:
            conn.execute(text(query), rows)

    def count(self, handle: DatabaseHandle, table: str) -> int:
        with handle.engine.connect() as conn:
            return conn.execute(text(f"SELECT COUNT(*) FROM {table}")).scalar()

    def fetch(self, handle: DatabaseHandle, query: str) -> List[tuple]:
        with handle.engine.connect() as conn:
            return [tuple(row) for row in conn.execute(text(query))]


def make_descriptor(**overrides) -> ConnectionDescriptor:
    params = {
        "engine_kind": "postgres",
        "host": "localhost",
        "port": 5432,
        "user": "sync",
        "password": "s3cret",
        "database": "cloud",
    }
    params.update(overrides)
    return ConnectionDescriptor(**params)
