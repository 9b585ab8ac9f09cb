from cloudsync.connectors.base import DatabaseHandle
from cloudsync.connectors.dialects import Dialect, get_dialect
from cloudsync.connectors.factory import Connector

__all__ = ["Connector", "DatabaseHandle", "Dialect", "get_dialect"]
