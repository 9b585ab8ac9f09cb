from cloudsync.services.comparator import Comparator
from cloudsync.services.introspector import SchemaIntrospector
from cloudsync.services.synchronizer import Synchronizer
from cloudsync.services.sync import SyncService

__all__ = ["Comparator", "SchemaIntrospector", "Synchronizer", "SyncService"]
