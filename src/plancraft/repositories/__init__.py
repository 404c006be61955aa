from .db import Database
from .record_store import InMemoryRecordStore, RecordStore
from .sqlite_record_store import SQLiteRecordStore

__all__ = ["Database", "InMemoryRecordStore", "RecordStore", "SQLiteRecordStore"]
