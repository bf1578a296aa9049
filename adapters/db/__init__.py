"""
데이터베이스 어댑터

SQLite WAL 모드 연결 관리 및 JournalStore 구현.
"""

from adapters.db.sqlite_adapter import (
    SQLiteAdapter,
    get_db_path,
    create_connection,
)
from adapters.db.sqlite_store import SQLiteJournalStore

__all__ = [
    "SQLiteAdapter",
    "SQLiteJournalStore",
    "get_db_path",
    "create_connection",
]
