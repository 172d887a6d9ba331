"""Persistence layer.

Provides:
- Record store engines (SQLite file, in-memory)
- Typed repositories per record kind, namespaced by identity
"""

from edumate.db.record_store import (
    MemoryRecordStore,
    RecordStore,
    SqliteRecordStore,
)
from edumate.db.repositories import (
    AccountRepo,
    ActiveIdentityPointer,
    NoteRepo,
    Repositories,
    ResultRepo,
    ScheduleRepo,
)

__all__ = [
    "AccountRepo",
    "ActiveIdentityPointer",
    "MemoryRecordStore",
    "NoteRepo",
    "RecordStore",
    "Repositories",
    "ResultRepo",
    "ScheduleRepo",
    "SqliteRecordStore",
]
