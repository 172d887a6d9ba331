"""Typed repositories over the record store.

One repository per record kind, all namespaced by identity key:

    account:{identity}   -> Account (with credential)
    results:{identity}   -> [TestResult, ...]
    schedule:{identity}  -> [TimeTableEntry, ...]
    notes:{identity}     -> [Note, ...]
    activeIdentity       -> identity of the logged-in student
"""

from __future__ import annotations

from typing import Any, Callable, TypeVar

import structlog

from edumate.core.models import Account, Note, TestResult, TimeTableEntry
from edumate.db.record_store import RecordStore

logger = structlog.get_logger(__name__)

ACCOUNT_PREFIX = "account:"
RESULTS_PREFIX = "results:"
SCHEDULE_PREFIX = "schedule:"
NOTES_PREFIX = "notes:"
ACTIVE_IDENTITY_KEY = "activeIdentity"


def account_key(identity: str) -> str:
    return f"{ACCOUNT_PREFIX}{identity}"


def results_key(identity: str) -> str:
    return f"{RESULTS_PREFIX}{identity}"


def schedule_key(identity: str) -> str:
    return f"{SCHEDULE_PREFIX}{identity}"


def notes_key(identity: str) -> str:
    return f"{NOTES_PREFIX}{identity}"


def _as_list(value: Any, key: str) -> list[dict[str, Any]]:
    if value is None:
        return []
    if not isinstance(value, list):
        logger.error("repository.unexpected_shape", key=key, got=type(value).__name__)
        return []
    return value


T = TypeVar("T")


def _decode_items(value: Any, key: str, decode: Callable[[dict[str, Any]], T]) -> list[T]:
    """Decode each stored item, skipping corrupt ones."""
    items = []
    for index, data in enumerate(_as_list(value, key)):
        try:
            items.append(decode(data))
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            logger.error("repository.corrupt_item", key=key, index=index, error=str(e))
    return items


class AccountRepo:
    """Account records and the identity index."""

    def __init__(self, store: RecordStore):
        self.store = store

    def get(self, identity: str) -> Account | None:
        data = self.store.get(account_key(identity))
        if data is None:
            return None
        try:
            return Account.from_dict(data)
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            logger.error("accounts.corrupt_record", identity=identity, error=str(e))
            return None

    def exists(self, identity: str) -> bool:
        return self.store.get(account_key(identity)) is not None

    def put(self, account: Account) -> None:
        self.store.set(account_key(account.identity), account.to_dict())

    def delete(self, identity: str) -> None:
        self.store.delete(account_key(identity))

    def list_identities(self) -> list[str]:
        """All registered identities, in key order."""
        return [
            key[len(ACCOUNT_PREFIX):]
            for key in self.store.list_keys(ACCOUNT_PREFIX)
        ]


class ResultRepo:
    """Append-only test result sequence per account."""

    def __init__(self, store: RecordStore):
        self.store = store

    def list(self, identity: str) -> list[TestResult]:
        key = results_key(identity)
        return _decode_items(self.store.get(key), key, TestResult.from_dict)

    def append(self, identity: str, result: TestResult) -> list[TestResult]:
        """Append and persist. Returns the new sequence."""
        results = self.list(identity)
        results.append(result)
        self.store.set(results_key(identity), [r.to_dict() for r in results])
        return results

    def delete_all(self, identity: str) -> None:
        self.store.delete(results_key(identity))


class ScheduleRepo:
    """Weekly timetable per account, replaced wholesale."""

    def __init__(self, store: RecordStore):
        self.store = store

    def get(self, identity: str) -> list[TimeTableEntry]:
        key = schedule_key(identity)
        return _decode_items(self.store.get(key), key, TimeTableEntry.from_dict)

    def replace(self, identity: str, entries: list[TimeTableEntry]) -> None:
        self.store.set(schedule_key(identity), [e.to_dict() for e in entries])

    def delete_all(self, identity: str) -> None:
        self.store.delete(schedule_key(identity))


class NoteRepo:
    """Saved notes per account."""

    def __init__(self, store: RecordStore):
        self.store = store

    def list(self, identity: str) -> list[Note]:
        key = notes_key(identity)
        return _decode_items(self.store.get(key), key, Note.from_dict)

    def replace(self, identity: str, notes: list[Note]) -> None:
        self.store.set(notes_key(identity), [n.to_dict() for n in notes])

    def delete_all(self, identity: str) -> None:
        self.store.delete(notes_key(identity))


class ActiveIdentityPointer:
    """Durable pointer to the logged-in identity."""

    def __init__(self, store: RecordStore):
        self.store = store

    def get(self) -> str | None:
        value = self.store.get(ACTIVE_IDENTITY_KEY)
        return value if isinstance(value, str) and value else None

    def set(self, identity: str) -> None:
        self.store.set(ACTIVE_IDENTITY_KEY, identity)

    def clear(self) -> None:
        self.store.delete(ACTIVE_IDENTITY_KEY)


class Repositories:
    """Bundle of every repository over one store."""

    def __init__(self, store: RecordStore):
        self.store = store
        self.accounts = AccountRepo(store)
        self.results = ResultRepo(store)
        self.schedule = ScheduleRepo(store)
        self.notes = NoteRepo(store)
        self.active_identity = ActiveIdentityPointer(store)
