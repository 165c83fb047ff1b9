# Overview: Key-value byte stores backing the persistence gateway.

from __future__ import annotations

from typing import Iterator, Optional, Protocol

from ..extensions import db
from ..models import StorageEntry
from .concurrency import run_with_retry


class KeyValueStore(Protocol):
    """
    Minimal byte store contract used by PersistenceGateway.

    Implementations own durability; the inventory core only calls these
    methods at its load and save checkpoints.
    """

    def get(self, key: str) -> Optional[bytes]: ...

    def set(self, key: str, value: bytes) -> None: ...

    def delete(self, key: str) -> None: ...

    def keys(self) -> Iterator[str]: ...


class MemoryKeyValueStore:
    """Dict-backed store. Each instance is isolated; used by tests and scripts."""

    def __init__(self, initial: Optional[dict[str, bytes]] = None):
        self._data: dict[str, bytes] = dict(initial or {})

    def get(self, key: str) -> Optional[bytes]:
        return self._data.get(key)

    def set(self, key: str, value: bytes) -> None:
        self._data[key] = bytes(value)

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> Iterator[str]:
        return iter(list(self._data))


class SqlKeyValueStore:
    """
    StorageEntry-backed store bound to one storage scope.

    scope_id partitions the table; the gateway additionally suffixes keys
    with the user id, so one scope per deployment is enough. Writes commit
    immediately unless autocommit=False, in which case the caller commits.
    """

    def __init__(self, scope_id: str = "default", *, autocommit: bool = True):
        self.scope_id = scope_id
        self.autocommit = autocommit

    def _entry(self, key: str) -> Optional[StorageEntry]:
        return db.session.query(StorageEntry).filter_by(scope_id=self.scope_id, key=key).first()

    def get(self, key: str) -> Optional[bytes]:
        entry = self._entry(key)
        return bytes(entry.value) if entry is not None else None

    def _write(self, op) -> None:
        def _op():
            op()
            if self.autocommit:
                db.session.commit()
            else:
                db.session.flush()
        run_with_retry(_op)

    def set(self, key: str, value: bytes) -> None:
        def op():
            entry = self._entry(key)
            if entry is None:
                db.session.add(StorageEntry(scope_id=self.scope_id, key=key, value=bytes(value)))
            else:
                entry.value = bytes(value)
        self._write(op)

    def delete(self, key: str) -> None:
        def op():
            entry = self._entry(key)
            if entry is not None:
                db.session.delete(entry)
        self._write(op)

    def keys(self) -> Iterator[str]:
        rows = (
            db.session.query(StorageEntry.key)
            .filter_by(scope_id=self.scope_id)
            .order_by(StorageEntry.id.asc())
            .all()
        )
        return iter([row.key for row in rows])
