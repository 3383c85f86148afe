"""Key-value storage backends for persisted answer sheets."""
from __future__ import annotations

import logging
import re
import threading
from pathlib import Path
from typing import Protocol

from sqlalchemy import delete
from sqlalchemy.orm import sessionmaker

from answer_engine.models.db.storage_entry import StorageEntry
from answer_engine.utils.json_utils import read_json_file, write_json_file

logger = logging.getLogger(__name__)

_SAFE_KEY = re.compile(r"[^A-Za-z0-9_.-]")


class KeyValueStorage(Protocol):
    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def remove(self, key: str) -> None: ...


class MemoryStorage:
    """Process-local storage, mostly for tests."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})
        self._lock = threading.Lock()

    def get(self, key: str) -> str | None:
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self._data[key] = value

    def remove(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def keys(self) -> list[str]:
        with self._lock:
            return sorted(self._data)


class SqlStorage:
    """Storage rows in the ``storage_entries`` table."""

    def __init__(self, session_factory: sessionmaker) -> None:
        self._session_factory = session_factory

    def get(self, key: str) -> str | None:
        db = self._session_factory()
        try:
            entry = db.get(StorageEntry, key)
            return entry.value if entry else None
        finally:
            db.close()

    def set(self, key: str, value: str) -> None:
        db = self._session_factory()
        try:
            entry = db.get(StorageEntry, key)
            if entry:
                entry.value = value
            else:
                db.add(StorageEntry(key=key, value=value))
            db.commit()
        finally:
            db.close()

    def remove(self, key: str) -> None:
        db = self._session_factory()
        try:
            db.execute(delete(StorageEntry).where(StorageEntry.key == key))
            db.commit()
        finally:
            db.close()


class JsonFileStorage:
    """One JSON file per key under ``base_dir``."""

    def __init__(self, base_dir: Path) -> None:
        self._base_dir = Path(base_dir)
        self._base_dir.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        return self._base_dir / f"{_SAFE_KEY.sub('_', key)}.json"

    def get(self, key: str) -> str | None:
        try:
            payload = read_json_file(self._path(key), None)
        except ValueError as exc:
            logger.warning(f"Unreadable storage file for key {key}: {exc}")
            return None
        if payload is None:
            return None
        value = payload.get("value") if isinstance(payload, dict) else None
        return value if isinstance(value, str) else None

    def set(self, key: str, value: str) -> None:
        write_json_file(self._path(key), {"key": key, "value": value})

    def remove(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)


def build_storage(backend: str | None = None) -> KeyValueStorage:
    """Create the configured storage backend."""
    from answer_engine.config import STORAGE_BACKEND, STORAGE_DIR

    backend = (backend or STORAGE_BACKEND).lower()
    if backend == "json":
        return JsonFileStorage(STORAGE_DIR)
    if backend == "memory":
        return MemoryStorage()

    from answer_engine.database import SessionLocal, init_db

    init_db()
    return SqlStorage(SessionLocal)
