"""Persistent storage for the game collection.

The collection lives as one JSON blob under a single key of a small
key-value storage, the local counterpart of a browser's localStorage.
"""

import json
import os
import tempfile
from collections.abc import Mapping
from pathlib import Path
from typing import Protocol

import structlog

from ..models.collection import CollectionEntry, StoredEntry, parse_stored_entry
from .errors import AppError, StorageError

log = structlog.stdlib.get_logger()

COLLECTION_KEY = "gameshelf-game-collection"


class KeyValueStorage(Protocol):
    """String key-value storage."""

    def get_item(self, key: str) -> str | None: ...

    def set_item(self, key: str, value: str) -> None: ...


class MemoryStorage:
    """In-memory key-value storage, used in tests and as a throwaway session store."""

    def __init__(self, items: dict[str, str] | None = None) -> None:
        self._items: dict[str, str] = dict(items or {})

    def get_item(self, key: str) -> str | None:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value


class JsonFileStorage:
    """Key-value storage kept in a single JSON file.

    Every write rewrites the whole file with a write-then-rename so the file
    is never left partially written.
    """

    def __init__(self, path: Path) -> None:
        self.path = path

    def get_item(self, key: str) -> str | None:
        value = self._read_all().get(key)
        return value if isinstance(value, str) else None

    def set_item(self, key: str, value: str) -> None:
        try:
            items = self._read_all()
        except StorageError as e:
            log.warning("Storage file unreadable, starting fresh", path=str(self.path), error=e.message)
            items = {}
        items[key] = value
        self._write_all(items)

    def _read_all(self) -> dict[str, object]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        # JSONDecodeError and UnicodeDecodeError are both ValueErrors
        except (OSError, ValueError) as e:
            raise StorageError(
                "Could not read the storage file",
                original_error=e,
                path=str(self.path),
                operation="read",
            ) from e
        if not isinstance(data, dict):
            raise StorageError(
                "Storage file does not hold a JSON object",
                path=str(self.path),
                operation="read",
            )
        return data

    def _write_all(self, items: dict[str, object]) -> None:
        temp_path: str | None = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, temp_path = tempfile.mkstemp(dir=self.path.parent, suffix=".tmp")
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(items, f, ensure_ascii=False)
            os.replace(temp_path, self.path)
        except OSError as e:
            if temp_path is not None and os.path.exists(temp_path):
                try:
                    os.unlink(temp_path)
                except OSError:
                    log.warning("Failed to clean up temporary storage file", path=temp_path)
            raise StorageError(
                "Could not write the storage file",
                original_error=e,
                path=str(self.path),
                operation="write",
            ) from e


class CollectionStore:
    """Reads and writes the whole collection under one storage key.

    Failures never reach the caller: reads degrade to an empty collection and
    writes are logged and dropped, leaving the in-memory state authoritative.
    """

    def __init__(self, storage: KeyValueStorage | None, key: str = COLLECTION_KEY) -> None:
        """Initialize the store.

        Args:
            storage: Backing storage, or None when no storage is available
            key: Storage key holding the serialized collection
        """
        self._storage = storage
        self.key = key

    @property
    def available(self) -> bool:
        return self._storage is not None

    def load(self) -> dict[int, StoredEntry]:
        """Load every stored record, in stored order.

        Returns an empty mapping when storage is unavailable, the key is
        absent, or the stored value is not a collection.
        """
        if not self.available:
            return {}

        try:
            raw = self._storage.get_item(self.key)
        except Exception as e:
            log.error("Error loading collection from storage", error=str(e), error_type=type(e).__name__)
            return {}
        if raw is None:
            return {}

        try:
            data = json.loads(raw)
            if not isinstance(data, dict):
                raise ValueError(f"Expected a JSON object, got {type(data).__name__}")
            collection: dict[int, StoredEntry] = {}
            for key, value in data.items():
                collection[int(key)] = parse_stored_entry(value)
        except (ValueError, TypeError, AttributeError) as e:
            log.error("Stored collection is malformed, starting empty", error=str(e))
            return {}

        log.debug("Collection loaded from storage", count=len(collection))
        return collection

    def save(self, collection: Mapping[int, CollectionEntry]) -> None:
        """Overwrite the stored blob with the full collection."""
        if not self.available:
            return

        try:
            payload = json.dumps(
                {str(game_id): entry.to_dict() for game_id, entry in collection.items()},
                ensure_ascii=False,
            )
            self._storage.set_item(self.key, payload)
        except (AppError, OSError, TypeError, ValueError) as e:
            log.error("Error saving collection to storage", error=str(e), count=len(collection))
            return

        log.debug("Collection saved to storage", count=len(collection))
