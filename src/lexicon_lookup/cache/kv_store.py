"""
Durable key-value stores used by the result cache.

Both implementations are synchronous; the cache calls them off the event
loop under a timeout. Failures are raised as StorageError and handled by
the caller, never swallowed here.
"""
import json
import os
import re
import tempfile
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Optional

from ..exceptions import CacheCorruptionError, StorageError

_NAMESPACE_RE = re.compile(r"^[A-Za-z0-9_.-]+$")


class KeyValueStore(ABC):
    """Namespaced key-value storage for JSON-serializable values."""

    @abstractmethod
    def get(self, namespace: str, key: str) -> Optional[Any]:
        """
        Read one value.

        :return: Stored value, or None if absent
        :raises: StorageError if the store cannot be read
        """

    @abstractmethod
    def set(self, namespace: str, key: str, value: Any) -> None:
        """
        Write one value.

        :raises: StorageError if the store cannot be written
        """

    @abstractmethod
    def remove(self, namespace: str, key: str) -> None:
        """Remove one value; removing a missing key is not an error."""


class InMemoryKeyValueStore(KeyValueStore):
    """Process-local store. Values are copied through JSON like the file store."""

    def __init__(self):
        self._data: Dict[str, Dict[str, str]] = {}
        self._lock = threading.Lock()

    def get(self, namespace: str, key: str) -> Optional[Any]:
        with self._lock:
            raw = self._data.get(namespace, {}).get(key)
        return json.loads(raw) if raw is not None else None

    def set(self, namespace: str, key: str, value: Any) -> None:
        try:
            raw = json.dumps(value, ensure_ascii=False)
        except (TypeError, ValueError) as e:
            raise StorageError(f"Value for {namespace}/{key} is not serializable: {e}") from e
        with self._lock:
            self._data.setdefault(namespace, {})[key] = raw

    def remove(self, namespace: str, key: str) -> None:
        with self._lock:
            self._data.get(namespace, {}).pop(key, None)


class JsonFileKeyValueStore(KeyValueStore):
    """
    One JSON document per namespace under a directory.

    Writes replace the document atomically so a crash mid-write never leaves
    a truncated file behind.
    """

    def __init__(self, directory: str):
        self.directory = Path(directory)
        self._lock = threading.Lock()

    def get(self, namespace: str, key: str) -> Optional[Any]:
        with self._lock:
            return self._read(namespace).get(key)

    def set(self, namespace: str, key: str, value: Any) -> None:
        with self._lock:
            try:
                document = self._read(namespace)
            except CacheCorruptionError:
                # Start over rather than keep failing on a broken document
                document = {}
            document[key] = value
            self._write(namespace, document)

    def remove(self, namespace: str, key: str) -> None:
        with self._lock:
            try:
                document = self._read(namespace)
            except CacheCorruptionError:
                document = {}
            if document.pop(key, None) is not None or not document:
                self._write(namespace, document)

    def _path(self, namespace: str) -> Path:
        if not _NAMESPACE_RE.match(namespace):
            raise StorageError(f"Invalid namespace: {namespace!r}")
        return self.directory / f"{namespace}.json"

    def _read(self, namespace: str) -> Dict[str, Any]:
        path = self._path(namespace)
        if not path.exists():
            return {}
        try:
            with path.open("r", encoding="utf-8") as f:
                content = f.read().strip()
        except UnicodeDecodeError as e:
            raise CacheCorruptionError(f"Corrupt document {path}: {e}") from e
        except OSError as e:
            raise StorageError(f"Cannot read {path}: {e}") from e
        if not content:
            return {}
        try:
            document = json.loads(content)
        except json.JSONDecodeError as e:
            raise CacheCorruptionError(f"Corrupt document {path}: {e}") from e
        if not isinstance(document, dict):
            raise CacheCorruptionError(f"Corrupt document {path}: expected an object")
        return document

    def _write(self, namespace: str, document: Dict[str, Any]) -> None:
        path = self._path(namespace)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=str(path.parent), prefix=f".{namespace}.", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(document, f, indent=2, ensure_ascii=False)
                os.replace(tmp_path, path)
            except BaseException:
                if os.path.exists(tmp_path):
                    os.unlink(tmp_path)
                raise
        except (OSError, TypeError, ValueError) as e:
            raise StorageError(f"Cannot write {path}: {e}") from e
