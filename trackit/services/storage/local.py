"""
Local Key-Value Backends

- InMemoryKeyValueStore: a dict. Used by tests and throwaway sessions.
- JsonFileKeyValueStore: one JSON object on disk mapping keys to string
  values. The default backend.

The JSON file is re-read on every `get`, so two sessions pointed at the
same file see each other's writes; whoever writes last wins. Writes go
through a temp file and `os.replace`, so a crash mid-write leaves the
previous document intact.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Optional, Union

import structlog

from trackit.services.storage.interface import KeyValueStore, StorageError


logger = structlog.get_logger(__name__)


class InMemoryKeyValueStore(KeyValueStore):
    """Process-local store backed by a dict."""

    def __init__(self, initial: Optional[dict[str, str]] = None):
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def delete(self, key: str) -> bool:
        return self._data.pop(key, None) is not None

    def keys(self, prefix: str = "") -> list[str]:
        return sorted(k for k in self._data if k.startswith(prefix))


class JsonFileKeyValueStore(KeyValueStore):
    """
    Key-value store persisted as a single JSON document.

    A missing file is an empty store. An unreadable or non-object file is
    also treated as empty (and logged); the next write replaces it.
    """

    def __init__(self, path: Union[str, Path]):
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def _read_all(self) -> dict[str, str]:
        if not self._path.exists():
            return {}
        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning(
                "json_store_unreadable",
                path=str(self._path),
                error=str(e),
            )
            return {}

        if not isinstance(raw, dict):
            logger.warning(
                "json_store_unreadable",
                path=str(self._path),
                error=f"expected an object, got {type(raw).__name__}",
            )
            return {}

        # Values are always strings; anything else was not written by us
        return {k: v for k, v in raw.items() if isinstance(v, str)}

    def _write_all(self, data: dict[str, str]) -> None:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(
                dir=self._path.parent,
                prefix=f".{self._path.name}.",
                suffix=".tmp",
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as fh:
                    json.dump(data, fh, indent=2, sort_keys=True)
                os.replace(tmp_path, self._path)
            except BaseException:
                if os.path.exists(tmp_path):
                    os.unlink(tmp_path)
                raise
        except OSError as e:
            raise StorageError(f"Failed to write {self._path}: {e}")

    def get(self, key: str) -> Optional[str]:
        return self._read_all().get(key)

    def set(self, key: str, value: str) -> None:
        data = self._read_all()
        data[key] = value
        self._write_all(data)

    def delete(self, key: str) -> bool:
        data = self._read_all()
        if key not in data:
            return False
        del data[key]
        self._write_all(data)
        return True

    def keys(self, prefix: str = "") -> list[str]:
        return sorted(k for k in self._read_all() if k.startswith(prefix))
