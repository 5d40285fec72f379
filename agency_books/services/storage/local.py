"""
Local Key-Value Storage Implementations

DESIGN DECISION: The default backend is a directory with one file per key.
1. No database setup required
2. The user can open and back up the files directly
3. Each record is rewritten in full, atomically

TRADEOFFS:
- Not suitable for concurrent writers (one operator, one process)
- Every write rewrites the whole record (fine at bookkeeping volumes)
"""

import os
from pathlib import Path
from typing import Optional

from agency_books.services.storage.interface import (
    KeyValueStoreInterface,
    StorageReadError,
    StorageWriteError,
)


class LocalFileKeyValueStore(KeyValueStoreInterface):
    """Stores each key as a UTF-8 text file inside ``data_dir``."""

    def __init__(self, data_dir: Path):
        self._data_dir = Path(data_dir)

    @property
    def data_dir(self) -> Path:
        return self._data_dir

    def _path_for(self, key: str) -> Path:
        """Map a key to its file, refusing anything that escapes data_dir."""
        if not key or "/" in key or "\\" in key or key.startswith("."):
            raise ValueError(f"Invalid storage key: {key!r}")
        return self._data_dir / key

    def get(self, key: str) -> Optional[str]:
        path = self._path_for(key)
        if not path.exists():
            return None
        try:
            return path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise StorageReadError(f"Could not read '{key}': {e}") from e

    def set(self, key: str, value: str) -> None:
        path = self._path_for(key)
        tmp = path.with_name(path.name + ".tmp")
        try:
            self._data_dir.mkdir(parents=True, exist_ok=True)
            with tmp.open("w", encoding="utf-8") as f:
                f.write(value)
            os.replace(tmp, path)
        except OSError as e:
            raise StorageWriteError(f"Could not write '{key}': {e}") from e

    def remove(self, key: str) -> bool:
        path = self._path_for(key)
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        except OSError as e:
            raise StorageWriteError(f"Could not remove '{key}': {e}") from e
        return True


class InMemoryKeyValueStore(KeyValueStoreInterface):
    """Dictionary-backed store for tests and throwaway sessions."""

    def __init__(self, initial: Optional[dict[str, str]] = None):
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> bool:
        return self._data.pop(key, None) is not None

    def keys(self) -> list[str]:
        return list(self._data)
