"""
Local Storage Implementations

JsonFileStore keeps one `<key>.json` file per key inside a data
directory. MemoryStore keeps the text in a dict and is used by tests
and throwaway sessions.
"""

import os
import re
import tempfile
from pathlib import Path
from typing import Optional

from household_budget.services.storage.interface import KeyValueStore


_KEY_PATTERN = re.compile(r"^[A-Za-z0-9_.-]+$")


def _check_key(key: str) -> str:
    if not key or not _KEY_PATTERN.match(key) or key.startswith("."):
        raise ValueError(f"Invalid storage key: {key!r}")
    return key


class JsonFileStore(KeyValueStore):
    """
    File-backed key-value area.

    Writes go to a temporary file first and are moved into place, so a
    crash mid-write leaves the previous value intact.
    """

    def __init__(self, data_dir: Path):
        self._data_dir = Path(data_dir)

    @property
    def data_dir(self) -> Path:
        return self._data_dir

    def path_for(self, key: str) -> Path:
        """Get the file path for a key."""
        return self._data_dir / f"{_check_key(key)}.json"

    def read_text(self, key: str) -> Optional[str]:
        path = self.path_for(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def write_text(self, key: str, text: str) -> None:
        path = self.path_for(key)
        self._data_dir.mkdir(parents=True, exist_ok=True)

        fd, tmp_name = tempfile.mkstemp(dir=self._data_dir, prefix=f".{key}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(text)
            os.replace(tmp_name, path)
        except OSError:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def delete(self, key: str) -> None:
        self.path_for(key).unlink(missing_ok=True)


class MemoryStore(KeyValueStore):
    """In-process key-value area."""

    def __init__(self, initial: Optional[dict[str, str]] = None):
        self._values: dict[str, str] = dict(initial or {})

    def read_text(self, key: str) -> Optional[str]:
        return self._values.get(key)

    def write_text(self, key: str, text: str) -> None:
        self._values[key] = text

    def delete(self, key: str) -> None:
        self._values.pop(key, None)

    def keys(self) -> list[str]:
        return sorted(self._values)
