"""
Local key-value blob persistence.

Each key holds one JSON value, written whole on every save. ``FileStore``
keeps one ``<key>.json`` file per key under a directory; ``MemoryStore``
keeps raw strings in a dict and is what tests inject.
"""

import json
import os
from pathlib import Path
from typing import Any, Optional, Protocol

from railbook.logging import get_logger

logger = get_logger(__name__)


class KeyValueStore(Protocol):
    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...

    def remove(self, key: str) -> None: ...


class MemoryStore:
    """In-process store holding raw blob strings."""

    def __init__(self, initial: Optional[dict[str, str]] = None):
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)


class FileStore:
    """
    Directory-backed store, one file per key.

    Writes go to ``<key>.json.tmp`` first and are moved into place with
    ``os.replace``.
    """

    def __init__(self, directory: Path | str):
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def get(self, key: str) -> Optional[str]:
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def set(self, key: str, value: str) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self._path(key)
        tmp = path.with_name(f"{path.name}.tmp")
        with open(tmp, "w", encoding="utf-8") as f:
            f.write(value)
        os.replace(tmp, path)
        logger.debug(f"Wrote blob '{key}' ({len(value)} bytes)")

    def remove(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)


def dump_blob(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False)


def load_blob(raw: str) -> Any:
    """Parse a stored blob. Raises ``ValueError`` on malformed JSON."""
    return json.loads(raw)
