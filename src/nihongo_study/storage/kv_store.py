"""Key-value persistence (one JSON file per key, fcntl.flock + atomic write)."""

import asyncio
import fcntl
import json
import os
import re
import tempfile
from pathlib import Path
from typing import Any, Protocol

import structlog

from nihongo_study.errors import PersistenceError

logger = structlog.get_logger()

_KEY_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")


class KeyValueStore(Protocol):
    async def load(self, key: str) -> Any | None: ...

    async def save(self, key: str, value: Any) -> None: ...

    async def clear(self) -> None: ...


class JsonFileStore:
    """Stores each key as ``<directory>/<key>.json``.

    Keys are saved independently; there is no transaction across keys.

    Args:
        directory: Directory holding the JSON files. Created on first save.
    """

    def __init__(self, directory: Path):
        self.directory = Path(directory)

    def path_for(self, key: str) -> Path:
        if not _KEY_PATTERN.match(key):
            raise PersistenceError(key, "invalid key")
        return self.directory / f"{key}.json"

    def _read(self, key: str) -> Any | None:
        path = self.path_for(key)
        if not path.exists():
            return None
        try:
            with open(path, encoding="utf-8") as f:
                fcntl.flock(f, fcntl.LOCK_SH)
                try:
                    return json.load(f)
                finally:
                    fcntl.flock(f, fcntl.LOCK_UN)
        except (OSError, json.JSONDecodeError) as e:
            raise PersistenceError(key, str(e)) from e

    def _write(self, key: str, value: Any) -> None:
        path = self.path_for(key)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w", dir=path.parent, delete=False, suffix=".tmp", encoding="utf-8"
            ) as tmp:
                json.dump(value, tmp, ensure_ascii=False, default=str)
            os.replace(tmp.name, path)
        except (OSError, TypeError, ValueError) as e:
            raise PersistenceError(key, str(e)) from e

    def _clear(self) -> None:
        if not self.directory.exists():
            return
        for path in self.directory.glob("*.json"):
            try:
                path.unlink()
            except OSError as e:
                raise PersistenceError(path.stem, str(e)) from e

    async def load(self, key: str) -> Any | None:
        """Return the stored value, or None if the key was never saved."""
        return await asyncio.to_thread(self._read, key)

    async def save(self, key: str, value: Any) -> None:
        await asyncio.to_thread(self._write, key, value)
        logger.debug("store_saved", key=key)

    async def clear(self) -> None:
        await asyncio.to_thread(self._clear)
        logger.info("store_cleared", directory=str(self.directory))
