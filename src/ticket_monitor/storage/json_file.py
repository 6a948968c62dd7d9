"""JSON-file key-value store."""

from __future__ import annotations

import asyncio
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Iterable

from ticket_monitor.exceptions import StorageUnavailable
from ticket_monitor.storage.base import KeyValueStore

logger = logging.getLogger(__name__)


class JsonFileStore(KeyValueStore):
    """Persist the whole key space as one JSON object on disk.

    Writes go to a temp file in the same directory and are moved into place,
    so a crash mid-write leaves the previous contents intact. Operations on
    one instance are serialized with an ``asyncio.Lock``; there is no
    cross-process locking.

    Args:
        path: Location of the JSON file. Parent directories are created on
            first write.
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        self._lock = asyncio.Lock()

    def _load(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise StorageUnavailable(f"Corrupt state file {self.path}: {e}") from e
        except OSError as e:
            raise StorageUnavailable(f"Cannot read {self.path}: {e}") from e
        if not isinstance(data, dict):
            raise StorageUnavailable(f"State file {self.path} does not hold an object")
        return data

    def _dump(self, data: dict[str, Any]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(data, f, indent=2)
                os.replace(tmp_name, self.path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise StorageUnavailable(f"Cannot write {self.path}: {e}") from e

    async def get(self, keys: Iterable[str]) -> dict[str, Any]:
        wanted = list(keys)
        async with self._lock:
            data = await asyncio.to_thread(self._load)
        return {k: data[k] for k in wanted if k in data}

    async def set(self, data: dict[str, Any]) -> None:
        async with self._lock:
            current = await asyncio.to_thread(self._load)
            current.update(data)
            await asyncio.to_thread(self._dump, current)

    async def remove(self, keys: Iterable[str]) -> None:
        doomed = list(keys)
        async with self._lock:
            current = await asyncio.to_thread(self._load)
            if not any(k in current for k in doomed):
                return
            for key in doomed:
                current.pop(key, None)
            await asyncio.to_thread(self._dump, current)

    async def clear(self) -> None:
        async with self._lock:
            try:
                await asyncio.to_thread(self.path.unlink, True)
            except OSError as e:
                raise StorageUnavailable(f"Cannot remove {self.path}: {e}") from e
        logger.debug("Cleared state file %s", self.path)
