"""In-process key-value store."""

from __future__ import annotations

import copy
from typing import Any, Iterable

from ticket_monitor.storage.base import KeyValueStore


class MemoryStore(KeyValueStore):
    """Dict-backed store. Values are deep-copied in and out so callers never
    share mutable state with the store."""

    def __init__(self, initial: dict[str, Any] | None = None):
        self._data: dict[str, Any] = copy.deepcopy(initial) if initial else {}

    async def get(self, keys: Iterable[str]) -> dict[str, Any]:
        return {k: copy.deepcopy(self._data[k]) for k in keys if k in self._data}

    async def set(self, data: dict[str, Any]) -> None:
        self._data.update(copy.deepcopy(data))

    async def remove(self, keys: Iterable[str]) -> None:
        for key in keys:
            self._data.pop(key, None)

    async def clear(self) -> None:
        self._data.clear()

    def snapshot(self) -> dict[str, Any]:
        """Synchronous copy of the whole store, for inspection."""
        return copy.deepcopy(self._data)
