"""Abstract base class for key-value persistence tiers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Iterable


class KeyValueStore(ABC):
    """Asynchronous JSON-value store addressed by string keys.

    Implementations raise :class:`~ticket_monitor.exceptions.StorageUnavailable`
    when the backing medium cannot be read or written.
    """

    @abstractmethod
    async def get(self, keys: Iterable[str]) -> dict[str, Any]:
        """Return the requested keys that exist. Missing keys are omitted."""
        ...

    @abstractmethod
    async def set(self, data: dict[str, Any]) -> None:
        """Merge ``data`` into the store."""
        ...

    @abstractmethod
    async def remove(self, keys: Iterable[str]) -> None:
        """Delete keys. Missing keys are ignored."""
        ...

    @abstractmethod
    async def clear(self) -> None:
        """Delete every key."""
        ...
