"""Durable and volatile persistence tiers."""

from ticket_monitor.storage.base import KeyValueStore
from ticket_monitor.storage.json_file import JsonFileStore
from ticket_monitor.storage.memory import MemoryStore
from ticket_monitor.storage.state import StateStore

__all__ = [
    "KeyValueStore",
    "JsonFileStore",
    "MemoryStore",
    "StateStore",
]
