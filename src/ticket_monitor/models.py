"""Data models shared by the monitoring core."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass
class Endpoint:
    """One configured ticket-search query."""

    id: int
    name: str
    url: str
    enabled: bool = True
    created_at: int | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Endpoint:
        return cls(
            id=int(data["id"]),
            name=str(data.get("name", "")),
            url=str(data.get("url", "")),
            enabled=data.get("enabled") is True,
            created_at=data.get("createdAt"),
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "url": self.url,
            "enabled": self.enabled,
        }
        if self.created_at is not None:
            data["createdAt"] = self.created_at
        return data


@dataclass
class Settings:
    """User settings as stored under the ``settings`` key.

    ``check_interval_minutes`` is kept as configured; callers that schedule
    with it use :attr:`effective_interval`.
    """

    check_interval_minutes: int = 1
    sound_enabled: bool = True
    notification_enabled: bool = True
    dark_mode: bool = False
    debug_mode: bool = False

    @property
    def effective_interval(self) -> int:
        try:
            return max(1, int(self.check_interval_minutes or 1))
        except (TypeError, ValueError):
            return 1

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> Settings:
        if not data:
            return cls()
        interval = data.get("checkIntervalMinutes", data.get("checkInterval", 1))
        return cls(
            check_interval_minutes=interval,
            sound_enabled=data.get("soundEnabled", True) is True,
            notification_enabled=data.get("notificationEnabled", True) is True,
            dark_mode=data.get("darkMode") is True,
            debug_mode=data.get("debugMode") is True,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "checkIntervalMinutes": self.check_interval_minutes,
            "soundEnabled": self.sound_enabled,
            "notificationEnabled": self.notification_enabled,
            "darkMode": self.dark_mode,
            "debugMode": self.debug_mode,
        }


@dataclass
class SnoozeState:
    """Persisted snooze window. ``duration_minutes == 0`` means indefinite."""

    end_time: int
    duration_minutes: int

    @property
    def indefinite(self) -> bool:
        return self.duration_minutes == 0

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SnoozeState:
        return cls(
            end_time=int(data["endTime"]),
            duration_minutes=int(data.get("durationMinutes", data.get("duration", 0))),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"endTime": self.end_time, "durationMinutes": self.duration_minutes}


@dataclass
class SnoozeStatus:
    is_snoozed: bool
    snooze_end_time: int | None
    remaining_minutes: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "isSnoozed": self.is_snoozed,
            "snoozeEndTime": self.snooze_end_time,
            "remainingMinutes": self.remaining_minutes,
        }


@dataclass
class Cookie:
    name: str
    value: str
