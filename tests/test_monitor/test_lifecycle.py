"""Tests for the monitor's lifecycle entry points."""

import asyncio
import logging

from ticket_monitor.monitor import (
    DEFAULT_ENDPOINT_NAME,
    TICKET_CHECK_ALARM,
    migrate_settings,
    set_debug_mode,
)
from ticket_monitor.snooze import SNOOZE_ALARM
from ticket_monitor.storage.state import (
    ENDPOINTS_KEY,
    IS_ENABLED_KEY,
    SETTINGS_KEY,
    SNOOZE_KEY,
)


def test_migrate_settings_fills_missing_fields():
    migrated, changed = migrate_settings({"checkInterval": 5, "soundEnabled": False})
    assert changed is True
    assert migrated == {
        "checkIntervalMinutes": 5,
        "soundEnabled": False,
        "notificationEnabled": True,
        "darkMode": False,
        "debugMode": False,
    }


def test_migrate_settings_leaves_complete_settings_alone():
    complete, _ = migrate_settings(None)
    migrated, changed = migrate_settings(complete)
    assert changed is False
    assert migrated == complete


def test_install_seeds_defaults(harness):
    async def scenario():
        await harness.monitor.on_installed("install")
        await harness.monitor.drain()
        return await harness.state.read_durable([ENDPOINTS_KEY, SETTINGS_KEY])

    data = asyncio.run(scenario())
    assert [e["name"] for e in data[ENDPOINTS_KEY]] == [DEFAULT_ENDPOINT_NAME]
    assert data[ENDPOINTS_KEY][0]["enabled"] is True
    assert data[SETTINGS_KEY]["checkIntervalMinutes"] == 1
    assert harness.scheduler.recurring == {TICKET_CHECK_ALARM: 1}
    assert len(harness.requests) == 1


def test_install_preserves_existing_endpoints(harness):
    async def scenario():
        await harness.configure(
            endpoints=[harness.endpoint(1, "Mine")],
            settings={"checkIntervalMinutes": 5, "soundEnabled": True, "notificationEnabled": True},
        )
        await harness.monitor.on_installed("update")
        await harness.monitor.drain()
        return await harness.state.read_durable([ENDPOINTS_KEY, SETTINGS_KEY])

    data = asyncio.run(scenario())
    assert [e["name"] for e in data[ENDPOINTS_KEY]] == ["Mine"]
    assert data[SETTINGS_KEY]["debugMode"] is False
    assert data[SETTINGS_KEY]["darkMode"] is False
    assert harness.scheduler.recurring == {TICKET_CHECK_ALARM: 5}


def test_zero_interval_is_coerced_to_one_minute(harness):
    async def scenario():
        await harness.configure(endpoints=[], settings=harness.settings(checkIntervalMinutes=0))
        await harness.monitor.start_monitoring()
        await harness.monitor.drain()
        return await harness.state.read_durable([SETTINGS_KEY])

    stored = asyncio.run(scenario())
    assert harness.scheduler.recurring == {TICKET_CHECK_ALARM: 1}
    assert stored[SETTINGS_KEY]["checkIntervalMinutes"] == 0


def test_install_restores_running_snooze(harness):
    async def scenario():
        await harness.durable.set({SNOOZE_KEY: {"endTime": harness.start_ms + 12 * 60_000, "durationMinutes": 20}})
        await harness.monitor.on_installed("startup")
        await harness.monitor.drain()

    asyncio.run(scenario())
    assert harness.scheduler.once == {SNOOZE_ALARM: 12}


def test_install_clears_expired_snooze(harness):
    async def scenario():
        await harness.durable.set({SNOOZE_KEY: {"endTime": harness.start_ms - 1, "durationMinutes": 20}})
        await harness.monitor.on_installed("startup")
        await harness.monitor.drain()
        return await harness.state.read_durable([SNOOZE_KEY])

    assert asyncio.run(scenario()) == {}
    assert harness.scheduler.once == {}


def test_install_with_broken_storage_does_not_raise(broken_harness):
    async def scenario():
        await broken_harness.monitor.on_installed("startup")
        await broken_harness.monitor.drain()

    asyncio.run(scenario())
    assert broken_harness.scheduler.recurring == {TICKET_CHECK_ALARM: 1}
    assert broken_harness.requests == []


def test_ticket_alarm_respects_enabled_flag(harness):
    async def scenario():
        await harness.configure(endpoints=[harness.endpoint(1)])
        await harness.monitor.handle_message({"action": "toggleEnabled", "enabled": False})
        await harness.monitor.on_alarm(TICKET_CHECK_ALARM)
        paused = len(harness.requests)
        await harness.monitor.handle_message({"action": "toggleEnabled", "enabled": True})
        await harness.monitor.on_alarm(TICKET_CHECK_ALARM)
        return paused

    assert asyncio.run(scenario()) == 0
    assert len(harness.requests) == 1


def test_ticket_alarm_defaults_to_enabled(harness):
    async def scenario():
        await harness.configure(endpoints=[harness.endpoint(1)])
        await harness.volatile.clear()
        await harness.monitor.on_alarm(TICKET_CHECK_ALARM)
        return await harness.state.read_volatile([IS_ENABLED_KEY])

    assert asyncio.run(scenario()) == {}
    assert len(harness.requests) == 1


def test_snooze_alarm_clears_snooze(harness):
    async def scenario():
        await harness.monitor.snooze.set_snooze(5)
        await harness.scheduler.fire(SNOOZE_ALARM)
        return await harness.monitor.snooze.is_snoozed()

    assert asyncio.run(scenario()) is False
    assert harness.badge.text == ""


def test_settings_change_toggles_debug_logging(harness):
    package_logger = logging.getLogger("ticket_monitor")
    try:
        asyncio.run(harness.monitor.on_settings_changed({"debugMode": True}))
        assert package_logger.level == logging.DEBUG
        asyncio.run(harness.monitor.on_settings_changed({"debugMode": False}))
        assert package_logger.level == logging.WARNING
        asyncio.run(harness.monitor.on_settings_changed({"soundEnabled": False}))
        assert package_logger.level == logging.WARNING
    finally:
        package_logger.setLevel(logging.NOTSET)


def test_set_debug_mode():
    package_logger = logging.getLogger("ticket_monitor")
    try:
        set_debug_mode(True)
        assert package_logger.isEnabledFor(logging.DEBUG)
        set_debug_mode(False)
        assert not package_logger.isEnabledFor(logging.INFO)
    finally:
        package_logger.setLevel(logging.NOTSET)


def test_shutdown_cancels_every_timer(harness):
    async def scenario():
        await harness.configure(endpoints=[])
        await harness.monitor.start_monitoring()
        await harness.monitor.snooze.set_snooze(5)
        await harness.monitor.shutdown()

    asyncio.run(scenario())
    assert harness.scheduler.recurring == {}
    assert harness.scheduler.once == {}
    assert set(harness.scheduler.cancelled) >= {TICKET_CHECK_ALARM, SNOOZE_ALARM}
