"""Desktop notifications via notify-send (Linux) and osascript (macOS)."""

from __future__ import annotations

import asyncio
import logging
import platform

from ticket_monitor.exceptions import NotificationError
from ticket_monitor.host.base import NotificationDisplay

logger = logging.getLogger(__name__)

APP_NAME = "ticket-monitor"
DEFAULT_ACTION = "default"


def _escape_applescript(text: str) -> str:
    return text.replace("\\", "\\\\").replace('"', '\\"')


class DesktopNotifier(NotificationDisplay):
    """Show notifications with the platform's command-line notifier.

    On Linux each notification is sent with a default action and
    ``--wait``; the notify-send process stays alive until the notification
    is clicked or closed, and its output tells which. macOS notifications
    sent through osascript cannot report clicks.
    """

    def __init__(self, system: str | None = None, app_name: str = APP_NAME):
        super().__init__()
        self.system = system or platform.system()
        self.app_name = app_name
        self._pending: dict[str, asyncio.subprocess.Process] = {}
        self._watchers: set[asyncio.Task] = set()

    async def show(self, notification_id: str, title: str, body: str, icon: str | None = None) -> str:
        if self.system == "Linux":
            await self._show_linux(notification_id, title, body, icon)
        elif self.system == "Darwin":
            await self._show_macos(title, body)
        else:
            raise NotificationError(f"Notifications are not supported on {self.system}")
        logger.debug("Showed notification %s", notification_id)
        return notification_id

    async def _show_linux(self, notification_id: str, title: str, body: str, icon: str | None) -> None:
        args = [
            "notify-send",
            f"--app-name={self.app_name}",
            "--urgency=critical",
            f"--action={DEFAULT_ACTION}=Open",
            "--wait",
        ]
        if icon:
            args.append(f"--icon={icon}")
        args += [title, body]
        try:
            proc = await asyncio.create_subprocess_exec(
                *args,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except (FileNotFoundError, PermissionError) as e:
            raise NotificationError(f"notify-send unavailable: {e}") from e

        self._pending[notification_id] = proc
        task = asyncio.create_task(self._watch(notification_id, proc))
        self._watchers.add(task)
        task.add_done_callback(self._watchers.discard)

    async def _watch(self, notification_id: str, proc: asyncio.subprocess.Process) -> None:
        stdout, stderr = await proc.communicate()
        still_pending = self._pending.pop(notification_id, None) is not None
        if proc.returncode not in (0, None) and stderr:
            logger.warning("notify-send failed: %s", stderr.decode(errors="replace").strip())
        action = stdout.decode(errors="replace").strip()
        try:
            if action == DEFAULT_ACTION and self._on_click is not None:
                await self._on_click(notification_id)
            elif still_pending and self._on_close is not None:
                await self._on_close(notification_id)
        except Exception:
            logger.exception("Notification handler for %s failed", notification_id)

    async def _show_macos(self, title: str, body: str) -> None:
        script = (
            f'display notification "{_escape_applescript(body)}" '
            f'with title "{_escape_applescript(title)}" sound name "default"'
        )
        try:
            proc = await asyncio.create_subprocess_exec(
                "osascript", "-e", script,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.PIPE,
            )
        except (FileNotFoundError, PermissionError) as e:
            raise NotificationError(f"osascript unavailable: {e}") from e
        _, stderr = await proc.communicate()
        if proc.returncode != 0:
            raise NotificationError(
                f"osascript failed: {stderr.decode(errors='replace').strip()}"
            )

    async def clear(self, notification_id: str) -> None:
        proc = self._pending.pop(notification_id, None)
        if proc is not None and proc.returncode is None:
            try:
                proc.terminate()
            except ProcessLookupError:
                pass
