"""Badge renderers."""

from __future__ import annotations

import asyncio
import json
import logging
import os
from pathlib import Path

from ticket_monitor.exceptions import BadgeError
from ticket_monitor.host.base import BadgeDisplay

logger = logging.getLogger(__name__)


class StatusFileBadge(BadgeDisplay):
    """Write the badge as ``{"text": ..., "color": ...}`` JSON.

    Intended for status bars (tmux, polybar, waybar) that poll a file.
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        self.text = ""
        self.color = ""

    def _write(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp.write_text(json.dumps({"text": self.text, "color": self.color}), encoding="utf-8")
        os.replace(tmp, self.path)

    async def _flush(self) -> None:
        try:
            await asyncio.to_thread(self._write)
        except OSError as e:
            raise BadgeError(f"Cannot write badge file {self.path}: {e}") from e

    async def set_text(self, text: str) -> None:
        self.text = text
        await self._flush()

    async def set_color(self, color: str) -> None:
        self.color = color
        await self._flush()


class LogBadge(BadgeDisplay):
    """Log badge changes instead of rendering them."""

    def __init__(self) -> None:
        self.text = ""
        self.color = ""

    async def set_text(self, text: str) -> None:
        if text != self.text:
            logger.info("Badge: %r", text)
        self.text = text

    async def set_color(self, color: str) -> None:
        self.color = color
