"""Open URLs in the user's browser."""

from __future__ import annotations

import asyncio
import logging
import webbrowser

from ticket_monitor.exceptions import TabOpenError
from ticket_monitor.host.base import TabOpener

logger = logging.getLogger(__name__)


class BrowserTabOpener(TabOpener):
    async def open(self, url: str) -> None:
        opened = await asyncio.to_thread(webbrowser.open_new_tab, url)
        if not opened:
            raise TabOpenError(f"No browser could open {url}")
        logger.debug("Opened %s", url)
