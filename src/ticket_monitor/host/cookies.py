"""Ambient session cookies for endpoint hosts."""

from __future__ import annotations

import asyncio
import logging
from http.cookiejar import LoadError, MozillaCookieJar
from pathlib import Path

from ticket_monitor.exceptions import CookieError
from ticket_monitor.host.base import CookieSource
from ticket_monitor.models import Cookie

logger = logging.getLogger(__name__)


def domain_matches(host: str, cookie_domain: str) -> bool:
    """True if a cookie set for ``cookie_domain`` would be sent to ``host``."""
    host = host.lower()
    domain = cookie_domain.lower().lstrip(".")
    return host == domain or host.endswith("." + domain)


class CookieFileSource(CookieSource):
    """Read cookies from a Netscape-format ``cookies.txt`` export.

    The file is re-read on every lookup so a fresh export from the browser is
    picked up without restarting. Expired cookies are skipped.
    """

    def __init__(self, path: Path):
        self.path = Path(path)

    def _load(self) -> MozillaCookieJar:
        jar = MozillaCookieJar(str(self.path))
        try:
            jar.load(ignore_discard=True, ignore_expires=False)
        except FileNotFoundError as e:
            raise CookieError(f"Cookie file not found: {self.path}") from e
        except (LoadError, OSError) as e:
            raise CookieError(f"Cannot load cookie file {self.path}: {e}") from e
        return jar

    async def cookies_for(self, host: str) -> list[Cookie]:
        jar = await asyncio.to_thread(self._load)
        cookies = [
            Cookie(name=c.name, value=c.value or "")
            for c in jar
            if domain_matches(host, c.domain)
        ]
        logger.debug("Loaded %d cookies for %s from %s", len(cookies), host, self.path)
        return cookies


class StaticCookieSource(CookieSource):
    """Fixed cookies keyed by cookie domain."""

    def __init__(self, cookies: dict[str, list[Cookie]] | None = None):
        self._cookies = cookies or {}

    async def cookies_for(self, host: str) -> list[Cookie]:
        found: list[Cookie] = []
        for domain, cookies in self._cookies.items():
            if domain_matches(host, domain):
                found.extend(cookies)
        return found
