"""Two-tier state access: durable and volatile storage.

Durable storage survives host shutdown (endpoints, settings, snooze).
Volatile storage survives a process restart but not a host shutdown
(count table, notification routes, runtime flags).
"""

from __future__ import annotations

import logging
from typing import Any, Iterable

from ticket_monitor.storage.base import KeyValueStore

logger = logging.getLogger(__name__)

# Durable keys
ENDPOINTS_KEY = "endpoints"
SETTINGS_KEY = "settings"
SNOOZE_KEY = "snoozeState"

# Volatile keys
ENDPOINT_COUNTS_KEY = "endpointCounts"
NOTIFICATION_ROUTES_KEY = "notificationEndpointMap"
IS_ENABLED_KEY = "isEnabled"
LAST_REFRESH_KEY = "lastRefreshTime"
LAST_CHECK_KEY = "lastCheckTime"

MAX_NOTIFICATION_ROUTES = 200


class StateStore:
    """Facade over the durable and volatile tiers.

    Nothing here is cached: every read goes to the backing store, since the
    process may have been restarted between any two calls.
    """

    def __init__(self, durable: KeyValueStore, volatile: KeyValueStore):
        self.durable = durable
        self.volatile = volatile

    async def read_durable(self, keys: Iterable[str]) -> dict[str, Any]:
        return await self.durable.get(keys)

    async def write_durable(self, data: dict[str, Any]) -> None:
        await self.durable.set(data)

    async def remove_durable(self, keys: Iterable[str]) -> None:
        await self.durable.remove(keys)

    async def read_volatile(self, keys: Iterable[str]) -> dict[str, Any]:
        return await self.volatile.get(keys)

    async def write_volatile(self, data: dict[str, Any]) -> None:
        await self.volatile.set(data)

    async def remove_volatile(self, keys: Iterable[str]) -> None:
        await self.volatile.remove(keys)

    # -------------------------------------------------------------------------
    # Endpoint count table
    # -------------------------------------------------------------------------

    async def get_endpoint_counts(self) -> dict[int, int]:
        """Read the id -> last-seen-count table.

        Stored as a list of ``[id, count]`` pairs so integer ids survive JSON.
        An id missing from the table has never been observed.
        """
        data = await self.read_volatile([ENDPOINT_COUNTS_KEY])
        pairs = data.get(ENDPOINT_COUNTS_KEY)
        if not isinstance(pairs, list):
            return {}
        counts: dict[int, int] = {}
        for pair in pairs:
            try:
                endpoint_id, count = pair
                counts[int(endpoint_id)] = int(count)
            except (TypeError, ValueError):
                logger.warning("Dropping malformed count entry: %r", pair)
        return counts

    async def save_endpoint_counts(self, counts: dict[int, int]) -> None:
        await self.write_volatile(
            {ENDPOINT_COUNTS_KEY: [[k, v] for k, v in counts.items()]}
        )

    async def set_endpoint_count(self, endpoint_id: int, count: int) -> None:
        """Re-read the table and write back a single entry."""
        counts = await self.get_endpoint_counts()
        counts[endpoint_id] = count
        await self.save_endpoint_counts(counts)

    # -------------------------------------------------------------------------
    # Notification route table
    # -------------------------------------------------------------------------

    async def get_notification_routes(self) -> dict[str, str]:
        data = await self.read_volatile([NOTIFICATION_ROUTES_KEY])
        pairs = data.get(NOTIFICATION_ROUTES_KEY)
        if not isinstance(pairs, list):
            return {}
        return {str(p[0]): str(p[1]) for p in pairs if isinstance(p, list) and len(p) == 2}

    async def save_notification_routes(self, routes: dict[str, str]) -> None:
        await self.write_volatile(
            {NOTIFICATION_ROUTES_KEY: [[k, v] for k, v in routes.items()]}
        )

    async def add_notification_route(self, notification_id: str, url: str) -> None:
        routes = await self.get_notification_routes()
        routes[notification_id] = url
        # Insertion order is preserved, so the head holds the oldest entries.
        while len(routes) > MAX_NOTIFICATION_ROUTES:
            oldest = next(iter(routes))
            del routes[oldest]
        await self.save_notification_routes(routes)

    async def pop_notification_route(self, notification_id: str) -> str | None:
        routes = await self.get_notification_routes()
        url = routes.pop(notification_id, None)
        if url is not None:
            await self.save_notification_routes(routes)
        return url
