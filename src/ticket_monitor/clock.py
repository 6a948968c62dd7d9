"""Wall-clock helpers. Timestamps are integer milliseconds since the epoch."""

from __future__ import annotations

import time
from typing import Callable

Clock = Callable[[], int]

MS_PER_MINUTE = 60_000


def now_ms() -> int:
    return int(time.time() * 1000)
