"""Per-identity sliding-window limits on new debate sessions."""

import asyncio
import logging
import time
from collections import deque
from collections.abc import Callable

logger = logging.getLogger(__name__)


class SlidingWindowRateLimiter:
    """Admits at most `max_requests` session starts per identity per window.

    Timestamps live in process memory only. The prune, the decision and the
    record happen under one lock, so concurrent checks for the same identity
    cannot both claim the last slot.
    """

    def __init__(
        self,
        window_seconds: float = 10.0,
        max_requests: int = 8,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.window_seconds = window_seconds
        self.max_requests = max_requests
        self._clock = clock
        self._windows: dict[str, deque[float]] = {}
        self._lock = asyncio.Lock()

    async def check(self, identity: str) -> bool:
        """Return True and record the attempt if admitted, else False."""
        async with self._lock:
            now = self._clock()
            window = self._windows.setdefault(identity, deque())
            while window and now - window[0] >= self.window_seconds:
                window.popleft()

            if len(window) >= self.max_requests:
                logger.warning("Rate limited %s (%s in window)", identity, len(window))
                return False

            window.append(now)
            return True

