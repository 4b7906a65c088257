"""In-memory store of cached views, invalidated by key after writes."""

import logging
import time
from collections import OrderedDict
from collections.abc import Awaitable, Callable
from typing import Any

logger = logging.getLogger(__name__)

USER_PROFILE_DATA = "userProfileData"
DASHBOARD_DATA = "dashboardData"
USER_GOALS = "userGoals"


def query_key(name: str, user_id: str) -> str:
    """Build a per-user cache key, e.g. ``userGoals:<user_id>``."""
    return f"{name}:{user_id}"


class QueryCache:
    """Cache of fetched views with optional expiry and LRU eviction."""

    def __init__(self, max_size: int = 1000) -> None:
        self._entries: OrderedDict[str, tuple[Any, float | None]] = OrderedDict()
        self._max_size = max_size

    def get(self, key: str) -> Any | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if expires_at is not None and time.monotonic() > expires_at:
            del self._entries[key]
            return None
        self._entries.move_to_end(key)
        return value

    def set(self, key: str, value: Any, ttl: float | None = None) -> None:
        """Store a value. ``ttl`` is in seconds; None keeps it until invalidated."""
        expires_at = time.monotonic() + ttl if ttl else None
        self._entries[key] = (value, expires_at)
        self._entries.move_to_end(key)
        while len(self._entries) > self._max_size:
            self._entries.popitem(last=False)

    async def get_or_load(
        self, key: str, loader: Callable[[], Awaitable[Any]], ttl: float | None = None
    ) -> Any:
        value = self.get(key)
        if value is None:
            value = await loader()
            self.set(key, value, ttl)
        return value

    def invalidate(self, key: str) -> bool:
        """Drop a cached view so the next reader refetches. Returns True if it existed."""
        existed = self._entries.pop(key, None) is not None
        logger.debug("Invalidated %s (cached=%s)", key, existed)
        return existed

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None
