import asyncio
import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Optional

from app.core.config import DEDUPING_INTERVAL

logger = logging.getLogger(__name__)


class EntryState(str, Enum):
    IDLE = "idle"
    IN_FLIGHT = "in_flight"
    SETTLED = "settled"


@dataclass
class CacheEntry:
    state: EntryState = EntryState.IDLE
    result: Any = None
    has_result: bool = False
    expires_at: float = 0.0
    subscribers: int = 0
    task: Optional["asyncio.Future[Any]"] = None


class FetchCache:
    """Request-keyed response cache with in-flight deduplication.

    Concurrent fetches of one key share a single task. Only a successful
    fetch writes the entry; a failed or cancelled one leaves the last settled
    result in place.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._entries: Dict[str, CacheEntry] = {}
        self._clock = clock

    def entry(self, key: str) -> CacheEntry:
        return self._entries.setdefault(key, CacheEntry())

    def get(self, key: str) -> Any:
        """Fresh settled result for ``key``, or None."""
        entry = self._entries.get(key)
        if entry is None or not entry.has_result or self._clock() >= entry.expires_at:
            return None
        return entry.result

    async def fetch(
        self,
        key: str,
        fetcher: Callable[[], Awaitable[Any]],
        *,
        deduping_interval: float = DEDUPING_INTERVAL,
        force: bool = False,
    ) -> Any:
        entry = self.entry(key)
        if not force and entry.has_result and self._clock() < entry.expires_at:
            return entry.result
        # A request cancelled before it started never reached its cleanup.
        if entry.task is None or entry.task.done():
            entry.state = EntryState.IN_FLIGHT
            entry.task = asyncio.ensure_future(self._run(entry, fetcher, deduping_interval))
            entry.task.add_done_callback(_retrieve_exception)
        else:
            logger.debug("Joining in-flight request for %s", key)
        entry.subscribers += 1
        try:
            # A cancelled subscriber must not cancel the shared request.
            return await asyncio.shield(entry.task)
        finally:
            entry.subscribers -= 1

    async def _run(self, entry: CacheEntry, fetcher: Callable[[], Awaitable[Any]], deduping_interval: float) -> Any:
        try:
            result = await fetcher()
        finally:
            entry.task = None
            entry.state = EntryState.SETTLED if entry.has_result else EntryState.IDLE
        entry.result = result
        entry.has_result = True
        entry.expires_at = self._clock() + deduping_interval
        entry.state = EntryState.SETTLED
        return result

    def invalidate(self, key: Optional[str] = None) -> None:
        """Mark one key (or every key) stale; the last result stays readable through ``entry``."""
        entries = self._entries.values() if key is None else [self._entries[key]] if key in self._entries else []
        for entry in entries:
            entry.expires_at = 0.0

    def clear(self) -> None:
        for entry in self._entries.values():
            if entry.task is not None:
                entry.task.cancel()
        self._entries.clear()


def _retrieve_exception(task: "asyncio.Future[Any]") -> None:
    # Every subscriber may have gone away before the shared request failed.
    if not task.cancelled() and task.exception() is not None:
        logger.debug("Shared request failed: %r", task.exception())
