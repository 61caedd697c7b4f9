import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional

from app.core.config import DEDUPING_INTERVAL
from app.modules.fetch_controller.services.cache import FetchCache
from app.modules.fetch_controller.services.retry import RetryPolicy

logger = logging.getLogger(__name__)

Fetcher = Callable[[str], Awaitable[Any]]


class Resource:
    """One cached, retried request as seen by a single consumer.

    ``key`` is the request path; ``None`` means "nothing to fetch yet" and
    no request is made. ``data`` holds the last response envelope and
    ``error`` either the fetch failure message or the envelope's own
    ``error`` when it reports ``success: false``.
    """

    def __init__(
        self,
        key: Optional[str],
        fetcher: Fetcher,
        *,
        cache: FetchCache,
        retry_policy: Optional[RetryPolicy] = None,
        deduping_interval: float = DEDUPING_INTERVAL,
        revalidate_on_focus: bool = False,
        revalidate_on_reconnect: bool = False,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self.key = key
        self.data: Any = None
        self.error: Optional[str] = None
        self.exception: Optional[BaseException] = None
        self.is_loading = False
        self._fetcher = fetcher
        self._cache = cache
        self._retry_policy = retry_policy or RetryPolicy(max_retries=0)
        self._deduping_interval = deduping_interval
        self._revalidate_on_focus = revalidate_on_focus
        self._revalidate_on_reconnect = revalidate_on_reconnect
        self._sleep = sleep
        self._task: Optional["asyncio.Task[Any]"] = None
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def load(self, force: bool = False) -> Any:
        if self.key is None or self._closed:
            return self.data
        if self._task is None or self._task.done():
            self._task = asyncio.ensure_future(self._load_with_retry(force))
        try:
            return await self._task
        except asyncio.CancelledError:
            if not self._closed:
                raise
            return self.data

    async def refetch(self) -> Any:
        return await self.load(force=True)

    async def on_focus(self) -> Any:
        if self._revalidate_on_focus:
            return await self.refetch()
        return self.data

    async def on_reconnect(self) -> Any:
        if self._revalidate_on_reconnect:
            return await self.refetch()
        return self.data

    def close(self) -> None:
        """Stop any pending retry; the resource stays readable but never fetches again."""
        self._closed = True
        if self._task is not None and not self._task.done():
            self._task.cancel()

    async def _load_with_retry(self, force: bool) -> Any:
        self.is_loading = True
        retry_count = 0
        try:
            while True:
                try:
                    envelope = await self._cache.fetch(
                        self.key,
                        lambda: self._fetcher(self.key),
                        deduping_interval=self._deduping_interval,
                        force=force,
                    )
                except Exception as exc:
                    self.exception = exc
                    self.error = str(exc)
                    if not self._retry_policy.should_retry(exc, retry_count):
                        logger.warning("Giving up on %s after %d retries: %s", self.key, retry_count, exc)
                        return self.data
                    delay = self._retry_policy.delay_for(retry_count)
                    retry_count += 1
                    logger.info("Retrying %s in %.2fs (attempt %d/%d)",
                                self.key, delay, retry_count, self._retry_policy.max_retries)
                    await self._sleep(delay)
                    force = True
                    continue
                self._settle(envelope)
                return self.data
        finally:
            self.is_loading = False

    def _settle(self, envelope: Any) -> None:
        self.data = envelope
        self.exception = None
        if isinstance(envelope, dict) and envelope.get("success") is False:
            self.error = envelope.get("error") or "Request failed"
        else:
            self.error = None
