import asyncio
from typing import Awaitable, Callable, Optional, TypeVar

T = TypeVar("T")

TIMEOUT_MESSAGE = "Request timeout - please try again"


class FetchError(Exception):
    """A failed request. 4xx responses are final, everything else may be retried."""

    def __init__(self, message: str, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        self.status = status

    @property
    def retryable(self) -> bool:
        return self.status is None or not 400 <= self.status < 500


class RequestTimeoutError(Exception):
    def __init__(self, message: str = TIMEOUT_MESSAGE) -> None:
        super().__init__(message)
        self.message = message


async def with_timeout(fetcher: Callable[[], Awaitable[T]], seconds: float) -> T:
    try:
        return await asyncio.wait_for(fetcher(), timeout=seconds)
    except asyncio.TimeoutError:
        raise RequestTimeoutError() from None
