import random
from dataclasses import dataclass, field
from typing import Callable

from app.core.config import RETRY_BASE_DELAY, RETRY_JITTER_RATIO, RETRY_MAX_DELAY
from app.modules.fetch_controller.services.errors import FetchError


@dataclass(frozen=True)
class RetryPolicy:
    """Exponential backoff with proportional jitter.

    ``retry_count`` is the number of retries already made, so the first retry
    waits ``base_delay`` plus up to ``jitter_ratio`` of it.
    """

    max_retries: int = 3
    base_delay: float = RETRY_BASE_DELAY
    max_delay: float = RETRY_MAX_DELAY
    jitter_ratio: float = RETRY_JITTER_RATIO
    rng: Callable[[], float] = field(default=random.random, repr=False, compare=False)

    def base_delay_for(self, retry_count: int) -> float:
        return min(self.base_delay * (2 ** retry_count), self.max_delay)

    def delay_for(self, retry_count: int) -> float:
        base = self.base_delay_for(retry_count)
        return base + self.rng() * self.jitter_ratio * base

    def should_retry(self, error: BaseException, retry_count: int) -> bool:
        if retry_count >= self.max_retries:
            return False
        if isinstance(error, FetchError) and not error.retryable:
            return False
        return True
