"""Tests for backoff, retry decisions and request timeouts."""

import asyncio

import pytest

from app.modules.fetch_controller.services.errors import FetchError, RequestTimeoutError, with_timeout
from app.modules.fetch_controller.services.retry import RetryPolicy


class TestBackoff:
    """Tests for base_delay_for and delay_for."""

    def test_exponential_growth_capped(self) -> None:
        """Delays double from one second up to ten."""
        policy = RetryPolicy()
        assert [policy.base_delay_for(n) for n in range(6)] == [1.0, 2.0, 4.0, 8.0, 10.0, 10.0]

    def test_monotonic(self) -> None:
        """Base delays never shrink."""
        policy = RetryPolicy(base_delay=0.5, max_delay=30)
        delays = [policy.base_delay_for(n) for n in range(12)]
        assert delays == sorted(delays)
        assert max(delays) == 30

    @pytest.mark.parametrize("roll,expected", [(0.0, 4.0), (0.5, 4.6), (1.0, 5.2)])
    def test_jitter_proportional(self, roll: float, expected: float) -> None:
        """Jitter adds up to 30% of the base delay."""
        policy = RetryPolicy(rng=lambda: roll)
        assert policy.delay_for(2) == pytest.approx(expected)

    def test_jitter_bounds(self) -> None:
        """Random jitter stays within [base, 1.3 * base]."""
        policy = RetryPolicy()
        for n in range(5):
            base = policy.base_delay_for(n)
            for _ in range(20):
                assert base <= policy.delay_for(n) <= base * 1.3


class TestShouldRetry:
    """Tests for should_retry."""

    def test_stops_at_max_retries(self) -> None:
        """No retries once the budget is spent."""
        policy = RetryPolicy(max_retries=3)
        error = FetchError("HTTP 503", status=503)
        assert [policy.should_retry(error, n) for n in range(5)] == [True, True, True, False, False]

    @pytest.mark.parametrize("status", [400, 404, 429, 499])
    def test_client_errors_final(self, status: int) -> None:
        """4xx responses are never retried."""
        assert RetryPolicy().should_retry(FetchError("client", status=status), 0) is False

    @pytest.mark.parametrize("error", [
        FetchError("HTTP 500", status=500),
        FetchError("network down"),
        RequestTimeoutError(),
        RuntimeError("unexpected"),
    ])
    def test_transient_errors_retried(self, error: Exception) -> None:
        """Server errors, network errors and timeouts are retried."""
        assert RetryPolicy().should_retry(error, 0) is True

    def test_zero_budget(self) -> None:
        """max_retries=0 disables retries."""
        assert RetryPolicy(max_retries=0).should_retry(FetchError("x"), 0) is False


class TestWithTimeout:
    """Tests for with_timeout."""

    def test_returns_result(self) -> None:
        """Fast fetchers pass through."""

        async def fetcher():
            return "ok"

        assert asyncio.run(with_timeout(fetcher, 1)) == "ok"

    def test_timeout_error(self) -> None:
        """Slow fetchers raise RequestTimeoutError, not FetchError."""

        async def fetcher():
            await asyncio.sleep(10)

        with pytest.raises(RequestTimeoutError) as excinfo:
            asyncio.run(with_timeout(fetcher, 0.01))
        assert str(excinfo.value) == "Request timeout - please try again"
        assert not isinstance(excinfo.value, FetchError)

    def test_other_errors_propagate(self) -> None:
        """Fetch errors are not rewritten."""

        async def fetcher():
            raise FetchError("HTTP 502", status=502)

        with pytest.raises(FetchError):
            asyncio.run(with_timeout(fetcher, 1))
