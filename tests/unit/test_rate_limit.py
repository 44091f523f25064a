"""Unit tests for SlidingWindowRateLimiter."""

from relay.rate_limit import SlidingWindowRateLimiter
from tests.mocks import FakeClock


class TestSlidingWindowRateLimiter:
    """Sliding-window admission with an injected clock."""

    def test_allows_up_to_max(self, clock: FakeClock):
        limiter = SlidingWindowRateLimiter(3, 60.0, time_func=clock)
        assert [limiter.is_limited() for _ in range(4)] == [False, False, False, True]

    def test_window_slides(self, clock: FakeClock):
        limiter = SlidingWindowRateLimiter(2, 60.0, time_func=clock)
        limiter.is_limited()
        clock.advance(30)
        limiter.is_limited()
        assert limiter.is_limited() is True

        clock.advance(31)
        assert limiter.is_limited() is False

    def test_rejections_not_counted(self, clock: FakeClock):
        limiter = SlidingWindowRateLimiter(1, 10.0, time_func=clock)
        limiter.is_limited()
        for _ in range(5):
            clock.advance(1)
            assert limiter.is_limited() is True
        clock.advance(6)
        assert limiter.is_limited() is False

    def test_remaining(self, clock: FakeClock):
        limiter = SlidingWindowRateLimiter(10, 60.0, time_func=clock)
        assert limiter.remaining == 10
        limiter.is_limited()
        assert limiter.remaining == 9
        clock.advance(61)
        assert limiter.remaining == 10

    def test_rejection_logged_with_lazy_args(self, clock: FakeClock, caplog):
        limiter = SlidingWindowRateLimiter(1, 60.0, time_func=clock)
        limiter.is_limited()
        with caplog.at_level("WARNING", logger="relay.rate_limit"):
            limiter.is_limited()

        record = caplog.records[-1]
        assert record.msg == "Rate limited: %d requests in %gs"
        assert record.args == (1, 60.0)
        assert record.getMessage() == "Rate limited: 1 requests in 60s"
