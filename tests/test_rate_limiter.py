from rate_limiter import RATE_LIMITS, RateLimit, RateLimiter


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


def test_login_limit_blocks_sixth_attempt_until_window_resets():
    clock = FakeClock()
    limiter = RateLimiter(clock=clock)
    limit = RATE_LIMITS["login"]

    for _ in range(limit.max_requests):
        assert limiter.hit("1.2.3.4:login", limit) is None

    retry_after = limiter.hit("1.2.3.4:login", limit)
    assert retry_after == 15 * 60

    clock.now += 15 * 60
    assert limiter.hit("1.2.3.4:login", limit) is None


def test_keys_are_counted_independently_and_can_be_reset():
    limiter = RateLimiter(clock=FakeClock())
    limit = RateLimit(window_seconds=60, max_requests=1)

    assert limiter.hit("a:orders", limit) is None
    assert limiter.hit("b:orders", limit) is None
    assert limiter.hit("a:orders", limit) is not None

    limiter.reset("a:orders")
    assert limiter.hit("a:orders", limit) is None


def test_cleanup_drops_expired_windows():
    clock = FakeClock()
    limiter = RateLimiter(clock=clock)
    limiter.hit("a:default", RATE_LIMITS["default"])
    limiter.hit("b:register", RATE_LIMITS["register"])

    clock.now += 61
    assert limiter.cleanup() == 1
