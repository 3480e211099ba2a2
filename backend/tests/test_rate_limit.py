from sitekeeper.core.rate_limit import RateLimiter


class FakeTimer:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


def test_minute_limit_and_window_expiry():
    timer = FakeTimer()
    limiter = RateLimiter(requests_per_minute=2, requests_per_hour=100, timer=timer)

    assert limiter.is_allowed("10.0.0.1")[0]
    assert limiter.is_allowed("10.0.0.1")[0]
    allowed, message = limiter.is_allowed("10.0.0.1")
    assert not allowed
    assert "per minute" in message

    # Other clients are counted separately
    assert limiter.is_allowed("10.0.0.2")[0]

    timer.now += 61
    assert limiter.is_allowed("10.0.0.1")[0]


def test_hour_limit():
    timer = FakeTimer()
    limiter = RateLimiter(requests_per_minute=10, requests_per_hour=3, timer=timer)
    for _ in range(3):
        assert limiter.is_allowed("client")[0]
        timer.now += 61
    allowed, message = limiter.is_allowed("client")
    assert not allowed
    assert "per hour" in message


def test_idle_clients_are_forgotten():
    timer = FakeTimer()
    limiter = RateLimiter(requests_per_minute=5, requests_per_hour=50, timer=timer)
    limiter.is_allowed("a")
    limiter.is_allowed("b")
    assert set(limiter.history) == {"a", "b"}

    timer.now += 1800
    limiter.is_allowed("b")
    timer.now += 1801
    limiter.prune()
    assert set(limiter.history) == {"b"}

    # A rejected first request leaves no entry behind
    strict = RateLimiter(requests_per_minute=0, requests_per_hour=10, timer=timer)
    assert not strict.is_allowed("c")[0]
    assert strict.history == {}
