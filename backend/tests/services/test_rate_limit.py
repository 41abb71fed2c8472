from app.services.rate_limit import SimpleRateLimiter


def test_sliding_window():
    now = [0.0]
    limiter = SimpleRateLimiter(max_events=2, window_seconds=60, clock=lambda: now[0])
    assert limiter.allow("10.0.0.1")
    assert limiter.allow("10.0.0.1")
    assert not limiter.allow("10.0.0.1")
    assert limiter.allow("10.0.0.2")

    now[0] = 61
    assert limiter.allow("10.0.0.1")


def test_reset_clears_all_keys():
    limiter = SimpleRateLimiter(max_events=1, window_seconds=60)
    assert limiter.allow("k")
    assert not limiter.allow("k")
    limiter.reset()
    assert limiter.allow("k")
