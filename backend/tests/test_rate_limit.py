"""Tests for the rate limiting pure function and middleware integration."""

from orderdesk.core.config import settings
from orderdesk.middleware.request_context import RateLimiter, check_rate_limit


class TestCheckRateLimit:
    """Unit tests for the pure function — no middleware, no HTTP."""

    def test_allows_within_limit(self):
        bucket: dict = {}
        allowed, retry = check_rate_limit(bucket, "client-a", max_per_minute=60, now=0.0)
        assert allowed is True
        assert retry == 0.0

    def test_denies_after_exhaustion(self):
        bucket: dict = {}
        for _ in range(60):
            check_rate_limit(bucket, "client-a", max_per_minute=60, now=0.0)

        allowed, retry = check_rate_limit(bucket, "client-a", max_per_minute=60, now=0.0)
        assert allowed is False
        assert retry > 0

    def test_refills_over_time(self):
        bucket: dict = {}
        for _ in range(60):
            check_rate_limit(bucket, "client-a", max_per_minute=60, now=0.0)

        # 2 seconds later: ~2 tokens back
        allowed, _ = check_rate_limit(bucket, "client-a", max_per_minute=60, now=2.0)
        assert allowed is True

    def test_separate_keys_independent(self):
        bucket: dict = {}
        for _ in range(60):
            check_rate_limit(bucket, "client-a", max_per_minute=60, now=0.0)

        allowed, _ = check_rate_limit(bucket, "client-b", max_per_minute=60, now=0.0)
        assert allowed is True

    def test_zero_limit_always_allows(self):
        bucket: dict = {}
        allowed, _ = check_rate_limit(bucket, "any", max_per_minute=0, now=0.0)
        assert allowed is True


class TestRateLimiter:

    def test_sweeps_idle_clients(self):
        limiter = RateLimiter(sweep_every=2, idle_seconds=10.0)
        limiter.check("old", 60, now=0.0)
        limiter.check("new", 60, now=100.0)

        assert "old" not in limiter._buckets
        assert "new" in limiter._buckets

    def test_reset_clears_buckets(self):
        limiter = RateLimiter()
        for _ in range(3):
            limiter.check("a", 3, now=0.0)
        assert limiter.check("a", 3, now=0.0)[0] is False

        limiter.reset()
        assert limiter.check("a", 3, now=0.0)[0] is True


class TestMiddleware:

    def test_exhausted_client_gets_429(self, client, auth_headers, monkeypatch):
        monkeypatch.setattr(settings, "rate_limit_per_minute", 2)
        for _ in range(2):
            assert client.get("/api/orders", headers=auth_headers).status_code == 200

        resp = client.get("/api/orders", headers=auth_headers)
        assert resp.status_code == 429
        assert resp.json()["error"] == "RATE_LIMITED"
        assert "retry-after" in resp.headers

    def test_health_is_never_limited(self, client, monkeypatch):
        monkeypatch.setattr(settings, "rate_limit_per_minute", 1)
        for _ in range(3):
            assert client.get("/health").status_code == 200
