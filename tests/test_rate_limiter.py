import time

from conftest import remaining
from newsping.services.data_ingestion.rate_limiter import RateLimit, RateLimiter


class TestRateLimiter:

    async def test_requests_within_budget_do_not_wait(self):
        limiter = RateLimiter({"Chosun": RateLimit(3, 60.0)})

        start = time.monotonic()
        for _ in range(3):
            await limiter.wait_if_needed("Chosun")

        assert time.monotonic() - start < 0.5
        assert remaining(limiter, "Chosun") == 0

    async def test_waits_for_window_to_free_up(self):
        limiter = RateLimiter({"Chosun": RateLimit(2, 0.2)})

        start = time.monotonic()
        for _ in range(3):
            await limiter.wait_if_needed("Chosun")

        assert time.monotonic() - start >= 0.15

    async def test_sources_tracked_separately(self):
        limiter = RateLimiter({"Chosun": RateLimit(1, 60.0)})

        await limiter.wait_if_needed("Chosun")

        assert remaining(limiter, "Chosun") == 0
        assert remaining(limiter, "Naver") == 10
        assert limiter.limit_for("Unknown") == RateLimiter.FALLBACK_LIMIT
