"""Tests for the sliding window rate limiter on the claim endpoints."""

import pytest
from fastapi import HTTPException
from starlette.requests import Request

from freegames.middleware import rate_limit as rate_limit_module
from freegames.middleware.rate_limit import (
    RULES,
    SlidingWindowLimiter,
    client_ip,
    enforce,
    rate_limit,
)

CLAIM = RULES["claim"]


def _request(ip: str = "10.0.0.1", forwarded: str | None = None) -> Request:
    headers = []
    if forwarded:
        headers.append((b"x-forwarded-for", forwarded.encode()))
    return Request(
        {
            "type": "http",
            "method": "POST",
            "path": "/api/games/g1/claim",
            "headers": headers,
            "client": (ip, 12345),
        }
    )


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


class TestSlidingWindowLimiter:

    def test_blocks_after_max_requests(self):
        clock = FakeClock()
        limiter = SlidingWindowLimiter(clock)

        for _ in range(CLAIM.max_requests):
            assert limiter.hit("claim:a", CLAIM) == 0

        assert limiter.hit("claim:a", CLAIM) == CLAIM.window_seconds + 1

    def test_window_slides(self):
        clock = FakeClock()
        limiter = SlidingWindowLimiter(clock)
        for _ in range(CLAIM.max_requests):
            limiter.hit("claim:a", CLAIM)

        clock.now += 30
        assert limiter.hit("claim:a", CLAIM) == 31

        clock.now += 30
        assert limiter.hit("claim:a", CLAIM) == 0

    def test_keys_are_independent(self):
        limiter = SlidingWindowLimiter(FakeClock())
        for _ in range(CLAIM.max_requests):
            limiter.hit("claim:a", CLAIM)

        assert limiter.hit("claim:b", CLAIM) == 0

    def test_reset(self):
        limiter = SlidingWindowLimiter(FakeClock())
        for _ in range(CLAIM.max_requests):
            limiter.hit("claim:a", CLAIM)

        limiter.reset()
        assert limiter.hit("claim:a", CLAIM) == 0


class TestClientIp:

    def test_first_forwarded_address_wins(self):
        assert client_ip(_request("proxy", forwarded="1.2.3.4, 10.0.0.9")) == "1.2.3.4"

    def test_direct_client(self):
        assert client_ip(_request("5.6.7.8")) == "5.6.7.8"


class TestEnforce:

    @pytest.fixture(autouse=True)
    def enabled(self, monkeypatch):
        monkeypatch.setenv("TESTING", "0")
        monkeypatch.setattr(rate_limit_module, "limiter", SlidingWindowLimiter(FakeClock()))

    def test_raises_429_with_retry_after(self):
        for _ in range(CLAIM.max_requests):
            enforce(_request(), "claim", "g1")

        with pytest.raises(HTTPException) as exc_info:
            enforce(_request(), "claim", "g1")
        assert exc_info.value.status_code == 429
        assert exc_info.value.headers["Retry-After"] == str(CLAIM.window_seconds + 1)

    def test_claims_counted_across_games(self):
        for i in range(CLAIM.max_requests):
            enforce(_request(), "claim", f"g{i}")

        with pytest.raises(HTTPException):
            enforce(_request(), "claim", "another")

    def test_code_lookups_counted_per_game(self):
        rule = RULES["code_lookup"]
        for _ in range(rule.max_requests):
            enforce(_request(), "code_lookup", "g1")

        with pytest.raises(HTTPException):
            enforce(_request(), "code_lookup", "g1")
        enforce(_request(), "code_lookup", "g2")

    def test_disabled_under_tests(self, monkeypatch):
        monkeypatch.setenv("TESTING", "1")
        for _ in range(CLAIM.max_requests * 2):
            enforce(_request(), "claim")


class TestDecorator:

    def test_unknown_rule_rejected(self):
        with pytest.raises(ValueError):
            rate_limit("nope")

    @pytest.mark.asyncio
    async def test_wraps_endpoint(self, monkeypatch):
        monkeypatch.setenv("TESTING", "0")
        monkeypatch.setattr(rate_limit_module, "limiter", SlidingWindowLimiter(FakeClock()))

        @rate_limit("claim")
        async def endpoint(request: Request, game_id: str):
            return game_id

        for _ in range(CLAIM.max_requests):
            assert await endpoint(request=_request(), game_id="g1") == "g1"
        with pytest.raises(HTTPException):
            await endpoint(request=_request(), game_id="g1")
