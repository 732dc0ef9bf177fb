"""Per-client throttling for the claim and code endpoints.

Each rule allows ``max_requests`` hits per client inside a sliding window.
Code lookups are counted per client *and* per game, so guessing the
claimant of one game does not lock the client out of the others.

Rules:
- claim: 10 attempts per IP per minute
- code_lookup: 20 requests per IP per game per minute

Disabled when ``TESTING`` is set.
"""

import logging
import os
import time
from collections import deque
from dataclasses import dataclass
from functools import wraps
from threading import Lock
from typing import Callable, Optional

from fastapi import HTTPException, Request, status

logger = logging.getLogger("freegames.middleware.rate_limit")

_SWEEP_EVERY = 500


@dataclass(frozen=True)
class RateLimitRule:
    name: str
    max_requests: int
    window_seconds: int
    per_game: bool = False


RULES = {
    rule.name: rule
    for rule in (
        RateLimitRule("claim", max_requests=10, window_seconds=60),
        RateLimitRule("code_lookup", max_requests=20, window_seconds=60, per_game=True),
    )
}


def _disabled() -> bool:
    return os.getenv("TESTING", "").lower() in ("1", "true", "yes")


def client_ip(request: Request) -> str:
    """Best guess at the caller's address behind a reverse proxy."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip.strip()
    return request.client.host if request.client else "unknown"


class SlidingWindowLimiter:
    """Thread-safe in-memory sliding window counter keyed by string."""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._windows: dict[str, deque[float]] = {}
        self._lock = Lock()
        self._hits_since_sweep = 0

    def _sweep(self, now: float) -> None:
        # Drop windows whose newest hit is older than the longest rule
        horizon = now - max(rule.window_seconds for rule in RULES.values())
        idle = [key for key, hits in self._windows.items() if not hits or hits[-1] <= horizon]
        for key in idle:
            del self._windows[key]
        if idle:
            logger.debug("Dropped %d idle rate limit windows", len(idle))

    def hit(self, key: str, rule: RateLimitRule) -> int:
        """Record a hit on ``key``.

        Returns:
            0 if the hit is allowed, otherwise the number of seconds until
            the oldest hit in the window expires.
        """
        now = self._clock()
        with self._lock:
            self._hits_since_sweep += 1
            if self._hits_since_sweep >= _SWEEP_EVERY:
                self._sweep(now)
                self._hits_since_sweep = 0

            hits = self._windows.setdefault(key, deque())
            while hits and hits[0] <= now - rule.window_seconds:
                hits.popleft()

            if len(hits) >= rule.max_requests:
                return int(hits[0] + rule.window_seconds - now) + 1
            hits.append(now)
            return 0

    def reset(self) -> None:
        with self._lock:
            self._windows.clear()
            self._hits_since_sweep = 0


limiter = SlidingWindowLimiter()


def enforce(request: Request, rule_name: str, game_id: Optional[str] = None) -> None:
    """Count one request against ``rule_name``.

    Raises:
        HTTPException: 429 with a ``Retry-After`` header once the client
            is over the limit.
    """
    if _disabled():
        return

    rule = RULES[rule_name]
    ip = client_ip(request)
    key = f"{rule.name}:{ip}"
    if rule.per_game and game_id:
        key = f"{key}:{game_id}"

    retry_after = limiter.hit(key, rule)
    if not retry_after:
        return

    logger.warning("Rate limit %s exceeded by %s (retry after %ds)", rule.name, ip, retry_after)
    raise HTTPException(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        detail={
            "error": "RATE_LIMIT_EXCEEDED",
            "message": "Too many requests. Please try again later.",
            "retry_after": retry_after,
        },
        headers={"Retry-After": str(retry_after)},
    )


def rate_limit(rule_name: str) -> Callable:
    """Throttle an endpoint that takes ``request`` (and maybe ``game_id``).

    Example:
        @router.post("/{game_id}/claim")
        @rate_limit("claim")
        async def claim_game(request: Request, body: UsernameBody, game_id: str):
            ...
    """
    if rule_name not in RULES:
        raise ValueError(f"Unknown rate limit rule: {rule_name}")

    def decorator(func):
        @wraps(func)
        async def wrapper(*args, **kwargs):
            request = kwargs.get("request")
            if request is None:
                request = next((a for a in args if isinstance(a, Request)), None)
            if request is None:
                logger.warning("%s has no Request argument, not rate limited", func.__name__)
            else:
                enforce(request, rule_name, kwargs.get("game_id"))
            return await func(*args, **kwargs)

        return wrapper
    return decorator
