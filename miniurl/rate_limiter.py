"""Sliding-window rate limiting for abuse-prone endpoints.

Counters are per process and keyed by client IP.
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from threading import Lock

from fastapi import Request

from .errors import TooManyRequests

logger = logging.getLogger("miniurl.rate_limiter")

WINDOW_SECONDS = 15 * 60


@dataclass(frozen=True)
class RateLimitConfig:
    """Configuration for a single rate limit."""
    max_requests: int
    window_seconds: float
    description: str = ""


DEFAULT_ROUTE_LIMITS: dict[str, RateLimitConfig] = {
    "shorten": RateLimitConfig(10, WINDOW_SECONDS, "link creation"),
    "verify-password": RateLimitConfig(5, WINDOW_SECONDS, "link password verification"),
}


class RateLimitExceeded(Exception):
    """Raised when a rate limit is exceeded."""

    def __init__(self, key: str, config: RateLimitConfig, retry_after: float):
        self.key = key
        self.config = config
        self.retry_after = retry_after
        super().__init__(
            f"Rate limit exceeded for {key}: "
            f"{config.max_requests}/{config.window_seconds}s. "
            f"Retry after {retry_after:.1f}s"
        )


class SlidingWindowCounter:
    """Thread-safe sliding window rate limiter.

    Tracks request timestamps per key and rejects requests that
    exceed the configured rate within the window. Keys whose entries
    have all aged out are dropped, at most one sweep per window.
    """

    def __init__(self, config: RateLimitConfig):
        self.config = config
        self._windows: dict[str, list[float]] = {}
        self._last_sweep = 0.0
        self._lock = Lock()

    def _sweep(self, cutoff: float) -> None:
        stale = [key for key, timestamps in self._windows.items() if not timestamps or timestamps[-1] <= cutoff]
        for key in stale:
            del self._windows[key]

    def check(self, key: str, now: float | None = None) -> None:
        """Check if a request is allowed. Raises RateLimitExceeded if not."""
        now = now if now is not None else time.time()
        cutoff = now - self.config.window_seconds

        with self._lock:
            if now - self._last_sweep >= self.config.window_seconds:
                self._sweep(cutoff)
                self._last_sweep = now

            # Remove expired entries
            timestamps = [t for t in self._windows.get(key, ()) if t > cutoff]

            if len(timestamps) >= self.config.max_requests:
                self._windows[key] = timestamps
                retry_after = timestamps[0] + self.config.window_seconds - now
                raise RateLimitExceeded(key, self.config, max(retry_after, 0.1))

            timestamps.append(now)
            self._windows[key] = timestamps

    def current_count(self, key: str, now: float | None = None) -> int:
        """Return current request count in window for a key."""
        now = now if now is not None else time.time()
        cutoff = now - self.config.window_seconds
        with self._lock:
            timestamps = self._windows.get(key, [])
            return sum(1 for t in timestamps if t > cutoff)

    def tracked_keys(self) -> int:
        with self._lock:
            return len(self._windows)

    def reset(self, key: str) -> None:
        with self._lock:
            self._windows.pop(key, None)

    def reset_all(self) -> None:
        with self._lock:
            self._windows.clear()


def build_limiters(
    limits: dict[str, RateLimitConfig] | None = None,
) -> dict[str, SlidingWindowCounter]:
    limits = limits if limits is not None else DEFAULT_ROUTE_LIMITS
    return {name: SlidingWindowCounter(cfg) for name, cfg in limits.items()}


def client_ip(request: Request) -> str:
    return request.client.host if request.client else "unknown"


def rate_limit(name: str):
    """FastAPI dependency enforcing the named limit for the caller's IP."""

    def dependency(request: Request) -> None:
        counter: SlidingWindowCounter = request.app.state.limiters[name]
        ip = client_ip(request)
        try:
            counter.check(ip)
        except RateLimitExceeded as exc:
            logger.warning("Rate limit hit: route=%s ip=%s retry_after=%.1fs", name, ip, exc.retry_after)
            raise TooManyRequests() from exc

    return dependency
