"""
In-process fixed-window rate limiting, used as a router dependency.
"""
import threading
import time
from typing import Dict, Optional, Tuple

from fastapi import HTTPException, Request

from report_buddy.core.config import settings
from report_buddy.core.logger import logger

TOO_MANY_REQUESTS = "Too many requests, please try again later"

# Expired windows are dropped once this many keys are tracked.
SWEEP_THRESHOLD = 10000


class RateLimiter:
    """Counts requests per client address in fixed windows."""

    def __init__(self, scope: str, max_requests: int, window_seconds: int):
        self.scope = scope
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._windows: Dict[str, Tuple[float, int]] = {}
        self.sweep_threshold = SWEEP_THRESHOLD
        self._lock = threading.Lock()

    def hit(self, key: str, now: Optional[float] = None) -> bool:
        """Record one request for *key*; False once the window is exhausted."""
        now = time.monotonic() if now is None else now
        with self._lock:
            if len(self._windows) > self.sweep_threshold:
                self._sweep(now)
            started, count = self._windows.get(key, (now, 0))
            if now - started >= self.window_seconds:
                started, count = now, 0
            count += 1
            self._windows[key] = (started, count)
            return count <= self.max_requests

    def _sweep(self, now: float) -> None:
        expired = [k for k, (started, _) in self._windows.items() if now - started >= self.window_seconds]
        for key in expired:
            del self._windows[key]

    def reset(self) -> None:
        with self._lock:
            self._windows.clear()

    async def __call__(self, request: Request) -> None:
        if not settings.RATE_LIMIT_ENABLED:
            return
        client_ip = request.client.host if request.client else "unknown"
        if not self.hit(f"ip:{client_ip}"):
            logger.warning("Rate limit exceeded scope=%s ip=%s", self.scope, client_ip)
            raise HTTPException(status_code=429, detail=TOO_MANY_REQUESTS)


general_limiter = RateLimiter(
    "general", settings.RATE_LIMIT_GENERAL_REQUESTS, settings.RATE_LIMIT_GENERAL_WINDOW_SECONDS
)
ai_limiter = RateLimiter(
    "ai", settings.RATE_LIMIT_AI_REQUESTS, settings.RATE_LIMIT_AI_WINDOW_SECONDS
)
auth_limiter = RateLimiter(
    "auth", settings.RATE_LIMIT_AUTH_REQUESTS, settings.RATE_LIMIT_AUTH_WINDOW_SECONDS
)
