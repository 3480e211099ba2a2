"""Per-client request throttling for the HTTP API."""
import time
from collections import deque
from typing import Callable, Deque, Dict, Tuple

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

MINUTE = 60
HOUR = 3600


class RateLimiter:
    """Sliding-window limiter with a minute and an hour budget per client.

    Each client keeps one timestamp log covering the last hour; the minute
    count is read from its tail. Clients whose log empties out are forgotten.
    """

    def __init__(
        self,
        requests_per_minute: int = 60,
        requests_per_hour: int = 1000,
        timer: Callable[[], float] = time.monotonic,
    ):
        self.requests_per_minute = requests_per_minute
        self.requests_per_hour = requests_per_hour
        self.timer = timer
        self.history: Dict[str, Deque[float]] = {}

    def _expire(self, client_id: str, now: float) -> Deque[float]:
        log = self.history.get(client_id)
        if log is None:
            return deque()
        while log and now - log[0] >= HOUR:
            log.popleft()
        if not log:
            del self.history[client_id]
        return log

    def prune(self) -> None:
        """Drop every client with no request inside the hour window."""
        now = self.timer()
        for client_id in list(self.history):
            self._expire(client_id, now)

    @staticmethod
    def _count_since(log: Deque[float], start: float) -> int:
        count = 0
        for stamp in reversed(log):
            if stamp <= start:
                break
            count += 1
        return count

    def is_allowed(self, client_id: str) -> Tuple[bool, str]:
        """Check a request against both budgets, recording it when allowed."""
        now = self.timer()
        log = self._expire(client_id, now)

        if self._count_since(log, now - MINUTE) >= self.requests_per_minute:
            return False, f"Rate limit exceeded. Max {self.requests_per_minute} requests per minute."
        if len(log) >= self.requests_per_hour:
            return False, f"Rate limit exceeded. Max {self.requests_per_hour} requests per hour."

        log.append(now)
        self.history[client_id] = log
        return True, ""


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Rejects over-budget clients with 429 before routing."""

    def __init__(self, app, requests_per_minute: int = 60, requests_per_hour: int = 1000):
        super().__init__(app)
        self.limiter = RateLimiter(requests_per_minute, requests_per_hour)

    async def dispatch(self, request: Request, call_next):
        client_id = request.client.host if request.client else "unknown"

        allowed, message = self.limiter.is_allowed(client_id)
        if not allowed:
            return JSONResponse(status_code=429, content={"detail": message, "code": "rate_limited"})

        return await call_next(request)
