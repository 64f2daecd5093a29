"""
modon/rate_limit.py

Per-client sliding-window limiter for the public lead forms.

Process-local: each worker keeps its own counters, which is enough to stop a
single client from flooding the contact forms.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Dict, List, Optional

from fastapi import Request

from modon.config import IS_DEV


@dataclass
class RateLimitDecision:
    allowed: bool
    remaining: int
    retry_after: int = 0  # seconds until the oldest request leaves the window


class RateLimiter:
    """
    Allows `max_requests` per client within a rolling `window`.

    Attributes:
        max_requests: Requests allowed per client inside the window
        window: Length of the rolling window
        request_timestamps: Recent request times per client key
    """

    def __init__(
        self,
        max_requests: int = 5,
        window: timedelta = timedelta(hours=1),
        clock: Callable[[], datetime] = datetime.utcnow,
    ):
        self.max_requests = max_requests
        self.window = window
        self.clock = clock
        self.request_timestamps: Dict[str, List[datetime]] = {}

    def hit(self, key: str) -> RateLimitDecision:
        """
        Record a request for `key` unless its limit is already reached.

        Returns:
            RateLimitDecision; when not allowed, retry_after is at least 1
        """
        now = self.clock()
        window_start = now - self.window
        recent = [ts for ts in self.request_timestamps.get(key, []) if ts > window_start]

        if len(recent) >= self.max_requests:
            self.request_timestamps[key] = recent
            wait = (recent[0] + self.window - now).total_seconds()
            if IS_DEV:
                print(f"[RATE_LIMIT] Blocked key={key}, retry_after={wait:.0f}s")
            return RateLimitDecision(allowed=False, remaining=0, retry_after=max(1, math.ceil(wait)))

        recent.append(now)
        self.request_timestamps[key] = recent
        return RateLimitDecision(allowed=True, remaining=self.max_requests - len(recent))

    def reset(self, key: Optional[str] = None) -> None:
        if key is None:
            self.request_timestamps.clear()
        else:
            self.request_timestamps.pop(key, None)


def client_ip(request: Request) -> str:
    """First X-Forwarded-For hop, then X-Real-IP, then the socket peer."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip.strip()
    if request.client is not None:
        return request.client.host
    return "unknown"
