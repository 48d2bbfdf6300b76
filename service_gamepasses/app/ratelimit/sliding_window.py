"""
Per-client sliding window rate limiter for the Gamepasses service.
"""

import math
import threading
import time
from typing import Any, Dict

from fastapi import Request
from limits import RateLimitItemPerSecond
from limits.storage import MemoryStorage
from limits.strategies import MovingWindowRateLimiter

from shared.logging import get_logger, set_request_context


DEFAULT_WINDOW_SECONDS = 15 * 60
DEFAULT_MAX_REQUESTS = 100


class SlidingWindowRateLimiter:
    """In-process rate limiter over a moving window per client.

    A request is accepted when fewer than ``max_requests`` accepted requests
    fall inside the trailing ``window_seconds``; denied requests are not
    recorded. Expired entries are dropped by the storage itself.
    """

    def __init__(self, max_requests: int = DEFAULT_MAX_REQUESTS, window_seconds: int = DEFAULT_WINDOW_SECONDS):
        if max_requests < 1:
            raise ValueError("max_requests must be at least 1")
        if window_seconds < 1:
            raise ValueError("window_seconds must be at least 1")
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.limit = RateLimitItemPerSecond(max_requests, window_seconds, namespace="gamepasses")
        self.storage = MemoryStorage()
        self.strategy = MovingWindowRateLimiter(self.storage)
        self._lock = threading.Lock()
        self.logger = get_logger("gamepasses.rate_limiter")

    def allow(self, client_id: str) -> bool:
        """Record a request for ``client_id`` and report whether it may proceed."""
        return self.check_rate_limit(client_id)["allowed"]

    def check_rate_limit(self, client_id: str) -> Dict[str, Any]:
        """Check and record a request, returning the limiter status for headers."""
        # Hit and stats together so headers describe this request
        with self._lock:
            allowed = self.strategy.hit(self.limit, client_id)
            reset_time, remaining = self.strategy.get_window_stats(self.limit, client_id)
        remaining = max(0, remaining)
        # Seconds until the oldest accepted request leaves the window
        reset_in = max(1, math.ceil(reset_time - time.time()))

        result = {
            "allowed": allowed,
            "current_count": self.max_requests - remaining,
            "limit": self.max_requests,
            "remaining": remaining,
            "reset_in_seconds": reset_in,
        }
        if not allowed:
            self.logger.warning(
                "Rate limit exceeded",
                client_id=client_id,
                current_count=result["current_count"],
                limit=self.max_requests,
            )
            result["retry_after"] = reset_in
        return result


class RateLimitMiddleware:
    """Resolves the caller identity for a request and consults the limiter.

    ``trusted_proxy_hops`` is the number of reverse proxies in front of the
    service. Each appends the address it received the request from to
    ``X-Forwarded-For``, so the caller is the entry that many places from the
    right; anything further left was supplied by the caller.
    """

    def __init__(self, rate_limiter: SlidingWindowRateLimiter, *, trusted_proxy_hops: int = 1):
        if trusted_proxy_hops < 0:
            raise ValueError("trusted_proxy_hops must not be negative")
        self.rate_limiter = rate_limiter
        self.trusted_proxy_hops = trusted_proxy_hops

    def check_request(self, request: Request) -> Dict[str, Any]:
        """Check rate limit for request."""
        client_id = self.get_client_id(request)
        set_request_context(client_id=client_id)
        return self.rate_limiter.check_rate_limit(client_id)

    def get_client_id(self, request: Request) -> str:
        """Extract client ID (caller IP) from request."""
        if self.trusted_proxy_hops:
            forwarded_for = request.headers.get('X-Forwarded-For', '')
            hops = [hop.strip() for hop in forwarded_for.split(',') if hop.strip()]
            if hops:
                # Fewer hops than trusted proxies: the leftmost is the furthest known
                return hops[-min(self.trusted_proxy_hops, len(hops))]

        return request.client.host if request.client else 'unknown'
