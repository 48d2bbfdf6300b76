"""
Roblox gamepasses proxy service.
"""

from typing import Any, Dict, Optional

import httpx
from fastapi import Request, Response
from fastapi.responses import JSONResponse

from shared.base_service import BaseService
from shared.config import ServiceConfig
from shared.errors import RateLimitError
from shared.logging import set_request_context

from service_gamepasses.app.adapters.roblox_client import RobloxClient
from service_gamepasses.app.aggregation.aggregator import GamepassAggregator
from service_gamepasses.app.caching.response_cache import ResponseCache
from service_gamepasses.app.gamepasses.service import GamepassLookupService
from service_gamepasses.app.ratelimit.sliding_window import RateLimitMiddleware, SlidingWindowRateLimiter


class GamepassProxyService(BaseService):
    """Exposes ``GET /gamepasses/{user_id}`` over the aggregation pipeline."""

    def __init__(
        self,
        config: Optional[ServiceConfig] = None,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__("gamepasses", config)
        self.roblox_client = RobloxClient(
            self.config.roblox_games_url,
            self.config.roblox_thumbnails_url,
            timeout=self.config.upstream_timeout_seconds,
            transport=transport,
            metrics=self.metrics,
        )
        self.aggregator = GamepassAggregator(self.roblox_client, max_pages=self.config.max_pages)
        self.cache = ResponseCache(self.config.cache_ttl_seconds)
        self.lookup_service = GamepassLookupService(
            self.aggregator,
            self.cache,
            dedupe_inflight=self.config.dedupe_inflight,
            metrics=self.metrics,
        )
        self.rate_limiter = SlidingWindowRateLimiter(
            self.config.rate_limit_max_requests,
            self.config.rate_limit_window_seconds,
        )
        self.rate_limit_middleware = RateLimitMiddleware(
            self.rate_limiter, trusted_proxy_hops=self.config.trusted_proxy_hops
        )

        self._setup_gamepass_routes()

        # Expose service instance via app state for introspection/testing
        self.app.state.gamepass_service = self

    async def shutdown(self) -> None:
        await self.roblox_client.close()

    def _health_details(self) -> Dict[str, Any]:
        return {
            "cache": self.cache.stats(),
            "inflight_aggregations": self.lookup_service.inflight_count(),
        }

    def _enforce_rate_limit(self, request: Request) -> Dict[str, Any]:
        """Consult the limiter for the caller, raising RateLimitError when denied."""
        result = self.rate_limit_middleware.check_request(request)

        if not result["allowed"]:
            self.metrics.increment_counter("rate_limit_hits_total", endpoint="/gamepasses/{user_id}")
            raise RateLimitError(
                details={"limit": result["limit"], "reset_in_seconds": result["reset_in_seconds"]},
                retry_after=result["retry_after"],
            )
        return result

    def _set_rate_limit_headers(self, response: Response, rate_result: Dict[str, Any]) -> None:
        """Propagate rate limiting metadata via standard headers."""
        response.headers["X-RateLimit-Limit"] = str(rate_result["limit"])
        response.headers["X-RateLimit-Remaining"] = str(rate_result["remaining"])
        response.headers["X-RateLimit-Reset"] = str(rate_result["reset_in_seconds"])

    def _setup_gamepass_routes(self):
        """Set up gamepass routes."""

        @self.app.get("/")
        async def root():
            """Service info."""
            return {
                "name": "Roblox Gamepasses API",
                "status": "Running",
                "endpoints": {
                    "gamepasses": "/gamepasses/:userId"
                }
            }

        @self.app.get("/gamepasses/{user_id}")
        async def get_gamepasses(user_id: str, request: Request):
            """Every public gamepass created by a Roblox user, with icons."""
            rate_result = self._enforce_rate_limit(request)
            set_request_context(roblox_user_id=user_id)

            gamepasses, cached = await self.lookup_service.get_gamepasses(user_id)

            response = JSONResponse(content=[gamepass.to_dict() for gamepass in gamepasses])
            response.headers["X-Cache"] = "HIT" if cached else "MISS"
            self._set_rate_limit_headers(response, rate_result)
            return response


def create_app(config: Optional[ServiceConfig] = None, **kwargs):
    """Create FastAPI application."""
    service = GamepassProxyService(config, **kwargs)
    return service.app


def main():
    service = GamepassProxyService()
    service.run()


if __name__ == "__main__":
    main()
