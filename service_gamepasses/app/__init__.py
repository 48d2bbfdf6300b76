"""
Gamepasses proxy service package for the Gamepasses Access Layer.

The service fronts the public Roblox APIs, enforcing:
- Rate limiting: per-client sliding window
- Caching: in-process TTL cache of aggregated responses
- Aggregation: games -> paginated game passes -> batched icon lookup

Structure:
- app.main: FastAPI app, routes, and error wiring.
- app.adapters: HTTP client for the Roblox APIs.
- app.aggregation: Cursor pagination and the aggregation pipeline.
- app.caching: Response cache.
- app.ratelimit: Sliding window limiter and caller identity resolution.
- app.gamepasses: Records and the cache-backed lookup service.
"""
