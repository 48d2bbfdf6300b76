"""
Shared utilities for the Gamepasses Access Layer.

This package aggregates common building blocks consumed by the services:

- config: Service configuration via pydantic-settings
- logging: Structured logging with request correlation
- metrics: Prometheus metrics helpers
- errors: Canonical error types and responses
- base_service: FastAPI service scaffolding (middleware, health, metrics)
- test_helpers: Fake upstream APIs and payload factories for tests

Do not import from service packages into shared/.
"""
