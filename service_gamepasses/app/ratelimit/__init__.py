"""
Rate limiting package for the Gamepasses service.

Holds the in-memory sliding window limiter and the helper that resolves
the caller identity from a request.
"""
