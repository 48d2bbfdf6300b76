"""
Adapters package for the Gamepasses Service.

Contains the HTTP client for the upstream Roblox APIs. Adapters map
transport and status failures to shared errors and never retry.
"""

from .roblox_client import RobloxClient

__all__ = ["RobloxClient"]
