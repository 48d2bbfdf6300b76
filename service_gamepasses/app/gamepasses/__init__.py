"""
Gamepass lookup layer for the Gamepasses service.

Records live in ``models``; the cache-backed lookup in ``service``.
"""

from .models import Gamepass, Universe

__all__ = ["Gamepass", "Universe"]
