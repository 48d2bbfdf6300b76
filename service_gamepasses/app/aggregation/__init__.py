"""
Aggregation package: cursor pagination and the gamepass pipeline.
"""

from .aggregator import GamepassAggregator, chunked
from .pagination import collect_pages

__all__ = ["GamepassAggregator", "chunked", "collect_pages"]
