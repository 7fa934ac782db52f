"""
cache/ — In-memory query result cache keyed by composite query keys.
"""

from storefront.cache.query_cache import CacheEntry, QueryCache, make_key

__all__ = ("CacheEntry", "QueryCache", "make_key")
