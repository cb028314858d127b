"""Storage adapters for cached analysis results."""

from .diff_cache import DiffCache, InMemoryDiffCache, JsonDiffCache, diff_cache_key, diff_with_cache

__all__ = ["DiffCache", "InMemoryDiffCache", "JsonDiffCache", "diff_cache_key", "diff_with_cache"]
