"""
TTL cache contract and the in-process implementation.
"""
from .base import CacheBackend
from .memory import MemoryCache, ReadWriteLock

__all__ = ["CacheBackend", "MemoryCache", "ReadWriteLock"]
