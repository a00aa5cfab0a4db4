"""
Cache capability contract. The lookup service only depends on this, so an
in-process store, a remote key-value store or a test double are interchangeable.
"""
from abc import ABC, abstractmethod
from typing import Any, Optional


class CacheBackend(ABC):
    """get/set/delete/exists with per-entry TTL (seconds)."""

    @abstractmethod
    def get(self, key: str) -> Optional[Any]:
        """Return the stored value, or None when absent or expired."""

    @abstractmethod
    def set(self, key: str, value: Any, ttl: float) -> None:
        """Store value until `ttl` seconds from now."""

    @abstractmethod
    def delete(self, key: str) -> None:
        ...

    @abstractmethod
    def exists(self, key: str) -> bool:
        ...
