"""Interface for response caching.

Defines the contract for storing, retrieving and clearing cached response
payloads keyed by request signature.
"""

import abc
from typing import Any, Optional

from ..models.common import CacheKey


class CacheService(abc.ABC):
    """Abstract Base Class for cache operations."""

    @abc.abstractmethod
    def get(self, key: CacheKey) -> Optional[Any]:
        """Retrieves a cached payload.

        Args:
            key: The cache key to retrieve.

        Returns:
            The cached payload if present and not expired, otherwise None.
        """
        pass

    @abc.abstractmethod
    def set(self, key: CacheKey, value: Any) -> None:
        """Stores a payload, evicting as needed to respect the size bound.

        Args:
            key: The cache key to store the payload under.
            value: The payload to store.
        """
        pass

    @abc.abstractmethod
    def delete(self, key: CacheKey) -> None:
        """Removes a single entry if present."""
        pass

    @abc.abstractmethod
    def clear(self) -> None:
        """Removes every entry."""
        pass
