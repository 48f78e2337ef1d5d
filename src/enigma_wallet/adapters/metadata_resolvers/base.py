from __future__ import annotations

from abc import ABC, abstractmethod

from ...cache import ResponseCache
from ...domain import TokenMetadata
from ...retry import RetryExecutor


class BaseTokenMetadataResolver(ABC):
    """Abstract base class for token metadata resolvers."""

    def __init__(self, cache: ResponseCache, retry: RetryExecutor, ttl: int):
        """Initialize the resolver.

        Args:
            cache: Shared response cache
            retry: Retry policy for upstream calls
            ttl: Seconds to keep resolved metadata
        """
        self.cache = cache
        self.retry = retry
        self.ttl = ttl

    @property
    @abstractmethod
    def resolver_name(self) -> str:
        """Return the name of this resolver."""
        ...

    @abstractmethod
    async def resolve(self, address: str) -> TokenMetadata:
        """Resolve metadata for a mint or contract address."""
        ...
