from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable

from ...cache import ResponseCache
from ...domain import MarketAsset, PriceQuote
from ...retry import RetryExecutor
from ...settings import WalletSettings


class BasePriceAdapter(ABC):
    """Abstract base class for USD price adapters.

    Pricing is best-effort: implementations log upstream failures and return
    whatever they have instead of raising.
    """

    def __init__(self, config: WalletSettings, cache: ResponseCache, retry: RetryExecutor):
        """Initialize the adapter with configuration."""
        self.config = config
        self.cache = cache
        self.retry = retry

    @property
    @abstractmethod
    def adapter_name(self) -> str:
        """Return the name of this adapter."""
        ...

    @abstractmethod
    def coin_id_for_symbol(self, symbol: str | None) -> str | None:
        """Map a ticker symbol to this provider's coin id, if known."""
        ...

    @abstractmethod
    async def fetch_quotes(self, coin_ids: Iterable[str]) -> dict[str, PriceQuote]:
        """Fetch USD quotes keyed by coin id; unknown ids are left out."""
        ...

    @abstractmethod
    async def fetch_market_data(self, limit: int = 20) -> list[MarketAsset]:
        """Fetch the top ``limit`` assets by market capitalization."""
        ...
