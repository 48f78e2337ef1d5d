"""Application state container."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from .adapters.chain_adapters import ADAPTER_REGISTRY
from .adapters.price_adapters import BasePriceAdapter, CoinGeckoAdapter
from .aggregator import BalanceAggregator
from .cache import ResponseCache
from .clients.http import HttpJsonClient
from .domain import BalanceQuery, NormalizedBalance
from .logger import get_logger
from .processors import enrich_balance
from .retry import RetryExecutor
from .settings import WalletSettings


@dataclass
class AppState:
    """Container for application-wide state and dependencies.

    Shared by the CLI and the API to avoid global state and enable testing.
    """

    settings: WalletSettings
    logger: logging.Logger
    cache: ResponseCache
    aggregator: BalanceAggregator
    price_adapter: BasePriceAdapter
    http: HttpJsonClient | None = None

    async def fetch_balance(
        self, query: BalanceQuery, *, include_prices: bool = False
    ) -> NormalizedBalance:
        balance = await self.aggregator.get_balance(query)
        if include_prices:
            balance = await enrich_balance(query.chain, balance, self.price_adapter)
        return balance

    def close(self) -> None:
        if self.http is not None:
            self.http.close()


def build_state(settings: WalletSettings, cache: ResponseCache | None = None) -> AppState:
    """Wire adapters, cache and retry policy from settings.

    Args:
        settings: Validated settings
        cache: Cache to share; an in-memory one is created when omitted

    Returns:
        Ready-to-use application state

    Raises:
        ValueError: If an upstream credential is missing.
    """
    settings.require_credentials()

    if cache is None:
        cache = ResponseCache(
            stale_grace_seconds=settings.stale_grace_seconds,
            maxsize=settings.cache_max_entries,
        )
    retry = RetryExecutor(
        max_attempts=settings.retry_max_attempts,
        base_delay=settings.retry_base_delay,
    )
    http = HttpJsonClient(timeout=settings.http_timeout)

    adapters = {
        chain: adapter_cls(settings, retry, cache, http=http)
        for chain, adapter_cls in ADAPTER_REGISTRY.items()
    }
    aggregator = BalanceAggregator(
        adapters,
        cache,
        ttl=settings.balance_cache_ttl,
        secrets=settings.secret_values(),
    )

    return AppState(
        settings=settings,
        logger=get_logger("enigma_wallet"),
        cache=cache,
        aggregator=aggregator,
        price_adapter=CoinGeckoAdapter(settings, cache, retry, http=http),
        http=http,
    )
