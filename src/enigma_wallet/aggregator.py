"""Single entry point for balance lookups across chains."""

from __future__ import annotations

import asyncio
from collections.abc import Iterable, Mapping

from .adapters.chain_adapters.base import BaseChainAdapter
from .cache import ResponseCache
from .constants import BALANCE_CACHE_TTL
from .domain import BalanceQuery, Chain, NormalizedBalance
from .errors import BadRequest, BalanceError, UpstreamFailure, redact
from .logger import get_logger
from .retry import is_rate_limited

logger = get_logger(__name__)


class BalanceAggregator:
    """Serve balance snapshots from the cache, fetching through the chain adapter on a miss.

    Concurrent misses for the same ``<chain>:<address>`` key share one in-flight
    fetch. When a fetch fails because upstream rate limiting outlasted every
    retry, an expired snapshot still within the stale grace window is served instead.

    Args:
        adapters: One adapter per supported chain
        cache: Balance snapshot store
        ttl: Seconds a fresh snapshot is served
        secrets: Credential values scrubbed from error details
    """

    def __init__(
        self,
        adapters: Mapping[Chain, BaseChainAdapter],
        cache: ResponseCache,
        ttl: int = BALANCE_CACHE_TTL,
        secrets: Iterable[str] = (),
    ):
        self.adapters = dict(adapters)
        self.cache = cache
        self.ttl = ttl
        self._secrets = [secret for secret in secrets if secret]
        self._inflight: dict[str, asyncio.Future[NormalizedBalance]] = {}

    async def get_balance(self, query: BalanceQuery) -> NormalizedBalance:
        """Return the normalized balance for ``query``.

        Raises:
            BadRequest: Unsupported chain or empty address, before any lookup.
            InvalidAddress: Address rejected by the chain adapter.
            UpstreamFailure: Upstream failed and no stale snapshot was usable.
        """
        adapter = self.adapters.get(query.chain)
        if adapter is None:
            raise BadRequest(f"Unsupported blockchain: {query.chain.value}")
        if not query.address or not query.address.strip():
            raise BadRequest("Blockchain and address are required")

        key = query.cache_key
        cached = self._read_snapshot(key)
        if cached is not None:
            logger.debug("Cache hit for %s", key)
            return cached

        task = self._inflight.get(key)
        if task is None:
            logger.debug("Cache miss for %s", key)
            task = asyncio.ensure_future(self._fetch(adapter, query))
            self._inflight[key] = task
            task.add_done_callback(lambda done: self._forget(key, done))
        else:
            logger.debug("Joining in-flight fetch for %s", key)

        return await asyncio.shield(task)

    async def _fetch(self, adapter: BaseChainAdapter, query: BalanceQuery) -> NormalizedBalance:
        key = query.cache_key
        try:
            balance = await adapter.fetch_balance(query.address)
        except Exception as e:
            if is_rate_limited(e):
                return self._stale_or_raise(key, e)
            if isinstance(e, BalanceError):
                raise
            logger.error("Balance fetch for %s failed: %s", key, redact(str(e), self._secrets))
            raise UpstreamFailure(
                "Failed to fetch balance", details=redact(str(e), self._secrets)
            ) from e

        self.cache.set(key, balance.to_dict(), self.ttl)
        logger.info(
            "Fetched %s balance for %s: %s, %d tokens",
            query.chain.value,
            query.address,
            balance.native_balance,
            len(balance.tokens),
        )
        return balance

    def _stale_or_raise(self, key: str, exc: Exception) -> NormalizedBalance:
        stale = self._read_snapshot(key, allow_stale=True)
        details = redact(str(exc), self._secrets)
        if stale is not None:
            logger.warning("Rate limited fetching %s, serving stale snapshot: %s", key, details)
            return stale
        logger.error("Rate limited fetching %s with no snapshot to fall back on", key)
        raise UpstreamFailure("Failed to fetch balance", details=details) from exc

    def _read_snapshot(self, key: str, *, allow_stale: bool = False) -> NormalizedBalance | None:
        value = self.cache.get(key, allow_stale=allow_stale)
        if not isinstance(value, dict):
            return None
        try:
            return NormalizedBalance.from_dict(value)
        except (KeyError, TypeError, ValueError):
            logger.warning("Discarding malformed cached balance for %s", key)
            return None

    def _forget(self, key: str, done: asyncio.Future[NormalizedBalance]) -> None:
        if self._inflight.get(key) is done:
            del self._inflight[key]
        # mark the failure retrieved even when every waiter was cancelled
        if not done.cancelled():
            done.exception()
