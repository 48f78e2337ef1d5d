from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from ...cache import ResponseCache
from ...clients.http import HttpJsonClient
from ...constants import COINGECKO_IDS
from ...domain import MarketAsset, PriceQuote
from ...logger import get_logger
from ...retry import RetryExecutor
from ...settings import WalletSettings
from .base import BasePriceAdapter

logger = get_logger(__name__)

MAX_MARKET_LIMIT = 250


def _optional_float(value: Any) -> float | None:
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


class CoinGeckoAdapter(BasePriceAdapter):
    """USD quotes and market listings from the public CoinGecko API."""

    def __init__(
        self,
        config: WalletSettings,
        cache: ResponseCache,
        retry: RetryExecutor,
        http: HttpJsonClient | None = None,
    ):
        super().__init__(config, cache, retry)
        self.http = http or HttpJsonClient(timeout=config.http_timeout)
        self.api_url = config.coingecko_api_url.rstrip("/")

    @property
    def adapter_name(self) -> str:
        return "coingecko"

    @staticmethod
    def price_cache_key(coin_id: str) -> str:
        return f"price:{coin_id}"

    @staticmethod
    def markets_cache_key(limit: int) -> str:
        return f"markets:{limit}"

    def coin_id_for_symbol(self, symbol: str | None) -> str | None:
        if not symbol:
            return None
        return COINGECKO_IDS.get(symbol.strip().upper())

    async def fetch_quotes(self, coin_ids: Iterable[str]) -> dict[str, PriceQuote]:
        """Fetch USD quotes, serving fresh ones from the cache.

        Only ids without a cached quote are requested, in a single call.

        Args:
            coin_ids: CoinGecko coin ids; duplicates are ignored

        Returns:
            Quotes keyed by coin id. Ids CoinGecko does not know, or that could
            not be fetched, are missing from the result.
        """
        wanted = list(dict.fromkeys(cid for cid in coin_ids if cid))
        quotes: dict[str, PriceQuote] = {}
        missing: list[str] = []

        for coin_id in wanted:
            cached = self.cache.get(self.price_cache_key(coin_id))
            if isinstance(cached, dict) and cached.get("usd") is not None:
                quotes[coin_id] = PriceQuote(
                    coin_id=coin_id,
                    usd=float(cached["usd"]),
                    change_24h=_optional_float(cached.get("usd_24h_change")),
                )
            else:
                missing.append(coin_id)

        if not missing:
            return quotes

        try:
            payload = await self.retry.run_in_thread(
                self.http.get_json,
                f"{self.api_url}/simple/price",
                {
                    "ids": ",".join(missing),
                    "vs_currencies": "usd",
                    "include_24hr_change": "true",
                },
                description="coingecko simple/price",
            )
        except Exception as e:
            logger.warning("Price lookup failed for %s: %s", ", ".join(missing), e)
            return quotes

        if not isinstance(payload, dict):
            logger.warning("Unexpected CoinGecko price payload: %r", payload)
            return quotes

        for coin_id in missing:
            entry = payload.get(coin_id)
            usd = _optional_float(entry.get("usd")) if isinstance(entry, dict) else None
            if usd is None:
                logger.debug("No USD quote for %s", coin_id)
                continue
            change = _optional_float(entry.get("usd_24h_change"))
            quotes[coin_id] = PriceQuote(coin_id=coin_id, usd=usd, change_24h=change)
            self.cache.set(
                self.price_cache_key(coin_id),
                {"usd": usd, "usd_24h_change": change},
                self.config.price_cache_ttl,
            )

        return quotes

    async def fetch_market_data(self, limit: int = 20) -> list[MarketAsset]:
        if not 1 <= limit <= MAX_MARKET_LIMIT:
            raise ValueError(f"limit must be between 1 and {MAX_MARKET_LIMIT}, got {limit}")

        key = self.markets_cache_key(limit)
        cached = self.cache.get(key)
        if isinstance(cached, list):
            return [MarketAsset.from_dict(item) for item in cached]

        try:
            payload = await self.retry.run_in_thread(
                self.http.get_json,
                f"{self.api_url}/coins/markets",
                {
                    "vs_currency": "usd",
                    "order": "market_cap_desc",
                    "per_page": limit,
                    "page": 1,
                    "sparkline": "false",
                    "price_change_percentage": "24h",
                },
                description="coingecko coins/markets",
            )
        except Exception as e:
            logger.warning("Market data lookup failed: %s", e)
            return []

        if not isinstance(payload, list):
            logger.warning("Unexpected coins/markets payload: %s", type(payload).__name__)
            return []

        assets: list[MarketAsset] = []
        for item in payload:
            if not isinstance(item, dict):
                continue
            price = _optional_float(item.get("current_price"))
            if not item.get("id") or price is None:
                continue
            assets.append(
                MarketAsset(
                    id=item["id"],
                    symbol=str(item.get("symbol", "")).upper(),
                    name=item.get("name", item["id"]),
                    price=price,
                    change=_optional_float(item.get("price_change_percentage_24h")),
                    image=item.get("image"),
                    market_cap_rank=item.get("market_cap_rank"),
                )
            )

        self.cache.set(
            key, [asset.to_dict() for asset in assets], self.config.market_data_cache_ttl
        )
        return assets
