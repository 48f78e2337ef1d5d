from __future__ import annotations

from unittest.mock import MagicMock

import pytest
import requests

from enigma_wallet.adapters.price_adapters import CoinGeckoAdapter
from enigma_wallet.domain import MarketAsset, PriceQuote

MARKETS = [
    {
        "id": "bitcoin",
        "symbol": "btc",
        "name": "Bitcoin",
        "image": "https://example.com/btc.png",
        "current_price": 65000.5,
        "market_cap_rank": 1,
        "price_change_percentage_24h": 1.25,
    },
    {
        "id": "ethereum",
        "symbol": "eth",
        "name": "Ethereum",
        "image": "https://example.com/eth.png",
        "current_price": 3200,
        "market_cap_rank": 2,
        "price_change_percentage_24h": None,
    },
]


@pytest.fixture
def http():
    return MagicMock()


@pytest.fixture
def adapter(settings, cache, retry, http):
    return CoinGeckoAdapter(settings, cache, retry, http=http)


def test_coin_id_for_symbol(adapter):
    assert adapter.coin_id_for_symbol("eth") == "ethereum"
    assert adapter.coin_id_for_symbol("USDC") == "usd-coin"
    assert adapter.coin_id_for_symbol("NOPE") is None
    assert adapter.coin_id_for_symbol(None) is None


@pytest.mark.asyncio
async def test_fetch_quotes(adapter, http):
    http.get_json.return_value = {
        "ethereum": {"usd": 3000.0, "usd_24h_change": -2.5},
        "usd-coin": {"usd": 1.0},
    }

    quotes = await adapter.fetch_quotes(["ethereum", "usd-coin", "ethereum", "missing-coin"])

    assert quotes == {
        "ethereum": PriceQuote(coin_id="ethereum", usd=3000.0, change_24h=-2.5),
        "usd-coin": PriceQuote(coin_id="usd-coin", usd=1.0, change_24h=None),
    }
    url, params = http.get_json.call_args.args
    assert url == "https://api.coingecko.com/api/v3/simple/price"
    assert params["ids"] == "ethereum,usd-coin,missing-coin"
    assert params["vs_currencies"] == "usd"
    assert params["include_24hr_change"] == "true"


@pytest.mark.asyncio
async def test_only_uncached_ids_are_requested(adapter, http, clock):
    http.get_json.return_value = {"ethereum": {"usd": 3000.0}}
    await adapter.fetch_quotes(["ethereum"])

    http.get_json.return_value = {"solana": {"usd": 150.0}}
    quotes = await adapter.fetch_quotes(["ethereum", "solana"])

    assert set(quotes) == {"ethereum", "solana"}
    assert http.get_json.call_args.args[1]["ids"] == "solana"

    clock.advance(60)
    http.get_json.return_value = {"ethereum": {"usd": 3100.0}, "solana": {"usd": 151.0}}
    quotes = await adapter.fetch_quotes(["ethereum", "solana"])
    assert quotes["ethereum"].usd == 3100.0
    assert http.get_json.call_count == 3


@pytest.mark.asyncio
async def test_quote_failure_is_best_effort(adapter, http):
    http.get_json.side_effect = requests.ConnectionError("offline")

    assert await adapter.fetch_quotes(["ethereum"]) == {}


@pytest.mark.asyncio
async def test_fetch_market_data_is_cached(adapter, http):
    http.get_json.return_value = MARKETS

    assets = await adapter.fetch_market_data(2)
    again = await adapter.fetch_market_data(2)

    assert assets == [
        MarketAsset(
            id="bitcoin",
            symbol="BTC",
            name="Bitcoin",
            price=65000.5,
            change=1.25,
            image="https://example.com/btc.png",
            market_cap_rank=1,
        ),
        MarketAsset(
            id="ethereum",
            symbol="ETH",
            name="Ethereum",
            price=3200.0,
            change=None,
            image="https://example.com/eth.png",
            market_cap_rank=2,
        ),
    ]
    assert again == assets
    assert http.get_json.call_count == 1
    params = http.get_json.call_args.args[1]
    assert params["per_page"] == 2
    assert params["order"] == "market_cap_desc"


@pytest.mark.asyncio
async def test_market_data_failure_returns_empty(adapter, http):
    http.get_json.side_effect = requests.HTTPError("500 Server Error")

    assert await adapter.fetch_market_data() == []


@pytest.mark.asyncio
async def test_malformed_market_rows_are_skipped(adapter, http):
    http.get_json.return_value = ["bitcoin", None, MARKETS[0], {"id": "no-price"}]

    assets = await adapter.fetch_market_data(4)

    assert [asset.id for asset in assets] == ["bitcoin"]


@pytest.mark.asyncio
async def test_non_list_market_payload_is_not_cached(adapter, http, cache):
    http.get_json.side_effect = [{"status": {"error_code": 429}}, MARKETS]

    assert await adapter.fetch_market_data(2) == []
    assert cache.get(adapter.markets_cache_key(2)) is None

    assets = await adapter.fetch_market_data(2)

    assert [asset.id for asset in assets] == ["bitcoin", "ethereum"]
    assert http.get_json.call_count == 2


@pytest.mark.asyncio
async def test_market_data_limit_is_bounded(adapter):
    with pytest.raises(ValueError, match="limit must be between"):
        await adapter.fetch_market_data(0)
