from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from enigma_wallet.constants import COINGECKO_IDS
from enigma_wallet.domain import Chain, NormalizedBalance, PriceQuote, TokenBalance
from enigma_wallet.processors import enrich_balance


@pytest.fixture
def price_adapter():
    adapter = MagicMock()
    adapter.coin_id_for_symbol.side_effect = lambda s: COINGECKO_IDS.get((s or "").upper())
    adapter.fetch_quotes = AsyncMock(
        return_value={
            "ethereum": PriceQuote(coin_id="ethereum", usd=2000.0, change_24h=1.5),
            "usd-coin": PriceQuote(coin_id="usd-coin", usd=1.0, change_24h=0.01),
        }
    )
    return adapter


@pytest.mark.asyncio
async def test_enrich_balance_values_native_and_tokens(price_adapter):
    balance = NormalizedBalance(
        native_balance="1.5 ETH",
        tokens=[
            TokenBalance(token_address="0xusdc", balance="12.5", symbol="USDC", name="USD Coin"),
            TokenBalance(token_address="0xmeme", balance="1000", symbol="MEME", name="Meme"),
        ],
    )

    enriched = await enrich_balance(Chain.ETHEREUM, balance, price_adapter)

    assert enriched.native_usd_value == 3000.0
    usdc, meme = enriched.tokens
    assert (usdc.price, usdc.change, usdc.usd_value) == (1.0, 0.01, 12.5)
    assert meme == balance.tokens[1]
    price_adapter.fetch_quotes.assert_awaited_once_with(["ethereum", "usd-coin"])

    # the input snapshot is left untouched
    assert balance.native_usd_value is None
    assert balance.tokens[0].price is None


@pytest.mark.asyncio
async def test_enrich_balance_wire_format(price_adapter):
    balance = NormalizedBalance(native_balance="0 ETH", tokens=[])

    enriched = await enrich_balance(Chain.ETHEREUM, balance, price_adapter)

    assert enriched.to_dict() == {"nativeBalance": "0 ETH", "tokens": [], "nativeUsdValue": 0.0}


@pytest.mark.asyncio
async def test_missing_quotes_leave_balance_unpriced(price_adapter):
    price_adapter.fetch_quotes.return_value = {}
    balance = NormalizedBalance(native_balance="2 SOL", tokens=[])

    enriched = await enrich_balance(Chain.SOLANA, balance, price_adapter)

    assert enriched == balance
