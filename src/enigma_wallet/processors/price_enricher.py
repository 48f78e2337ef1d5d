from __future__ import annotations

from dataclasses import replace
from decimal import Decimal, InvalidOperation

from ..adapters.price_adapters.base import BasePriceAdapter
from ..domain import Chain, NormalizedBalance, PriceQuote, TokenBalance
from ..logger import get_logger

logger = get_logger(__name__)


def _usd_value(amount: str, quote: PriceQuote) -> float | None:
    try:
        return float(Decimal(amount) * Decimal(str(quote.usd)))
    except (InvalidOperation, ValueError):
        logger.debug("Cannot value amount %r", amount)
        return None


def _native_amount(native_balance: str) -> str:
    """Numeric part of ``"<amount> <TICKER>"``."""
    return native_balance.split(" ", 1)[0]


async def enrich_balance(
    chain: Chain,
    balance: NormalizedBalance,
    price_adapter: BasePriceAdapter,
) -> NormalizedBalance:
    """Attach USD pricing to a normalized balance.

    Args:
        chain: Chain the balance was fetched from, for the native ticker
        balance: Balance to price; it is not modified
        price_adapter: Source of quotes

    Returns:
        A new balance whose tokens carry ``price``, ``change`` and ``usdValue``
        where a quote exists, plus ``nativeUsdValue``. Tokens without a known
        coin id or quote are returned unchanged.
    """
    native_id = price_adapter.coin_id_for_symbol(chain.ticker)
    token_ids = [price_adapter.coin_id_for_symbol(token.symbol) for token in balance.tokens]

    wanted = [cid for cid in [native_id, *token_ids] if cid]
    if not wanted:
        return balance

    quotes = await price_adapter.fetch_quotes(wanted)
    logger.debug("Priced %d of %d coin ids", len(quotes), len(set(wanted)))

    tokens: list[TokenBalance] = []
    for token, coin_id in zip(balance.tokens, token_ids):
        quote = quotes.get(coin_id) if coin_id else None
        if quote is None:
            tokens.append(token)
            continue
        tokens.append(
            replace(
                token,
                price=quote.usd,
                change=quote.change_24h,
                usd_value=_usd_value(token.balance, quote),
            )
        )

    native_quote = quotes.get(native_id) if native_id else None
    native_usd = (
        _usd_value(_native_amount(balance.native_balance), native_quote)
        if native_quote
        else None
    )

    return replace(balance, tokens=tokens, native_usd_value=native_usd)
