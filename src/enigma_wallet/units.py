from __future__ import annotations


def format_units(value: int, decimals: int) -> str:
    """Format an integer base-unit amount as a decimal string.

    Args:
        value: Amount in the smallest unit (wei, satoshi, lamport, raw token).
        decimals: Number of decimal places the unit carries.

    Returns:
        The amount divided by ``10**decimals`` with trailing fractional zeros
        stripped, e.g. ``format_units(123456789, 6) == "123.456789"`` and
        ``format_units(10**9, 9) == "1"``.

    Raises:
        ValueError: If ``decimals`` is negative.
    """
    if decimals < 0:
        raise ValueError(f"decimals must be non-negative, got {decimals}")

    whole, fraction = divmod(abs(value), 10**decimals)
    fraction_str = str(fraction).rjust(decimals, "0").rstrip("0") if decimals else ""
    text = f"{whole}.{fraction_str}" if fraction_str else str(whole)
    return f"-{text}" if value < 0 else text


def format_native(value: int, decimals: int, ticker: str) -> str:
    """Format a native balance as ``"<amount> <TICKER>"``."""
    return f"{format_units(value, decimals)} {ticker}"
