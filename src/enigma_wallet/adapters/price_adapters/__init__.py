from .base import BasePriceAdapter
from .coingecko import CoinGeckoAdapter

__all__ = ["BasePriceAdapter", "CoinGeckoAdapter"]
