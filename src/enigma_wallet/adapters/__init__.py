from __future__ import annotations

from .chain_adapters import ADAPTER_REGISTRY
from .price_adapters import CoinGeckoAdapter

__all__ = ["ADAPTER_REGISTRY", "CoinGeckoAdapter"]
