from __future__ import annotations

from ...domain import Chain
from .base import BaseChainAdapter
from .bitcoin import BitcoinAdapter
from .ethereum import EthereumAdapter
from .solana import SolanaAdapter

ADAPTER_REGISTRY: dict[Chain, type[BaseChainAdapter]] = {
    Chain.ETHEREUM: EthereumAdapter,
    Chain.BITCOIN: BitcoinAdapter,
    Chain.SOLANA: SolanaAdapter,
}


__all__ = [
    "ADAPTER_REGISTRY",
    "BaseChainAdapter",
    "BitcoinAdapter",
    "EthereumAdapter",
    "SolanaAdapter",
]
