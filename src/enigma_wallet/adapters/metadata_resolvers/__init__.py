from __future__ import annotations

from .base import BaseTokenMetadataResolver
from .erc20 import Erc20MetadataResolver
from .solana_token_list import UNKNOWN_SOLANA_TOKEN, SolanaTokenListResolver

__all__ = [
    "BaseTokenMetadataResolver",
    "Erc20MetadataResolver",
    "SolanaTokenListResolver",
    "UNKNOWN_SOLANA_TOKEN",
]
