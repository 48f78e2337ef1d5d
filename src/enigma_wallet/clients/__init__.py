from __future__ import annotations

from .http import HttpJsonClient
from .solana_rpc import SolanaRpcClient

__all__ = ["HttpJsonClient", "SolanaRpcClient"]
