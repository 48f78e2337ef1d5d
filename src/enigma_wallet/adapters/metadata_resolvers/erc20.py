from __future__ import annotations

import asyncio

from web3 import Web3

from ...abi import load_erc20_abi
from ...cache import ResponseCache
from ...domain import TokenMetadata
from ...errors import MetadataUnavailable
from ...logger import get_logger
from ...retry import RetryExecutor
from .base import BaseTokenMetadataResolver

logger = get_logger(__name__)


class Erc20MetadataResolver(BaseTokenMetadataResolver):
    """Reads decimals, symbol and name straight from an ERC-20 contract."""

    def __init__(
        self,
        w3: Web3,
        cache: ResponseCache,
        retry: RetryExecutor,
        ttl: int,
        semaphore: asyncio.Semaphore | None = None,
    ):
        super().__init__(cache, retry, ttl)
        self.w3 = w3
        self._semaphore = semaphore

    @property
    def resolver_name(self) -> str:
        return "erc20"

    @staticmethod
    def cache_key(contract_address: str) -> str:
        return f"ethereum:metadata:{contract_address.lower()}"

    async def resolve(self, address: str) -> TokenMetadata:
        """Resolve ERC-20 metadata for ``address``.

        Raises:
            MetadataUnavailable: If any contract read fails.
        """
        key = self.cache_key(address)
        cached = self.cache.get(key)
        if isinstance(cached, dict):
            try:
                return TokenMetadata.from_dict(cached)
            except (KeyError, TypeError, ValueError):
                logger.debug("Discarding malformed cached metadata for %s", address)

        try:
            checksum = Web3.to_checksum_address(address)
            contract = self.w3.eth.contract(address=checksum, abi=load_erc20_abi())
            decimals, symbol, name = await asyncio.gather(
                self._read(contract.functions.decimals().call, f"decimals({checksum})"),
                self._read(contract.functions.symbol().call, f"symbol({checksum})"),
                self._read(contract.functions.name().call, f"name({checksum})"),
            )
        except Exception as e:
            raise MetadataUnavailable(
                f"Failed to read ERC-20 metadata for {address}: {e}"
            ) from e

        metadata = TokenMetadata(symbol=str(symbol), name=str(name), decimals=int(decimals))
        self.cache.set(key, metadata.to_dict(), self.ttl)
        return metadata

    async def _read(self, fn, description: str):
        return await self.retry.run_in_thread(
            fn, description=description, semaphore=self._semaphore
        )
