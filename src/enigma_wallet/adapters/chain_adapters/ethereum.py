from __future__ import annotations

import asyncio
from typing import Any

from web3 import Web3

from ...cache import ResponseCache
from ...clients.http import HttpJsonClient
from ...domain import Chain, TokenBalance
from ...errors import InvalidAddress, MetadataUnavailable, UpstreamFailure
from ...logger import get_logger
from ...retry import RetryExecutor
from ...settings import WalletSettings
from ...units import format_units
from ..metadata_resolvers import BaseTokenMetadataResolver, Erc20MetadataResolver
from .base import BaseChainAdapter

logger = get_logger(__name__)


def _parse_quantity(value: Any) -> int | None:
    """Parse a hex ("0x...") or decimal quantity; None when unparseable."""
    if value is None:
        return None
    if isinstance(value, int):
        return value
    text = str(value).strip()
    try:
        if text.lower().startswith("0x"):
            return int(text, 16) if len(text) > 2 else 0
        return int(text)
    except ValueError:
        return None


class EthereumAdapter(BaseChainAdapter):
    """Native ETH plus ERC-20 holdings via an Alchemy JSON-RPC endpoint."""

    def __init__(
        self,
        config: WalletSettings,
        retry: RetryExecutor,
        cache: ResponseCache,
        http: HttpJsonClient | None = None,
        w3: Web3 | None = None,
        metadata_resolver: BaseTokenMetadataResolver | None = None,
    ):
        super().__init__(config, retry, cache, http)
        self.w3 = w3 or Web3(
            Web3.HTTPProvider(
                config.ethereum_rpc_url,
                request_kwargs={"timeout": config.http_timeout},
                session=self.http.session,
                exception_retry_configuration=None,
            )
        )
        self.metadata_resolver = metadata_resolver or Erc20MetadataResolver(
            self.w3,
            cache,
            retry,
            config.token_metadata_cache_ttl,
            semaphore=self._rpc_sem,
        )

    @property
    def chain(self) -> Chain:
        return Chain.ETHEREUM

    def validate_address(self, address: str) -> None:
        if not Web3.is_address(address):
            raise InvalidAddress("Invalid Ethereum address")

    async def fetch_native_balance(self, address: str) -> int:
        checksum = Web3.to_checksum_address(address)
        balance = await self._call(
            self.w3.eth.get_balance, checksum, description="eth_getBalance"
        )
        return int(balance)

    async def fetch_tokens(self, address: str) -> list[TokenBalance]:
        holdings = await self._fetch_token_holdings(address)
        if not holdings:
            return []

        results = await asyncio.gather(
            *[self._enrich(contract, raw) for contract, raw in holdings]
        )
        return [token for token in results if token is not None]

    async def _fetch_token_holdings(self, address: str) -> list[tuple[str, int]]:
        """Return (contract, raw amount) pairs with non-zero balances."""
        checksum = Web3.to_checksum_address(address)
        response = await self._call(
            self.w3.provider.make_request,
            "alchemy_getTokenBalances",
            [checksum, "erc20"],
            description="alchemy_getTokenBalances",
        )

        error = response.get("error") if isinstance(response, dict) else None
        if error:
            message = error.get("message") if isinstance(error, dict) else error
            raise UpstreamFailure(f"alchemy_getTokenBalances failed: {message}")

        result = response.get("result") if isinstance(response, dict) else None
        if not isinstance(result, dict):
            raise UpstreamFailure("alchemy_getTokenBalances returned no result")

        holdings: list[tuple[str, int]] = []
        for entry in result.get("tokenBalances") or []:
            contract = entry.get("contractAddress")
            raw = _parse_quantity(entry.get("tokenBalance"))
            if not contract or entry.get("error") or not raw:
                continue
            holdings.append((contract, raw))

        logger.debug("Found %d non-zero ERC-20 balances for %s", len(holdings), address)
        return holdings

    async def _enrich(self, contract_address: str, raw_amount: int) -> TokenBalance | None:
        try:
            metadata = await self.metadata_resolver.resolve(contract_address)
        except MetadataUnavailable as e:
            logger.warning(
                "Skipping token %s, %s metadata unavailable: %s",
                contract_address,
                self.metadata_resolver.resolver_name,
                self._describe(e),
            )
            return None

        return TokenBalance(
            token_address=contract_address,
            name=metadata.name,
            symbol=metadata.symbol,
            balance=format_units(raw_amount, metadata.decimals),
            logo=metadata.logo,
        )
