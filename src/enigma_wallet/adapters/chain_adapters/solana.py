from __future__ import annotations

import asyncio
from typing import Any

from solders.pubkey import Pubkey

from ...cache import ResponseCache
from ...clients.http import HttpJsonClient
from ...clients.solana_rpc import SolanaRpcClient
from ...constants import SOLANA_TOKEN_PROGRAMS
from ...domain import Chain, TokenBalance
from ...errors import InvalidAddress
from ...logger import get_logger
from ...retry import RetryExecutor
from ...settings import WalletSettings
from ...units import format_units
from ..metadata_resolvers import BaseTokenMetadataResolver, SolanaTokenListResolver
from .base import BaseChainAdapter

logger = get_logger(__name__)


class SolanaAdapter(BaseChainAdapter):
    """SOL plus SPL Token and Token-2022 holdings over Solana JSON-RPC.

    Token enumeration degrades gracefully: a program whose enumeration fails
    contributes no tokens, and an account whose detail read fails is dropped.
    """

    def __init__(
        self,
        config: WalletSettings,
        retry: RetryExecutor,
        cache: ResponseCache,
        http: HttpJsonClient | None = None,
        rpc: SolanaRpcClient | None = None,
        metadata_resolver: BaseTokenMetadataResolver | None = None,
    ):
        super().__init__(config, retry, cache, http)
        self.rpc = rpc or SolanaRpcClient(config.solana_rpc_url_required, self.http)
        self.metadata_resolver = metadata_resolver or SolanaTokenListResolver(
            self.http,
            cache,
            retry,
            config.token_list_cache_ttl,
            config.solana_token_list_url,
        )

    @property
    def chain(self) -> Chain:
        return Chain.SOLANA

    def validate_address(self, address: str) -> None:
        try:
            Pubkey.from_string(address)
        except Exception as e:
            raise InvalidAddress("Invalid Solana address") from e

    async def fetch_native_balance(self, address: str) -> int:
        return await self._call(self.rpc.get_balance, address, description="getBalance")

    async def fetch_tokens(self, address: str) -> list[TokenBalance]:
        accounts = await self._fetch_token_accounts(address)

        results = await asyncio.gather(
            *[self._token_balance(account) for account in accounts],
            return_exceptions=True,
        )

        tokens: list[TokenBalance] = []
        for account, result in zip(accounts, results):
            if isinstance(result, BaseException):
                logger.warning(
                    "Dropping token account %s for %s: %s",
                    account.get("pubkey"),
                    address,
                    self._describe(result),
                )
            elif result is not None:
                tokens.append(result)
        return tokens

    async def _fetch_token_accounts(self, owner: str) -> list[dict[str, Any]]:
        """Token accounts owned by ``owner`` under every token program."""
        results = await asyncio.gather(
            *[
                self._call(
                    self.rpc.get_token_accounts_by_owner,
                    owner,
                    program_id,
                    description=f"getTokenAccountsByOwner({program_id})",
                )
                for program_id in SOLANA_TOKEN_PROGRAMS
            ],
            return_exceptions=True,
        )

        accounts: list[dict[str, Any]] = []
        for program_id, result in zip(SOLANA_TOKEN_PROGRAMS, results):
            if isinstance(result, BaseException):
                logger.warning(
                    "Failed to enumerate token accounts of %s under program %s: %s",
                    owner,
                    program_id,
                    self._describe(result),
                )
                continue
            logger.debug(
                "Program %s: %d token accounts for %s", program_id, len(result), owner
            )
            accounts.extend(result)
        return accounts

    async def _token_balance(self, account: dict[str, Any]) -> TokenBalance | None:
        pubkey = account["pubkey"]
        info = await self._call(
            self.rpc.get_parsed_account_info,
            pubkey,
            description=f"getAccountInfo({pubkey})",
        )
        if info is None:
            logger.debug("Token account %s no longer exists", pubkey)
            return None

        parsed = info["data"]["parsed"]["info"]
        mint = parsed["mint"]
        raw_amount = int(parsed["tokenAmount"]["amount"])

        metadata = await self.metadata_resolver.resolve(mint)
        return TokenBalance(
            token_address=mint,
            name=metadata.name,
            symbol=metadata.symbol,
            balance=format_units(raw_amount, metadata.decimals),
            logo=metadata.logo,
        )
