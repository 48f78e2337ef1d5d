from __future__ import annotations

from typing import Any

from ...cache import ResponseCache
from ...clients.http import HttpJsonClient
from ...constants import (
    SOLANA_TOKEN_LIST_CACHE_KEY,
    UNKNOWN_SOLANA_TOKEN_DECIMALS,
    UNKNOWN_TOKEN_NAME,
    UNKNOWN_TOKEN_SYMBOL,
    TokenListEntry,
)
from ...domain import TokenMetadata
from ...errors import MetadataUnavailable
from ...logger import get_logger
from ...retry import RetryExecutor
from .base import BaseTokenMetadataResolver

logger = get_logger(__name__)

UNKNOWN_SOLANA_TOKEN = TokenMetadata(
    symbol=UNKNOWN_TOKEN_SYMBOL,
    name=UNKNOWN_TOKEN_NAME,
    decimals=UNKNOWN_SOLANA_TOKEN_DECIMALS,
)

_KEPT_FIELDS = ("address", "symbol", "name", "decimals", "logoURI")


class SolanaTokenListResolver(BaseTokenMetadataResolver):
    """Looks up SPL mints in the public Solana token list.

    The list is downloaded once per TTL window and shared through the cache.
    Unknown mints and download failures resolve to ``UNKNOWN_SOLANA_TOKEN``;
    this resolver never raises.
    """

    def __init__(
        self,
        http: HttpJsonClient,
        cache: ResponseCache,
        retry: RetryExecutor,
        ttl: int,
        token_list_url: str,
    ):
        super().__init__(cache, retry, ttl)
        self.http = http
        self.token_list_url = token_list_url

    @property
    def resolver_name(self) -> str:
        return "solana_token_list"

    async def resolve(self, address: str) -> TokenMetadata:
        try:
            tokens = await self._load_token_list()
        except Exception as e:
            logger.warning(
                "Solana token list unavailable, using fallback metadata for %s: %s",
                address,
                e,
            )
            return UNKNOWN_SOLANA_TOKEN

        for entry in tokens:
            if entry.get("address") != address:
                continue
            try:
                return TokenMetadata(
                    symbol=str(entry["symbol"]),
                    name=str(entry["name"]),
                    decimals=int(entry["decimals"]),
                    logo=entry.get("logoURI"),
                )
            except (KeyError, TypeError, ValueError):
                logger.debug("Malformed token list entry for %s: %r", address, entry)
                break

        logger.debug("Mint %s not in token list, using fallback metadata", address)
        return UNKNOWN_SOLANA_TOKEN

    async def _load_token_list(self) -> list[TokenListEntry]:
        cached = self.cache.get(SOLANA_TOKEN_LIST_CACHE_KEY)
        if isinstance(cached, list):
            return cached

        payload = await self.retry.run_in_thread(
            self.http.get_json, self.token_list_url, description="solana token list"
        )
        tokens = _extract_tokens(payload)
        logger.info("Downloaded Solana token list with %d entries", len(tokens))
        self.cache.set(SOLANA_TOKEN_LIST_CACHE_KEY, tokens, self.ttl)
        return tokens


def _extract_tokens(payload: Any) -> list[TokenListEntry]:
    raw = payload.get("tokens") if isinstance(payload, dict) else payload
    if not isinstance(raw, list):
        raise MetadataUnavailable("Solana token list has no 'tokens' array")
    return [
        {key: entry[key] for key in _KEPT_FIELDS if key in entry}  # type: ignore[misc]
        for entry in raw
        if isinstance(entry, dict) and "address" in entry
    ]
