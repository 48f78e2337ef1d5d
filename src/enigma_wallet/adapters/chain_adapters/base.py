from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from typing import Any, Callable, TypeVar

from ...cache import ResponseCache
from ...clients.http import HttpJsonClient
from ...domain import Chain, NormalizedBalance, TokenBalance
from ...errors import redact
from ...logger import get_logger
from ...retry import RetryExecutor
from ...settings import WalletSettings
from ...units import format_native

logger = get_logger(__name__)

T = TypeVar("T")


class BaseChainAdapter(ABC):
    """Abstract base class for chain adapters.

    ``fetch_balance`` runs Validating -> Fetching Native -> Fetching Tokens
    (-> Enriching, inside ``fetch_tokens``). Only validation may fail early.
    """

    def __init__(
        self,
        config: WalletSettings,
        retry: RetryExecutor,
        cache: ResponseCache,
        http: HttpJsonClient | None = None,
    ):
        """Initialize the adapter with configuration.

        Args:
            config: Wallet configuration
            retry: Retry policy applied to every upstream call
            cache: Shared cache for token reference data
            http: Shared HTTP client; a private one is created when omitted
        """
        self.config = config
        self.retry = retry
        self.cache = cache
        self.http = http or HttpJsonClient(timeout=config.http_timeout)
        self._rpc_sem = asyncio.Semaphore(config.rpc_max_concurrent_calls)
        self._secrets = config.secret_values()

    @property
    @abstractmethod
    def chain(self) -> Chain:
        """Return the chain this adapter serves."""
        ...

    @property
    def adapter_name(self) -> str:
        return self.chain.value

    def validate_address(self, address: str) -> None:
        """Raise InvalidAddress if ``address`` is malformed for this chain."""

    @abstractmethod
    async def fetch_native_balance(self, address: str) -> int:
        """Fetch the native balance in the chain's smallest unit."""
        ...

    async def fetch_tokens(self, address: str) -> list[TokenBalance]:
        """Enumerate and enrich token holdings; chains without tokens return []."""
        return []

    async def fetch_balance(self, address: str) -> NormalizedBalance:
        self.validate_address(address)

        native = await self.fetch_native_balance(address)
        logger.debug("%s native balance for %s: %d", self.adapter_name, address, native)

        tokens = await self.fetch_tokens(address)
        logger.debug("%s tokens for %s: %d", self.adapter_name, address, len(tokens))

        return NormalizedBalance(
            native_balance=format_native(native, self.chain.decimals, self.chain.ticker),
            tokens=tokens,
        )

    def _describe(self, exc: BaseException) -> str:
        """Exception text with configured credentials scrubbed, for logging."""
        return redact(str(exc), self._secrets)

    async def _call(
        self,
        fn: Callable[..., T],
        *args: Any,
        description: str | None = None,
        **kwargs: Any,
    ) -> T:
        """Throttle + retry a single blocking upstream call."""
        return await self.retry.run_in_thread(
            fn,
            *args,
            description=description,
            semaphore=self._rpc_sem,
            **kwargs,
        )
