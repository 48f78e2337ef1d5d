from __future__ import annotations

from urllib.parse import quote

from ...cache import ResponseCache
from ...clients.http import HttpJsonClient
from ...domain import Chain
from ...errors import UpstreamFailure
from ...retry import RetryExecutor
from ...settings import WalletSettings
from .base import BaseChainAdapter


class BitcoinAdapter(BaseChainAdapter):
    """BTC balance from the BlockCypher address API.

    Addresses are not validated locally; BlockCypher rejects malformed input
    and that rejection surfaces as an upstream failure. Bitcoin has no token
    concept, so ``tokens`` is always empty.
    """

    def __init__(
        self,
        config: WalletSettings,
        retry: RetryExecutor,
        cache: ResponseCache,
        http: HttpJsonClient | None = None,
    ):
        super().__init__(config, retry, cache, http)
        self.api_url = config.blockcypher_api_url.rstrip("/")

    @property
    def chain(self) -> Chain:
        return Chain.BITCOIN

    async def fetch_native_balance(self, address: str) -> int:
        url = f"{self.api_url}/addrs/{quote(address, safe='')}/balance"
        data = await self._call(
            self.http.get_json,
            url,
            {"token": self.config.blockcypher_api_token_required},
            description="blockcypher address balance",
        )
        try:
            return int(data["balance"])
        except (KeyError, TypeError, ValueError) as e:
            raise UpstreamFailure("Unexpected BlockCypher balance response") from e
