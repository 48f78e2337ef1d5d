"""Minimal JSON-RPC client for Solana."""

from __future__ import annotations

from typing import Any

from ..constants import SOLANA_COMMITMENT
from ..errors import RateLimited, UpstreamFailure
from .http import HttpJsonClient

# Some RPC providers report throttling in the JSON-RPC error body
RATE_LIMIT_ERROR_CODES = {429, -32429}


class SolanaRpcClient:
    """Blocking Solana JSON-RPC client; callers offload it to a thread."""

    def __init__(self, rpc_url: str, http: HttpJsonClient):
        self._rpc_url = rpc_url
        self._http = http
        self._request_id = 0

    def call(self, method: str, params: list[Any]) -> Any:
        """Invoke ``method`` and return its ``result`` field.

        Raises:
            RateLimited: On HTTP 429 or a throttling JSON-RPC error.
            UpstreamFailure: On any other JSON-RPC error or a malformed body.
        """
        self._request_id += 1
        payload = {
            "jsonrpc": "2.0",
            "id": self._request_id,
            "method": method,
            "params": params,
        }
        body = self._http.post_json(self._rpc_url, payload)
        if not isinstance(body, dict):
            raise UpstreamFailure(f"Malformed Solana RPC response for {method}")

        error = body.get("error")
        if error:
            code = error.get("code") if isinstance(error, dict) else None
            message = error.get("message") if isinstance(error, dict) else str(error)
            if code in RATE_LIMIT_ERROR_CODES:
                raise RateLimited(f"Solana RPC {method} rate limited: {message}")
            raise UpstreamFailure(f"Solana RPC {method} failed: {message}")

        if "result" not in body:
            raise UpstreamFailure(f"Solana RPC {method} returned no result")
        return body["result"]

    def get_balance(self, address: str) -> int:
        result = self.call("getBalance", [address, {"commitment": SOLANA_COMMITMENT}])
        return int(result["value"])

    def get_token_accounts_by_owner(
        self, owner: str, program_id: str
    ) -> list[dict[str, Any]]:
        result = self.call(
            "getTokenAccountsByOwner",
            [
                owner,
                {"programId": program_id},
                {"encoding": "jsonParsed", "commitment": SOLANA_COMMITMENT},
            ],
        )
        return list(result["value"])

    def get_parsed_account_info(self, account: str) -> dict[str, Any] | None:
        result = self.call(
            "getAccountInfo",
            [account, {"encoding": "jsonParsed", "commitment": SOLANA_COMMITMENT}],
        )
        return result.get("value")
