from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from enigma_wallet.clients.solana_rpc import SolanaRpcClient
from enigma_wallet.constants import SPL_TOKEN_PROGRAM_ID
from enigma_wallet.errors import RateLimited, UpstreamFailure


@pytest.fixture
def http():
    return MagicMock()


@pytest.fixture
def client(http):
    return SolanaRpcClient("https://rpc.example", http)


def test_get_balance(client, http):
    http.post_json.return_value = {"jsonrpc": "2.0", "id": 1, "result": {"value": 1_000_000_000}}

    assert client.get_balance("owner") == 1_000_000_000

    url, payload = http.post_json.call_args.args
    assert url == "https://rpc.example"
    assert payload["method"] == "getBalance"
    assert payload["params"][0] == "owner"


def test_get_token_accounts_by_owner_uses_program_filter(client, http):
    http.post_json.return_value = {"result": {"value": [{"pubkey": "acc1"}]}}

    assert client.get_token_accounts_by_owner("owner", SPL_TOKEN_PROGRAM_ID) == [
        {"pubkey": "acc1"}
    ]

    payload = http.post_json.call_args.args[1]
    assert payload["method"] == "getTokenAccountsByOwner"
    assert payload["params"][1] == {"programId": SPL_TOKEN_PROGRAM_ID}
    assert payload["params"][2]["encoding"] == "jsonParsed"


def test_get_parsed_account_info_missing_account(client, http):
    http.post_json.return_value = {"result": {"context": {}, "value": None}}
    assert client.get_parsed_account_info("closed") is None


def test_request_ids_increase(client, http):
    http.post_json.return_value = {"result": {"value": 0}}
    client.get_balance("a")
    client.get_balance("b")
    ids = [c.args[1]["id"] for c in http.post_json.call_args_list]
    assert ids == [1, 2]


def test_rate_limit_error_code_raises_rate_limited(client, http):
    http.post_json.return_value = {"error": {"code": 429, "message": "Too many requests"}}

    with pytest.raises(RateLimited):
        client.get_balance("owner")


def test_rpc_error_raises_upstream_failure(client, http):
    http.post_json.return_value = {"error": {"code": -32602, "message": "Invalid param"}}

    with pytest.raises(UpstreamFailure, match="Invalid param"):
        client.get_balance("owner")


def test_missing_result_raises_upstream_failure(client, http):
    http.post_json.return_value = {"jsonrpc": "2.0", "id": 1}

    with pytest.raises(UpstreamFailure, match="no result"):
        client.get_balance("owner")
