from __future__ import annotations

from unittest.mock import MagicMock

import pytest
import requests

from enigma_wallet.adapters.chain_adapters import BitcoinAdapter
from enigma_wallet.errors import UpstreamFailure

ADDRESS = "bc1qar0srrr7xfkvy5l643lydnw9re59gtzzwf5mdq"


@pytest.fixture
def http():
    http = MagicMock()
    http.get_json.return_value = {
        "address": ADDRESS,
        "total_received": 0,
        "total_sent": 0,
        "balance": 0,
        "unconfirmed_balance": 0,
        "final_balance": 0,
    }
    return http


@pytest.fixture
def adapter(settings, retry, cache, http):
    return BitcoinAdapter(settings, retry, cache, http=http)


@pytest.mark.asyncio
async def test_zero_holdings(adapter):
    balance = await adapter.fetch_balance(ADDRESS)

    assert balance.native_balance == "0 BTC"
    assert balance.tokens == []


@pytest.mark.asyncio
async def test_satoshis_are_divided_by_1e8(adapter, http):
    http.get_json.return_value["balance"] = 250_000_000

    balance = await adapter.fetch_balance(ADDRESS)

    assert balance.native_balance == "2.5 BTC"
    http.get_json.assert_called_once_with(
        f"https://api.blockcypher.com/v1/btc/main/addrs/{ADDRESS}/balance",
        {"token": "blockcypher-test-token"},
    )


@pytest.mark.asyncio
async def test_address_is_not_validated_locally(adapter, http):
    http.get_json.side_effect = requests.HTTPError("400 Client Error")

    with pytest.raises(requests.HTTPError):
        await adapter.fetch_balance("definitely-not-bitcoin")

    assert http.get_json.call_count == 1


@pytest.mark.asyncio
async def test_malformed_response_is_upstream_failure(adapter, http):
    http.get_json.return_value = {"error": "unexpected"}

    with pytest.raises(UpstreamFailure):
        await adapter.fetch_balance(ADDRESS)
