"""Live upstream checks. Run with: pytest -m integration"""

from __future__ import annotations

import pytest

from enigma_wallet.domain import BalanceQuery
from enigma_wallet.settings import WalletSettings
from enigma_wallet.state import build_state

pytestmark = pytest.mark.integration

# Known addresses with long-lived holdings
ADDRESSES = {
    "ethereum": "0xd8dA6BF26964aF9D7eEd9e03E53415D37aA96045",
    "bitcoin": "bc1qar0srrr7xfkvy5l643lydnw9re59gtzzwf5mdq",
    "solana": "9WzDXwBbmkg8ZTbNMqUxvQRAyrZzDsGYdLVL9zYtAWWM",
}


@pytest.fixture
def live_state(monkeypatch):
    monkeypatch.undo()
    settings = WalletSettings()
    if settings.missing_credentials():
        pytest.skip("upstream credentials not configured")
    state = build_state(settings)
    yield state
    state.close()


@pytest.mark.parametrize("chain", sorted(ADDRESSES))
@pytest.mark.asyncio
async def test_live_balance(live_state, chain):
    query = BalanceQuery.parse(chain, ADDRESSES[chain])

    balance = await live_state.fetch_balance(query, include_prices=True)

    assert balance.native_balance.endswith(f" {query.chain.ticker}")
    assert all(token.balance for token in balance.tokens)
