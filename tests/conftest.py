from __future__ import annotations

import os

import pytest

from enigma_wallet.cache import ResponseCache
from enigma_wallet.retry import RetryExecutor
from enigma_wallet.settings import WalletSettings

ALCHEMY_KEY = "alchemy-test-key"
SOLANA_RPC_URL = "https://solana.example/rpc?api-key=solana-test-key"
BLOCKCYPHER_TOKEN = "blockcypher-test-token"


class FakeClock:
    """Manually advanced clock for TTL tests."""

    def __init__(self, now: float = 1_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch, tmp_path):
    """Keep developer env vars and config files out of the tests."""
    for key in list(os.environ):
        if key.startswith("ENIGMA_WALLET_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path))


@pytest.fixture
def settings():
    return WalletSettings(
        alchemy_api_key=ALCHEMY_KEY,
        solana_rpc_url=SOLANA_RPC_URL,
        blockcypher_api_token=BLOCKCYPHER_TOKEN,
        retry_base_delay=0.0,
    )


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return ResponseCache(clock=clock)


@pytest.fixture
def retry():
    return RetryExecutor(max_attempts=3, base_delay=0.0)


@pytest.fixture
def sleeps(monkeypatch):
    """Record retry delays instead of sleeping."""
    delays: list[float] = []

    async def _fake_sleep(delay, result=None):
        delays.append(delay)
        return result

    monkeypatch.setattr("asyncio.sleep", _fake_sleep)
    return delays
