from __future__ import annotations

import json
from unittest.mock import AsyncMock, MagicMock

import pytest
from typer.testing import CliRunner

from enigma_wallet import main
from enigma_wallet.cache import FileResponseCache, ResponseCache
from enigma_wallet.domain import BalanceQuery, Chain, MarketAsset, NormalizedBalance
from enigma_wallet.errors import UpstreamFailure

runner = CliRunner()

ADDRESS = "0xd8dA6BF26964aF9D7eEd9e03E53415D37aA96045"


@pytest.fixture
def credentials(monkeypatch):
    monkeypatch.setenv("ENIGMA_WALLET_ALCHEMY_API_KEY", "cli-alchemy-key")
    monkeypatch.setenv("ENIGMA_WALLET_SOLANA_RPC_URL", "https://solana.example/rpc")
    monkeypatch.setenv("ENIGMA_WALLET_BLOCKCYPHER_API_TOKEN", "cli-bc-token")


@pytest.fixture
def fake_state(monkeypatch):
    state = MagicMock()
    state.fetch_balance = AsyncMock(
        return_value=NormalizedBalance(native_balance="0 ETH", tokens=[])
    )
    state.price_adapter.fetch_market_data = AsyncMock(
        return_value=[
            MarketAsset(id="ethereum", symbol="ETH", name="Ethereum", price=3000.0)
        ]
    )
    built_with = {}

    def _build_state(settings, cache=None):
        built_with["settings"] = settings
        built_with["cache"] = cache
        return state

    monkeypatch.setattr(main, "build_state", _build_state)
    state.built_with = built_with
    return state


def test_show_config_redacts_secrets(credentials):
    result = runner.invoke(main.app, ["show-config"])

    assert result.exit_code == 0
    data = json.loads(result.stdout)
    assert data["alchemy_api_key"] == "***redacted***"
    assert "cli-alchemy-key" not in result.stdout


def test_show_config_reads_config_file(tmp_path):
    config_path = tmp_path / "custom.toml"
    config_path.write_text("[enigma_wallet]\nbalance_cache_ttl = 15\n")

    result = runner.invoke(main.app, ["show-config", "--config", str(config_path)])

    assert result.exit_code == 0
    assert json.loads(result.stdout)["balance_cache_ttl"] == 15


def test_balance_prints_json(credentials, fake_state):
    result = runner.invoke(main.app, ["balance", "ethereum", ADDRESS])

    assert result.exit_code == 0, result.output
    assert json.loads(result.stdout) == {"nativeBalance": "0 ETH", "tokens": []}
    fake_state.fetch_balance.assert_awaited_once_with(
        BalanceQuery(Chain.ETHEREUM, ADDRESS), include_prices=False
    )
    assert isinstance(fake_state.built_with["cache"], FileResponseCache)
    fake_state.close.assert_called_once()


def test_balance_with_prices_and_without_cache(credentials, fake_state):
    result = runner.invoke(main.app, ["balance", "ethereum", ADDRESS, "--prices", "--no-cache"])

    assert result.exit_code == 0, result.output
    assert fake_state.fetch_balance.await_args.kwargs == {"include_prices": True}
    cache = fake_state.built_with["cache"]
    assert isinstance(cache, ResponseCache)
    assert not isinstance(cache, FileResponseCache)


def test_balance_unsupported_chain_is_usage_error(credentials, fake_state):
    result = runner.invoke(main.app, ["balance", "dogecoin", "D1"])

    assert result.exit_code == 2
    fake_state.fetch_balance.assert_not_awaited()


def test_balance_upstream_failure_exits_nonzero(credentials, fake_state):
    fake_state.fetch_balance.side_effect = UpstreamFailure(
        "Failed to fetch balance", details="boom"
    )

    result = runner.invoke(main.app, ["balance", "ethereum", ADDRESS])

    assert result.exit_code == 1
    fake_state.close.assert_called_once()


def test_missing_credentials_is_usage_error():
    result = runner.invoke(main.app, ["balance", "ethereum", ADDRESS])

    assert result.exit_code == 2


def test_markets(credentials, fake_state):
    result = runner.invoke(main.app, ["markets", "--limit", "1"])

    assert result.exit_code == 0, result.output
    assert json.loads(result.stdout)[0]["id"] == "ethereum"
    fake_state.price_adapter.fetch_market_data.assert_awaited_once_with(1)


def test_serve_runs_uvicorn_with_settings(credentials, fake_state, monkeypatch):
    calls = {}

    def _fake_run(app, **kwargs):
        calls["app"] = app
        calls.update(kwargs)

    monkeypatch.setattr("uvicorn.run", _fake_run)

    result = runner.invoke(main.app, ["serve", "--port", "8123"])

    assert result.exit_code == 0, result.output
    assert calls["host"] == "0.0.0.0"
    assert calls["port"] == 8123
    assert calls["app"].state.wallet is fake_state
