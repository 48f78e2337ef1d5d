"""CLI entrypoint for enigma-wallet."""

from __future__ import annotations

import asyncio
import json
import os
from pathlib import Path
from typing import Annotated, Any

import typer

from .cache import FileResponseCache, ResponseCache
from .domain import BalanceQuery
from .errors import BalanceError
from .logger import setup_logging
from .settings import CONFIG_ENV_VAR, WalletSettings
from .state import AppState, build_state

app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    add_help_option=True,
    pretty_exceptions_enable=True,
    pretty_exceptions_short=True,
    pretty_exceptions_show_locals=False,
    rich_markup_mode="rich",
    help="Multi-chain wallet balance lookups.",
)

ConfigOption = Annotated[
    Path | None,
    typer.Option(
        "--config",
        "-c",
        help="Path to a TOML config file (can include [enigma_wallet] table).",
    ),
]
LogLevelOption = Annotated[
    str | None,
    typer.Option(
        "--log-level",
        help="Override logging verbosity (TRACE, DEBUG, INFO, WARNING, ERROR, CRITICAL).",
    ),
]


def _load_settings(
    config_path: Path | None, log_level: str | None, **overrides: Any
) -> WalletSettings:
    if config_path:
        os.environ[CONFIG_ENV_VAR] = str(config_path)

    init_kwargs = {key: value for key, value in overrides.items() if value is not None}
    if log_level is not None:
        init_kwargs["log_level"] = log_level.upper()

    settings = WalletSettings(**init_kwargs)
    setup_logging(settings.log_level)
    return settings


def _file_cache(settings: WalletSettings) -> FileResponseCache:
    return FileResponseCache(
        settings.cache_path_resolved,
        stale_grace_seconds=settings.stale_grace_seconds,
        maxsize=settings.cache_max_entries,
    )


def _build_state(settings: WalletSettings, cache: ResponseCache | None = None) -> AppState:
    try:
        return build_state(settings, cache)
    except ValueError as e:
        raise typer.BadParameter(
            str(e),
            param_hint=[f"ENIGMA_WALLET_{key.upper()}" for key in settings.missing_credentials()],
        ) from e


def _echo_json(data: Any) -> None:
    typer.echo(json.dumps(data, indent=2))


def _fail(exc: BalanceError) -> typer.Exit:
    typer.echo(json.dumps(exc.to_payload()), err=True)
    return typer.Exit(code=1)


@app.command()
def balance(
    chain: Annotated[str, typer.Argument(help="Blockchain: ethereum, bitcoin or solana.")],
    address: Annotated[str, typer.Argument(help="Wallet address to look up.")],
    prices: Annotated[
        bool,
        typer.Option("--prices/--no-prices", help="Attach USD prices from CoinGecko."),
    ] = False,
    use_cache: Annotated[
        bool,
        typer.Option(
            "--cache/--no-cache",
            help="Reuse results persisted by earlier runs.",
        ),
    ] = True,
    config_path: ConfigOption = None,
    log_level: LogLevelOption = None,
):
    """Print the normalized balance of an address as JSON."""
    settings = _load_settings(config_path, log_level)

    try:
        query = BalanceQuery.parse(chain, address)
    except BalanceError as e:
        raise typer.BadParameter(e.message, param_hint="CHAIN") from e

    cache = _file_cache(settings) if use_cache else ResponseCache()
    state = _build_state(settings, cache)

    try:
        result = asyncio.run(state.fetch_balance(query, include_prices=prices))
    except BalanceError as e:
        raise _fail(e) from e
    finally:
        state.close()

    _echo_json(result.to_dict())


@app.command()
def markets(
    limit: Annotated[
        int, typer.Option("--limit", "-l", min=1, max=250, help="Number of assets.")
    ] = 20,
    config_path: ConfigOption = None,
    log_level: LogLevelOption = None,
):
    """Print the top assets by market capitalization."""
    settings = _load_settings(config_path, log_level)
    state = _build_state(settings, _file_cache(settings))
    try:
        assets = asyncio.run(state.price_adapter.fetch_market_data(limit))
    finally:
        state.close()
    _echo_json([asset.to_dict() for asset in assets])


@app.command()
def serve(
    host: Annotated[str | None, typer.Option("--host", help="Bind address.")] = None,
    port: Annotated[int | None, typer.Option("--port", help="Bind port.")] = None,
    config_path: ConfigOption = None,
    log_level: LogLevelOption = None,
):
    """Run the balance HTTP API."""
    import uvicorn

    from .api import create_app

    settings = _load_settings(config_path, log_level, api_host=host, api_port=port)
    state = _build_state(settings)
    uvicorn.run(
        create_app(state=state),
        host=settings.api_host,
        port=settings.api_port,
        log_config=None,
    )


@app.command("show-config")
def show_config(
    config_path: ConfigOption = None,
    log_level: LogLevelOption = None,
):
    """Print effective config (with secrets redacted) and exit."""
    settings = _load_settings(config_path, log_level)
    _echo_json(settings.as_safe_dict())


def run() -> None:
    """Entrypoint used by the console script."""
    app()


if __name__ == "__main__":
    run()
