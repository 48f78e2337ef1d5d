"""FastAPI application exposing balance lookups.

Run with: enigma-wallet serve
"""

from __future__ import annotations

import asyncio
import contextlib
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Query, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from . import __version__
from .domain import BalanceQuery
from .errors import BalanceError
from .logger import get_logger
from .settings import WalletSettings
from .state import AppState, build_state

logger = get_logger(__name__)


class BalanceRequest(BaseModel):
    # Both optional so that missing fields map to a 400, not a 422.
    blockchain: str | None = None
    address: str | None = None


async def _prune_periodically(state: AppState) -> None:
    interval = state.settings.cache_prune_interval
    while True:
        await asyncio.sleep(interval)
        removed = state.cache.expire()
        if removed:
            logger.debug("Expired %d cache entries", removed)


def create_app(settings: WalletSettings | None = None, state: AppState | None = None) -> FastAPI:
    """Build the API app.

    Args:
        settings: Used to build the state when ``state`` is not given
        state: Pre-wired state, mainly for tests

    Raises:
        ValueError: If an upstream credential is missing.
    """
    if state is None:
        state = build_state(settings or WalletSettings())

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        pruner = asyncio.create_task(_prune_periodically(state))
        logger.info("Balance API ready")
        yield
        pruner.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await pruner
        state.close()

    app = FastAPI(title="enigma-wallet", version=__version__, lifespan=lifespan)
    app.state.wallet = state

    @app.exception_handler(BalanceError)
    async def balance_error_handler(request: Request, exc: BalanceError) -> JSONResponse:
        if exc.http_status >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return JSONResponse(status_code=exc.http_status, content=exc.to_payload())

    @app.post("/balance")
    async def balance(
        body: BalanceRequest | None = None,
        include_prices: bool = Query(default=False),
    ) -> dict:
        body = body or BalanceRequest()
        query = BalanceQuery.parse(body.blockchain, body.address)
        result = await state.fetch_balance(query, include_prices=include_prices)
        return result.to_dict()

    @app.get("/markets")
    async def markets(limit: int = Query(default=20, ge=1, le=250)) -> list[dict]:
        assets = await state.price_adapter.fetch_market_data(limit)
        return [asset.to_dict() for asset in assets]

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok", "version": __version__}

    return app
