"""HTTP proxy in front of the Jupiter price and token APIs.

Three read-only routes, each backed by a fresh/stale response cache:

- ``GET /api/jupiter-price?ids=a,b,c``
- ``GET /api/mint?mint=<id>``
- ``GET /api/tags?tags=verified``
"""
from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable

from fastapi import APIRouter, BackgroundTasks, FastAPI, Query, Request
from fastapi.responses import JSONResponse

from .cache import ResponseCache
from .config import AppConfig, CacheWindow
from .errors import GatewayError, NotFound, RateLimited
from .metadata import JupiterTokenService
from .oracles import JupiterPriceOracle
from .oracles.jupiter import normalize_ids

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")

Loader = Callable[[], Awaitable[Any]]


class ProxyState:
    """Upstream clients and per-route caches, stored on ``app.state``."""

    def __init__(
        self,
        config: AppConfig,
        oracle: JupiterPriceOracle | None = None,
        tokens: JupiterTokenService | None = None,
    ) -> None:
        self.oracle = oracle or JupiterPriceOracle(config.jupiter)
        self.tokens = tokens or JupiterTokenService(config.jupiter)
        self.price_cache = _make_cache(config.server.price_cache)
        self.mint_cache = _make_cache(config.server.mint_cache)
        self.tags_cache = _make_cache(config.server.tags_cache)


def _make_cache(window: CacheWindow) -> ResponseCache:
    return ResponseCache(window.fresh_seconds, window.stale_seconds)


def _state(request: Request) -> ProxyState:
    return request.app.state.proxy


def _error(status: int, message: str, details: str | None = None) -> JSONResponse:
    body: dict[str, Any] = {"error": message}
    if details:
        body["details"] = details
    return JSONResponse(body, status_code=status)


async def _refresh(cache: ResponseCache, key: str, loader: Loader) -> None:
    try:
        cache.store(key, await loader())
    except GatewayError as e:
        logger.warning("Background refresh of %s failed: %s", key, e)
    finally:
        cache.end_refresh(key)


async def _cached(
    cache: ResponseCache,
    key: str,
    loader: Loader,
    background: BackgroundTasks,
    failure_message: str,
) -> JSONResponse:
    """Serve from cache when possible, otherwise load and store."""
    value, state = cache.lookup(key)
    if state == "stale" and cache.begin_refresh(key):
        background.add_task(_refresh, cache, key, loader)

    if state == "miss":
        try:
            value = await loader()
        except NotFound:
            return _error(404, "Token not found")
        except RateLimited:
            return _error(429, "Rate limit exceeded")
        except GatewayError as e:
            logger.error("%s: %s", failure_message, e)
            return _error(500, failure_message, str(e))
        cache.store(key, value)

    return JSONResponse(
        value,
        headers={"Cache-Control": cache.cache_control(), "X-Cache": state.upper()},
    )


@router.get("/jupiter-price")
async def get_prices(
    request: Request,
    background: BackgroundTasks,
    ids: str | None = Query(None, description="Comma-joined token identifiers"),
) -> JSONResponse:
    ident_list = normalize_ids((ids or "").split(","))
    if not ident_list:
        return _error(400, "Token IDs are required")

    proxy = _state(request)
    return await _cached(
        proxy.price_cache,
        ",".join(ident_list),
        lambda: proxy.oracle.fetch_raw(ident_list),
        background,
        "Failed to fetch prices",
    )


@router.get("/mint")
async def get_mint(
    request: Request,
    background: BackgroundTasks,
    mint: str | None = Query(None, description="Token identifier"),
) -> JSONResponse:
    mint = (mint or "").strip()
    if not mint:
        return _error(400, "Mint address is required")

    proxy = _state(request)

    async def load() -> dict[str, Any]:
        return (await proxy.tokens.fetch_token(mint)).to_dict()

    return await _cached(
        proxy.mint_cache, mint, load, background, "Failed to fetch token info"
    )


@router.get("/tags")
async def get_tagged_tokens(
    request: Request,
    background: BackgroundTasks,
    tags: str = Query("verified", description="Tag filter"),
) -> JSONResponse:
    tags = tags.strip() or "verified"
    proxy = _state(request)

    async def load() -> dict[str, Any]:
        tokens = await proxy.tokens.fetch_tagged_tokens(tags)
        return {ident: token.to_dict() for ident, token in tokens.items()}

    return await _cached(
        proxy.tags_cache, tags, load, background, "Failed to fetch tokens"
    )


def create_app(
    config: AppConfig,
    oracle: JupiterPriceOracle | None = None,
    tokens: JupiterTokenService | None = None,
) -> FastAPI:
    app = FastAPI(
        title="Wallet Portfolio Proxy",
        description="Cached read-only proxy for token prices and metadata",
    )
    app.state.proxy = ProxyState(config, oracle=oracle, tokens=tokens)
    app.include_router(router, tags=["Tokens"])

    return app


def run_server(
    config: AppConfig,
    host: str | None = None,
    port: int | None = None,
    log_level: str = "info",
) -> None:
    import uvicorn

    uvicorn.run(
        create_app(config),
        host=host or config.server.host,
        port=port or config.server.port,
        log_level=log_level.lower(),
    )
