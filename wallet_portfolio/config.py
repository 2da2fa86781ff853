"""Configuration loader — reads config.yaml, interpolates env vars, validates."""
from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from .models import NATIVE_MINT

logger = logging.getLogger(__name__)

TOKEN_PROGRAM_ID = "TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA"

# ---------------------------------------------------------------------------
# Frozen config dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class WalletConfig:
    label: str = ""
    address: str = ""


@dataclass(frozen=True)
class ChainConfig:
    rpc_endpoints: tuple[str, ...] = ("https://api.mainnet-beta.solana.com",)
    rpc_timeout: int = 30
    native_mint: str = NATIVE_MINT
    native_decimals: int = 9
    token_program_ids: tuple[str, ...] = (TOKEN_PROGRAM_ID,)


@dataclass(frozen=True)
class JupiterConfig:
    price_url: str = "https://api.jup.ag/price/v2"
    token_url: str = "https://tokens.jup.ag/token"
    tags_url: str = "https://tokens.jup.ag/tokens"
    referer: str = "http://localhost:3000"
    timeout: int = 15


@dataclass(frozen=True)
class PortfolioConfig:
    enrich_threshold: float = 1.0
    verified_cache_ttl: int = 300
    fail_fast: bool = False


@dataclass(frozen=True)
class CacheWindow:
    fresh_seconds: int = 10
    stale_seconds: int = 30


@dataclass(frozen=True)
class ServerConfig:
    host: str = "127.0.0.1"
    port: int = 8080
    price_cache: CacheWindow = field(default_factory=CacheWindow)
    mint_cache: CacheWindow = field(
        default_factory=lambda: CacheWindow(fresh_seconds=300, stale_seconds=600)
    )
    tags_cache: CacheWindow = field(
        default_factory=lambda: CacheWindow(fresh_seconds=300, stale_seconds=600)
    )


@dataclass(frozen=True)
class AppConfig:
    wallets: tuple[WalletConfig, ...] = ()
    chain: ChainConfig = field(default_factory=ChainConfig)
    jupiter: JupiterConfig = field(default_factory=JupiterConfig)
    portfolio: PortfolioConfig = field(default_factory=PortfolioConfig)
    server: ServerConfig = field(default_factory=ServerConfig)


# ---------------------------------------------------------------------------
# Env interpolation
# ---------------------------------------------------------------------------

_ENV_VAR_RE = re.compile(r"\$\{([^}]+)}")


def _interpolate_env(value: Any) -> Any:
    """Recursively replace ${VAR} references with environment variable values."""
    if isinstance(value, str):
        return _ENV_VAR_RE.sub(lambda m: os.environ.get(m.group(1), ""), value)
    if isinstance(value, dict):
        return {k: _interpolate_env(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_interpolate_env(item) for item in value]
    return value


# ---------------------------------------------------------------------------
# YAML → dataclass builders
# ---------------------------------------------------------------------------


def _build_wallets(raw: list[Any]) -> tuple[WalletConfig, ...]:
    wallets: list[WalletConfig] = []
    for i, w in enumerate(raw):
        # Bare strings are accepted as addresses.
        if isinstance(w, str):
            wallets.append(WalletConfig(label=f"wallet-{i + 1}", address=w))
            continue
        wallets.append(
            WalletConfig(
                label=w.get("label", "") or f"wallet-{i + 1}",
                address=w.get("address", ""),
            )
        )
    return tuple(wallets)


def _build_chain(raw: dict[str, Any]) -> ChainConfig:
    defaults = ChainConfig()
    return ChainConfig(
        # Unset ${VAR} endpoints interpolate to empty strings.
        rpc_endpoints=tuple(
            e for e in raw.get("rpc_endpoints", defaults.rpc_endpoints) if e
        ),
        rpc_timeout=int(raw.get("rpc_timeout", defaults.rpc_timeout)),
        native_mint=raw.get("native_mint", defaults.native_mint),
        native_decimals=int(raw.get("native_decimals", defaults.native_decimals)),
        token_program_ids=tuple(
            raw.get("token_program_ids", defaults.token_program_ids)
        ),
    )


def _build_jupiter(raw: dict[str, Any]) -> JupiterConfig:
    return JupiterConfig(
        price_url=raw.get("price_url", JupiterConfig.price_url),
        token_url=raw.get("token_url", JupiterConfig.token_url),
        tags_url=raw.get("tags_url", JupiterConfig.tags_url),
        referer=raw.get("referer", JupiterConfig.referer) or JupiterConfig.referer,
        timeout=int(raw.get("timeout", JupiterConfig.timeout)),
    )


def _build_portfolio(raw: dict[str, Any]) -> PortfolioConfig:
    return PortfolioConfig(
        enrich_threshold=float(raw.get("enrich_threshold", 1.0)),
        verified_cache_ttl=int(raw.get("verified_cache_ttl", 300)),
        fail_fast=bool(raw.get("fail_fast", False)),
    )


def _build_window(raw: dict[str, Any], default: CacheWindow) -> CacheWindow:
    return CacheWindow(
        fresh_seconds=int(raw.get("fresh_seconds", default.fresh_seconds)),
        stale_seconds=int(raw.get("stale_seconds", default.stale_seconds)),
    )


def _build_server(raw: dict[str, Any]) -> ServerConfig:
    defaults = ServerConfig()
    return ServerConfig(
        host=raw.get("host", defaults.host),
        port=int(raw.get("port", defaults.port)),
        price_cache=_build_window(raw.get("price_cache", {}), defaults.price_cache),
        mint_cache=_build_window(raw.get("mint_cache", {}), defaults.mint_cache),
        tags_cache=_build_window(raw.get("tags_cache", {}), defaults.tags_cache),
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(config_path: str | Path | None = None) -> AppConfig:
    """Load and validate application configuration from YAML + .env.

    Args:
        config_path: Path to config.yaml. Defaults to ``config.yaml`` in the
            project root; when that default file is absent the built-in
            defaults are used.
    """
    load_dotenv()

    explicit = config_path is not None
    if config_path is None:
        config_path = Path(__file__).resolve().parent.parent / "config.yaml"
    config_path = Path(config_path)

    if not config_path.exists():
        if explicit:
            raise FileNotFoundError(f"Config file not found: {config_path}")
        logger.info("No config file at %s, using defaults", config_path)
        cfg = AppConfig()
        _validate(cfg)
        return cfg

    with open(config_path) as f:
        raw = yaml.safe_load(f) or {}

    raw = _interpolate_env(raw)

    cfg = AppConfig(
        wallets=_build_wallets(raw.get("wallets") or []),
        chain=_build_chain(raw.get("chain") or {}),
        jupiter=_build_jupiter(raw.get("jupiter") or {}),
        portfolio=_build_portfolio(raw.get("portfolio") or {}),
        server=_build_server(raw.get("server") or {}),
    )

    _validate(cfg)
    logger.info("Configuration loaded from %s", config_path)
    return cfg


def _validate(cfg: AppConfig) -> None:
    """Raise on invalid configuration."""
    if not cfg.chain.rpc_endpoints:
        raise ValueError("At least one RPC endpoint must be configured")

    for wallet in cfg.wallets:
        if not wallet.address:
            raise ValueError(f"Wallet '{wallet.label}' has no address")

    if cfg.portfolio.enrich_threshold < 0:
        raise ValueError("portfolio.enrich_threshold must not be negative")

    for name in ("price_cache", "mint_cache", "tags_cache"):
        window: CacheWindow = getattr(cfg.server, name)
        if window.fresh_seconds < 0 or window.stale_seconds < 0:
            raise ValueError(f"server.{name} windows must not be negative")
