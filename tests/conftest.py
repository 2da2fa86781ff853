"""Shared test fixtures and sample data."""
from __future__ import annotations

import textwrap
from decimal import Decimal
from pathlib import Path
from typing import Iterable

import pytest

from wallet_portfolio.config import (
    AppConfig,
    ChainConfig,
    JupiterConfig,
    PortfolioConfig,
    WalletConfig,
)
from wallet_portfolio.errors import InvalidAddress, NotFound
from wallet_portfolio.models import (
    NATIVE_MINT,
    BalanceSheet,
    PriceQuote,
    TokenMetadata,
)

# Valid 32-byte base58 public keys (system program and vote program ids).
WALLET_A = "11111111111111111111111111111111"
WALLET_B = "Vote111111111111111111111111111111111111111"

MINT_X = "XMint1111111111111111111111111111111111111"
MINT_Y = "YMint1111111111111111111111111111111111111"
MINT_Z = "ZMint1111111111111111111111111111111111111"


# ---------------------------------------------------------------------------
# Fake collaborators
# ---------------------------------------------------------------------------


class FakeReader:
    """Balance reader serving canned balance sheets."""

    def __init__(self, sheets: dict[str, BalanceSheet], errors: dict[str, Exception] | None = None) -> None:
        self.sheets = sheets
        self.errors = errors or {}
        self.calls: list[str] = []

    async def read_balances(self, address: str) -> BalanceSheet:
        self.calls.append(address)
        if address in self.errors:
            raise self.errors[address]
        if address not in self.sheets:
            raise InvalidAddress(address)
        return self.sheets[address]


class FakeOracle:
    """Price oracle returning prices from a fixed table."""

    def __init__(self, prices: dict[str, str], error: Exception | None = None) -> None:
        self.prices = prices
        self.error = error
        self.calls: list[list[str]] = []

    async def fetch_prices(self, identifiers: Iterable[str]) -> dict[str, PriceQuote]:
        ids = list(identifiers)
        self.calls.append(ids)
        if self.error is not None:
            raise self.error
        return {
            i: PriceQuote(identifier=i, price=Decimal(self.prices[i]), confidence="high")
            for i in ids
            if i in self.prices
        }


class FakeMetadata:
    """Metadata source with per-identifier records or errors."""

    def __init__(
        self,
        tokens: dict[str, TokenMetadata],
        errors: dict[str, Exception] | None = None,
        tagged: dict[str, TokenMetadata] | None = None,
    ) -> None:
        self.tokens = tokens
        self.errors = errors or {}
        self.tagged = tagged or {}
        self.calls: list[str] = []
        self.tag_calls = 0

    async def fetch_token(self, identifier: str) -> TokenMetadata:
        self.calls.append(identifier)
        if identifier in self.errors:
            raise self.errors[identifier]
        if identifier not in self.tokens:
            raise NotFound(f"unknown token {identifier}", status=404)
        return self.tokens[identifier]

    async def fetch_tagged_tokens(self, tags: str = "verified") -> dict[str, TokenMetadata]:
        self.tag_calls += 1
        return self.tagged


def make_metadata(identifier: str, symbol: str, verified: bool = True) -> TokenMetadata:
    return TokenMetadata(
        identifier=identifier,
        name=f"{symbol} Token",
        symbol=symbol,
        decimals=6,
        logo_uri=f"https://logos.example.com/{symbol}.png",
        tags=("verified",) if verified else ("community",),
    )


# ---------------------------------------------------------------------------
# Config fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def sample_chain_config() -> ChainConfig:
    return ChainConfig(
        rpc_endpoints=("https://rpc1.example.com", "https://rpc2.example.com"),
        rpc_timeout=10,
    )


@pytest.fixture()
def sample_jupiter_config() -> JupiterConfig:
    return JupiterConfig(
        price_url="https://price.example.com/v2",
        token_url="https://tokens.example.com/token",
        tags_url="https://tokens.example.com/tokens",
        referer="https://app.example.com",
        timeout=5,
    )


@pytest.fixture()
def sample_app_config(
    sample_chain_config: ChainConfig, sample_jupiter_config: JupiterConfig
) -> AppConfig:
    return AppConfig(
        wallets=(
            WalletConfig(label="main", address=WALLET_A),
            WalletConfig(label="cold", address=WALLET_B),
        ),
        chain=sample_chain_config,
        jupiter=sample_jupiter_config,
        portfolio=PortfolioConfig(enrich_threshold=1.0, verified_cache_ttl=60),
    )


# ---------------------------------------------------------------------------
# Pipeline fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def sample_sheets() -> dict[str, BalanceSheet]:
    return {
        WALLET_A: BalanceSheet(
            address=WALLET_A,
            native_balance=Decimal("2.5"),
            tokens=((MINT_X, Decimal("1000000")), (MINT_Y, Decimal("10"))),
        ),
        WALLET_B: BalanceSheet(
            address=WALLET_B,
            native_balance=Decimal("1"),
            tokens=((MINT_Y, Decimal("5")),),
        ),
    }


@pytest.fixture()
def sample_prices() -> dict[str, str]:
    return {NATIVE_MINT: "150", MINT_X: "0.0000005", MINT_Y: "2"}


@pytest.fixture()
def sample_metadata() -> dict[str, TokenMetadata]:
    return {
        MINT_X: make_metadata(MINT_X, "XTK"),
        MINT_Y: make_metadata(MINT_Y, "YTK"),
        MINT_Z: make_metadata(MINT_Z, "ZTK", verified=False),
    }


# ---------------------------------------------------------------------------
# Config YAML fixture
# ---------------------------------------------------------------------------

SAMPLE_YAML = textwrap.dedent(f"""\
    wallets:
      - label: main
        address: "{WALLET_A}"
      - "{WALLET_B}"
    chain:
      rpc_endpoints: ["https://rpc.example.com"]
      rpc_timeout: 10
    jupiter:
      price_url: "https://price.example.com/v2"
      referer: "https://app.example.com"
    portfolio:
      enrich_threshold: 5
      verified_cache_ttl: 120
    server:
      port: 9000
      price_cache:
        fresh_seconds: 15
""")


@pytest.fixture()
def sample_yaml_path(tmp_path: Path) -> Path:
    cfg_file = tmp_path / "config.yaml"
    cfg_file.write_text(SAMPLE_YAML)
    return cfg_file
