"""Portfolio orchestration — builds the pipeline from config and renders results."""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Iterable

from ..cache import VerifiedTokenCache
from ..chains.solana import SolanaClient
from ..config import AppConfig
from ..formatting import (
    format_amount,
    format_change,
    format_token_price,
    format_usd,
    short_address,
)
from ..interfaces.chain import BalanceReader
from ..interfaces.price_oracle import PriceOracle
from ..interfaces.token_metadata import TokenMetadataSource
from ..metadata import JupiterTokenService
from ..models import PortfolioResult
from ..oracles import JupiterPriceOracle
from .aggregator import WalletAggregator
from .reducer import reduce_portfolio

logger = logging.getLogger(__name__)


class PortfolioViewer:
    """Fetches and summarizes the portfolio of one or more wallets."""

    def __init__(
        self,
        config: AppConfig,
        *,
        reader: BalanceReader | None = None,
        oracle: PriceOracle | None = None,
        metadata: TokenMetadataSource | None = None,
    ) -> None:
        self._config = config

        self._reader: BalanceReader = reader or SolanaClient(config.chain)
        self._oracle: PriceOracle = oracle or JupiterPriceOracle(config.jupiter)
        self._metadata: TokenMetadataSource = metadata or JupiterTokenService(config.jupiter)
        self._verified_cache = VerifiedTokenCache(
            self._metadata, ttl_seconds=config.portfolio.verified_cache_ttl
        )
        self._aggregator = WalletAggregator(
            self._reader,
            self._oracle,
            self._metadata,
            native_mint=config.chain.native_mint,
            enrich_threshold=config.portfolio.enrich_threshold,
            verified_cache=self._verified_cache,
            fail_fast=config.portfolio.fail_fast,
        )

    @property
    def aggregator(self) -> WalletAggregator:
        return self._aggregator

    def _default_addresses(self) -> list[str]:
        return [w.address for w in self._config.wallets]

    async def fetch(self, addresses: Iterable[str] | None = None) -> PortfolioResult:
        """One full fetch cycle; nothing is carried over from earlier cycles."""
        targets = list(addresses) if addresses is not None else self._default_addresses()
        logger.info("Fetching portfolio for %d wallet(s)", len(targets))

        aggregated = await self._aggregator.aggregate(targets)
        view = reduce_portfolio(
            aggregated.snapshots,
            aggregated.native_quote,
            threshold=self._aggregator.threshold,
            verified_ids=aggregated.verified_ids,
            native_mint=self._config.chain.native_mint,
        )

        logger.info(
            "Portfolio total %s across %d wallet(s), %d failed",
            format_usd(view.total_value),
            len(aggregated.snapshots),
            len(aggregated.failures),
        )
        return PortfolioResult(
            snapshots=aggregated.snapshots,
            native_quote=aggregated.native_quote,
            view=view,
            failures=aggregated.failures,
        )


# ----------------------------------------------------------------------
# Rendering
# ----------------------------------------------------------------------


def _labels(config: AppConfig | None) -> dict[str, str]:
    if config is None:
        return {}
    return {w.address: w.label for w in config.wallets}


def format_report(result: PortfolioResult, config: AppConfig | None = None) -> str:
    """Plain-text report: portfolio summary, then one section per wallet."""
    labels = _labels(config)
    native_price = result.native_quote.price if result.native_quote else None
    lines: list[str] = [
        f"Portfolio value: {format_usd(result.view.total_value)}",
        "",
    ]

    for row in result.view.holdings:
        check = " ✓" if row.verified else ""
        change = format_change(row.price_change_24h)
        lines.append(
            f"  {row.symbol:<10} {format_amount(row.total_balance):>20}"
            f"  @ ${format_token_price(row.price):<14}"
            f" {format_usd(row.total_value):>14}  {change}{check}".rstrip()
        )

    for address, snapshot in result.snapshots.items():
        label = labels.get(address) or short_address(address)
        native_value = snapshot.native_balance * native_price if native_price is not None else None
        lines += [
            "",
            f"━━ {label} ({short_address(address)}) ━━",
            f"  SOL {format_amount(snapshot.native_balance)}  {format_usd(native_value)}",
        ]
        if not snapshot.holdings:
            lines.append("  No token holdings.")
        for h in snapshot.holdings:
            price = f"@ ${format_token_price(h.price)}" if h.price is not None else "(no price)"
            lines.append(
                f"  {h.symbol:<10} {format_amount(h.balance):>20}  {price}  {format_usd(h.value)}"
            )

    for failure in result.failures:
        label = labels.get(failure.address) or short_address(failure.address)
        lines += ["", f"✗ {label}: {failure.error}: {failure.message}"]

    lines += ["", datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC")]
    return "\n".join(lines)


def result_to_dict(result: PortfolioResult) -> dict[str, Any]:
    """JSON-serializable form of a result; decimals rendered as strings."""

    def dec(value: Any) -> str | None:
        return None if value is None else str(value)

    return {
        "totalValue": dec(result.view.total_value),
        "accumulatedHoldings": [
            {
                "mint": row.identifier,
                "name": row.name,
                "symbol": row.symbol,
                "totalBalance": dec(row.total_balance),
                "price": dec(row.price),
                "totalValue": dec(row.total_value),
                "logoURI": row.logo_uri,
                "isVerified": row.verified,
                "priceChange24h": row.price_change_24h,
            }
            for row in result.view.holdings
        ],
        "wallets": {
            address: {
                "solBalance": dec(snapshot.native_balance),
                "tokens": [
                    {
                        "mint": h.identifier,
                        "name": h.name,
                        "symbol": h.symbol,
                        "balance": dec(h.balance),
                        "price": dec(h.price),
                        "value": dec(h.value),
                        "confidenceLevel": h.confidence,
                        "tags": list(h.tags),
                        "logoURI": h.logo_uri,
                        "priceChange24h": h.price_change_24h,
                    }
                    for h in snapshot.holdings
                ],
            }
            for address, snapshot in result.snapshots.items()
        },
        "failures": [
            {"address": f.address, "error": f.error, "message": f.message}
            for f in result.failures
        ],
    }
