"""Per-wallet pipeline: read balances, price them, enrich valuable holdings."""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Iterable

from ..cache import VerifiedTokenCache
from ..errors import GatewayError, NotFound, PortfolioError
from ..interfaces.chain import BalanceReader
from ..interfaces.price_oracle import PriceOracle
from ..interfaces.token_metadata import TokenMetadataSource
from ..models import (
    NATIVE_MINT,
    BalanceSheet,
    PriceQuote,
    TokenHolding,
    WalletFailure,
    WalletSnapshot,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AggregationResult:
    """Snapshots of every wallet that succeeded plus what failed."""

    snapshots: dict[str, WalletSnapshot] = field(default_factory=dict)
    native_quote: PriceQuote | None = None
    failures: tuple[WalletFailure, ...] = ()
    verified_ids: frozenset[str] = frozenset()


class WalletAggregator:
    """Runs read → price → enrich for each wallet, one wallet at a time.

    Wallets are processed sequentially to keep request bursts against the
    price and metadata services small. Within a wallet, metadata lookups
    run concurrently and fail independently.

    By default a failing wallet is recorded in ``failures`` and the batch
    continues; with ``fail_fast`` the first wallet error propagates.
    """

    def __init__(
        self,
        reader: BalanceReader,
        oracle: PriceOracle,
        metadata: TokenMetadataSource,
        *,
        native_mint: str = NATIVE_MINT,
        enrich_threshold: float | Decimal = 1,
        verified_cache: VerifiedTokenCache | None = None,
        fail_fast: bool = False,
    ) -> None:
        self._reader = reader
        self._oracle = oracle
        self._metadata = metadata
        self._native_mint = native_mint
        self._threshold = Decimal(str(enrich_threshold))
        self._verified_cache = verified_cache
        self._fail_fast = fail_fast

    @property
    def threshold(self) -> Decimal:
        return self._threshold

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------

    async def read_stage(self, address: str) -> BalanceSheet:
        return await self._reader.read_balances(address)

    async def price_stage(
        self, sheet: BalanceSheet
    ) -> tuple[PriceQuote | None, tuple[TokenHolding, ...]]:
        """Native price first, then one batched lookup for all held tokens."""
        native_prices = await self._oracle.fetch_prices([self._native_mint])
        native_quote = native_prices.get(self._native_mint)

        holdings = [TokenHolding(identifier=mint, balance=bal) for mint, bal in sheet.tokens]
        if not holdings:
            return native_quote, ()

        prices = await self._oracle.fetch_prices(h.identifier for h in holdings)
        priced = tuple(
            h.with_price(prices[h.identifier]) if h.identifier in prices else h
            for h in holdings
        )
        return native_quote, priced

    def needs_enrichment(self, holding: TokenHolding) -> bool:
        value = holding.value
        return value is not None and value >= self._threshold

    async def _enrich_one(self, holding: TokenHolding) -> TokenHolding:
        try:
            meta = await self._metadata.fetch_token(holding.identifier)
        except NotFound:
            logger.info("No metadata for token %s", holding.identifier)
            return holding
        except GatewayError as e:
            logger.warning("Error fetching info for token %s: %s", holding.identifier, e)
            return holding
        return holding.with_metadata(meta)

    async def enrich_stage(
        self, holdings: Iterable[TokenHolding]
    ) -> tuple[TokenHolding, ...]:
        """Attach metadata to holdings worth at least the threshold."""
        holdings = tuple(holdings)
        eligible = [i for i, h in enumerate(holdings) if self.needs_enrichment(h)]
        if not eligible:
            return holdings

        logger.debug("Enriching %d of %d holding(s)", len(eligible), len(holdings))
        enriched = await asyncio.gather(*(self._enrich_one(holdings[i]) for i in eligible))

        result = list(holdings)
        for i, holding in zip(eligible, enriched):
            result[i] = holding
        return tuple(result)

    async def fetch_wallet(
        self, address: str
    ) -> tuple[WalletSnapshot, PriceQuote | None]:
        """Run every stage for one wallet."""
        sheet = await self.read_stage(address)
        native_quote, priced = await self.price_stage(sheet)
        holdings = await self.enrich_stage(priced)
        snapshot = WalletSnapshot(
            address=sheet.address,
            native_balance=sheet.native_balance,
            holdings=holdings,
        )
        return snapshot, native_quote

    # ------------------------------------------------------------------
    # Batch
    # ------------------------------------------------------------------

    async def _verified_ids(self) -> frozenset[str]:
        if self._verified_cache is None:
            return frozenset()
        try:
            return frozenset(await self._verified_cache.get())
        except GatewayError as e:
            logger.warning("Verified token list unavailable: %s", e)
            return frozenset()

    async def aggregate(self, addresses: Iterable[str]) -> AggregationResult:
        """Fetch snapshots for all addresses, sequentially."""
        snapshots: dict[str, WalletSnapshot] = {}
        failures: list[WalletFailure] = []
        native_quote: PriceQuote | None = None
        seen: set[str] = set()

        for address in addresses:
            address = (address or "").strip()
            if not address or address in seen:
                continue
            seen.add(address)

            try:
                snapshot, quote = await self.fetch_wallet(address)
            except PortfolioError as e:
                if self._fail_fast:
                    raise
                logger.error("Error fetching balances for %s: %s", address, e)
                failures.append(
                    WalletFailure(address=address, error=type(e).__name__, message=str(e))
                )
                continue

            snapshots[snapshot.address] = snapshot
            if quote is not None:
                native_quote = quote

        return AggregationResult(
            snapshots=snapshots,
            native_quote=native_quote,
            failures=tuple(failures),
            verified_ids=await self._verified_ids(),
        )
