"""Cross-wallet accumulation of holdings into one portfolio view."""
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Collection, Mapping

from ..models import (
    NATIVE_LOGO,
    NATIVE_MINT,
    NATIVE_NAME,
    NATIVE_SYMBOL,
    AccumulatedHolding,
    PortfolioView,
    PriceQuote,
    WalletSnapshot,
)


@dataclass
class _Row:
    identifier: str
    name: str
    symbol: str
    total_balance: Decimal
    price: Decimal
    total_value: Decimal
    logo_uri: str | None
    verified: bool
    price_change_24h: float | None

    def freeze(self) -> AccumulatedHolding:
        return AccumulatedHolding(
            identifier=self.identifier,
            name=self.name,
            symbol=self.symbol,
            total_balance=self.total_balance,
            price=self.price,
            total_value=self.total_value,
            logo_uri=self.logo_uri,
            verified=self.verified,
            price_change_24h=self.price_change_24h,
        )


def _accumulate(
    rows: dict[str, _Row],
    identifier: str,
    balance: Decimal,
    price: Decimal,
    **display: object,
) -> None:
    """Sum balance and value into the row; everything else is last-write-wins."""
    value = balance * price
    row = rows.get(identifier)
    if row is None:
        rows[identifier] = _Row(
            identifier=identifier,
            total_balance=balance,
            price=price,
            total_value=value,
            **display,  # type: ignore[arg-type]
        )
        return

    row.total_balance += balance
    row.total_value += value
    row.price = price
    for key, val in display.items():
        setattr(row, key, val)


def reduce_portfolio(
    snapshots: Mapping[str, WalletSnapshot],
    native_quote: PriceQuote | None,
    threshold: Decimal | float = 1,
    verified_ids: Collection[str] = frozenset(),
    native_mint: str = NATIVE_MINT,
) -> PortfolioView:
    """Merge per-wallet holdings by identifier and total them.

    The native entry is always present when there is at least one wallet.
    Token holdings count only when priced and worth at least *threshold*.
    Rows are sorted by total value, descending; ties keep first-seen order.
    Inputs are not mutated.
    """
    threshold = Decimal(str(threshold))
    native_price = native_quote.price if native_quote is not None else Decimal(0)
    native_change = native_quote.price_change_24h if native_quote is not None else None

    rows: dict[str, _Row] = {}

    for snapshot in snapshots.values():
        _accumulate(
            rows,
            native_mint,
            snapshot.native_balance,
            native_price,
            name=NATIVE_NAME,
            symbol=NATIVE_SYMBOL,
            logo_uri=NATIVE_LOGO,
            verified=True,
            price_change_24h=native_change,
        )

    for snapshot in snapshots.values():
        for holding in snapshot.holdings:
            value = holding.value
            if holding.price is None or value is None or value < threshold:
                continue
            _accumulate(
                rows,
                holding.identifier,
                holding.balance,
                holding.price,
                name=holding.name,
                symbol=holding.symbol,
                logo_uri=holding.logo_uri,
                verified=holding.verified or holding.identifier in verified_ids,
                price_change_24h=holding.price_change_24h,
            )

    ordered = sorted(rows.values(), key=lambda r: r.total_value, reverse=True)
    total = sum((r.total_value for r in ordered), Decimal(0))
    return PortfolioView(total_value=total, holdings=tuple(r.freeze() for r in ordered))
