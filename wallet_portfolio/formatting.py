"""Text formatting for prices, amounts and addresses."""
from __future__ import annotations

from decimal import Decimal


def format_token_price(price: Decimal | float) -> str:
    """More decimals for cheaper tokens: 8 below $0.01, 4 below $1, else 2."""
    price = Decimal(str(price))
    if price < Decimal("0.01"):
        return f"{price:.8f}"
    if price < 1:
        return f"{price:.4f}"
    return f"{price:,.2f}"


def format_usd(value: Decimal | float | None) -> str:
    if value is None:
        return "—"
    return f"${Decimal(str(value)):,.2f}"


def format_amount(amount: Decimal | float) -> str:
    amount = Decimal(str(amount))
    if amount and abs(amount) < 1:
        return f"{amount:.6f}".rstrip("0").rstrip(".")
    return f"{amount:,.4f}"


def format_change(change: float | None) -> str:
    if change is None:
        return ""
    sign = "+" if change >= 0 else ""
    return f"{sign}{change:.2f}%"


def short_address(address: str) -> str:
    if len(address) > 8:
        return f"{address[:4]}...{address[-4:]}"
    return address
