"""Unit tests for price, amount and address formatting."""
from __future__ import annotations

from decimal import Decimal

from wallet_portfolio.formatting import (
    format_amount,
    format_change,
    format_token_price,
    format_usd,
    short_address,
)


class TestFormatTokenPrice:
    def test_sub_cent_uses_eight_decimals(self) -> None:
        assert format_token_price(Decimal("0.0000005")) == "0.00000050"

    def test_sub_dollar_uses_four_decimals(self) -> None:
        assert format_token_price(Decimal("0.5")) == "0.5000"

    def test_dollar_and_above_uses_two_decimals(self) -> None:
        assert format_token_price(Decimal("1234.567")) == "1,234.57"


class TestFormatUsd:
    def test_value(self) -> None:
        assert format_usd(Decimal("375")) == "$375.00"

    def test_none(self) -> None:
        assert format_usd(None) == "—"


class TestFormatAmount:
    def test_small_amount_trims_zeros(self) -> None:
        assert format_amount(Decimal("0.25")) == "0.25"

    def test_large_amount(self) -> None:
        assert format_amount(Decimal("1000000")) == "1,000,000.0000"


class TestFormatChange:
    def test_positive(self) -> None:
        assert format_change(1.234) == "+1.23%"

    def test_negative(self) -> None:
        assert format_change(-4.5) == "-4.50%"

    def test_none(self) -> None:
        assert format_change(None) == ""


class TestShortAddress:
    def test_long(self) -> None:
        assert short_address("Vote111111111111111111111111111111111111111") == "Vote...1111"

    def test_short(self) -> None:
        assert short_address("abc") == "abc"
