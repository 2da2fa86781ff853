"""Unit tests for data models and record validation."""
from __future__ import annotations

from decimal import Decimal

import pytest

from wallet_portfolio.errors import UpstreamError
from wallet_portfolio.models import (
    PriceQuote,
    TokenHolding,
    TokenMetadata,
    to_decimal,
)

TOKEN_RECORD = {
    "address": "JUPyiwrYJFskUPiHa7hkeR8VUtAeFoSYbKedZNsDvCN",
    "name": "Jupiter",
    "symbol": "JUP",
    "decimals": 6,
    "logoURI": "https://static.jup.ag/jup/icon.png",
    "tags": ["verified", "strict"],
    "daily_volume": 1234.5,
    "freeze_authority": None,
    "mint_authority": None,
    "extensions": {"coingeckoId": "jupiter-exchange-solana", "website": "https://jup.ag"},
}


class TestToDecimal:
    def test_parses_strings_and_numbers(self) -> None:
        assert to_decimal("1.50") == Decimal("1.50")
        assert to_decimal(3) == Decimal(3)

    @pytest.mark.parametrize("value", [None, "abc", "", True, "NaN", "Infinity"])
    def test_rejects_non_numeric(self, value: object) -> None:
        assert to_decimal(value) is None


class TestPriceQuote:
    def test_from_api_full_record(self) -> None:
        quote = PriceQuote.from_api(
            "mint",
            {
                "id": "mint",
                "type": "derivedPrice",
                "price": "0.0123",
                "extraInfo": {"confidenceLevel": "medium"},
                "priceChange": {"24h": -3.25},
            },
        )
        assert quote == PriceQuote(
            identifier="mint",
            price=Decimal("0.0123"),
            confidence="medium",
            price_change_24h=-3.25,
        )

    def test_from_api_minimal_record(self) -> None:
        quote = PriceQuote.from_api("mint", {"price": "2"})
        assert quote is not None
        assert quote.confidence is None
        assert quote.price_change_24h is None

    @pytest.mark.parametrize("record", [None, {}, {"price": None}, {"price": "n/a"}])
    def test_from_api_unusable(self, record: object) -> None:
        assert PriceQuote.from_api("mint", record) is None


class TestTokenMetadata:
    def test_from_api(self) -> None:
        meta = TokenMetadata.from_api(TOKEN_RECORD)
        assert meta.identifier == TOKEN_RECORD["address"]
        assert meta.symbol == "JUP"
        assert meta.decimals == 6
        assert meta.tags == ("verified", "strict")
        assert meta.verified is True
        assert meta.coingecko_id == "jupiter-exchange-solana"
        assert meta.socials.website == "https://jup.ag"
        assert meta.daily_volume == pytest.approx(1234.5)

    def test_unverified(self) -> None:
        meta = TokenMetadata.from_api({**TOKEN_RECORD, "tags": ["community"]})
        assert meta.verified is False

    @pytest.mark.parametrize("missing", ["address", "name", "symbol", "decimals"])
    def test_missing_required_field(self, missing: str) -> None:
        record = {k: v for k, v in TOKEN_RECORD.items() if k != missing}
        with pytest.raises(UpstreamError, match=missing):
            TokenMetadata.from_api(record)

    def test_non_object_record(self) -> None:
        with pytest.raises(UpstreamError):
            TokenMetadata.from_api(["not", "a", "dict"])

    def test_to_dict_is_flattened(self) -> None:
        data = TokenMetadata.from_api(TOKEN_RECORD).to_dict()
        assert data["mint"] == TOKEN_RECORD["address"]
        assert data["logoURI"] == TOKEN_RECORD["logoURI"]
        assert data["tags"] == ["verified", "strict"]
        assert data["socials"] == {"website": "https://jup.ag", "twitter": None, "discord": None}
        assert data["coingeckoId"] == "jupiter-exchange-solana"


class TestTokenHolding:
    def test_defaults_are_unenriched(self) -> None:
        h = TokenHolding(identifier="mint", balance=Decimal("5"))
        assert h.name == "Unknown Token"
        assert h.symbol == "Unknown"
        assert h.price is None
        assert h.value is None
        assert h.tags == ()
        assert h.enriched is False

    def test_with_price_computes_value(self) -> None:
        h = TokenHolding(identifier="mint", balance=Decimal("4")).with_price(
            PriceQuote("mint", Decimal("0.25"), "high", 1.0)
        )
        assert h.value == Decimal("1.00")
        assert h.confidence == "high"
        assert h.price_change_24h == 1.0

    def test_with_metadata_returns_new_instance(self) -> None:
        original = TokenHolding(identifier="mint", balance=Decimal("1"))
        enriched = original.with_metadata(TokenMetadata.from_api(TOKEN_RECORD))
        assert enriched.symbol == "JUP"
        assert enriched.verified is True
        assert enriched.enriched is True
        assert original.symbol == "Unknown"

    def test_frozen(self) -> None:
        h = TokenHolding(identifier="mint", balance=Decimal("1"))
        with pytest.raises(AttributeError):
            h.balance = Decimal("2")  # type: ignore[misc]
