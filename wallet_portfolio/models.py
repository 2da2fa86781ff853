"""Data models — all frozen (immutable)."""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from decimal import Decimal, InvalidOperation
from typing import Any

from .errors import UpstreamError

NATIVE_MINT = "So11111111111111111111111111111111111111112"
NATIVE_SYMBOL = "SOL"
NATIVE_NAME = "Solana"
NATIVE_LOGO = (
    "https://raw.githubusercontent.com/solana-labs/token-list/main/assets/"
    "mainnet/So11111111111111111111111111111111111111112/logo.png"
)

UNKNOWN_NAME = "Unknown Token"
UNKNOWN_SYMBOL = "Unknown"


def to_decimal(value: Any) -> Decimal | None:
    """Parse *value* as a Decimal, returning None when it is not numeric."""
    if value is None or isinstance(value, bool):
        return None
    try:
        result = Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None
    if not result.is_finite():
        return None
    return result


@dataclass(frozen=True)
class PriceQuote:
    """Current price of one identifier."""

    identifier: str
    price: Decimal
    confidence: str | None = None
    price_change_24h: float | None = None

    @classmethod
    def from_api(cls, identifier: str, record: Any) -> PriceQuote | None:
        """Build a quote from a price-service record, or None if unusable."""
        if not isinstance(record, dict):
            return None
        price = to_decimal(record.get("price"))
        if price is None:
            return None

        extra = record.get("extraInfo") or {}
        confidence = extra.get("confidenceLevel") if isinstance(extra, dict) else None

        change = record.get("priceChange") or {}
        change_24h = None
        if isinstance(change, dict) and change.get("24h") is not None:
            try:
                change_24h = float(change["24h"])
            except (TypeError, ValueError):
                change_24h = None

        return cls(
            identifier=identifier,
            price=price,
            confidence=confidence,
            price_change_24h=change_24h,
        )


@dataclass(frozen=True)
class Socials:
    website: str | None = None
    twitter: str | None = None
    discord: str | None = None


@dataclass(frozen=True)
class TokenMetadata:
    """Display metadata of a token, validated at the gateway boundary."""

    identifier: str
    name: str
    symbol: str
    decimals: int
    logo_uri: str | None = None
    tags: tuple[str, ...] = ()
    coingecko_id: str | None = None
    description: str | None = None
    daily_volume: float | None = None
    has_market: bool | None = None
    freeze_authority: str | None = None
    mint_authority: str | None = None
    socials: Socials = field(default_factory=Socials)

    @property
    def verified(self) -> bool:
        return "verified" in self.tags

    @classmethod
    def from_api(cls, record: Any) -> TokenMetadata:
        """Validate a token-service record.

        ``address``, ``name``, ``symbol`` and ``decimals`` are required; a
        record missing any of them raises ``UpstreamError``.
        """
        if not isinstance(record, dict):
            raise UpstreamError("Token record is not an object")

        missing = [k for k in ("address", "name", "symbol", "decimals") if record.get(k) is None]
        if missing:
            raise UpstreamError(
                f"Token record missing required fields: {', '.join(missing)}"
            )

        try:
            decimals = int(record["decimals"])
        except (TypeError, ValueError) as e:
            raise UpstreamError(f"Invalid decimals: {record['decimals']!r}") from e

        extensions = record.get("extensions") or {}
        daily_volume = to_decimal(record.get("daily_volume", record.get("dailyVolume")))

        return cls(
            identifier=str(record["address"]),
            name=str(record["name"]),
            symbol=str(record["symbol"]),
            decimals=decimals,
            logo_uri=record.get("logoURI"),
            tags=tuple(record.get("tags") or ()),
            coingecko_id=extensions.get("coingeckoId"),
            description=extensions.get("description"),
            daily_volume=float(daily_volume) if daily_volume is not None else None,
            has_market=record.get("hasMarket"),
            freeze_authority=record.get("freeze_authority", record.get("freezeAuthority")),
            mint_authority=record.get("mint_authority", record.get("mintAuthority")),
            socials=Socials(
                website=extensions.get("website"),
                twitter=extensions.get("twitter"),
                discord=extensions.get("discord"),
            ),
        )

    def to_dict(self) -> dict[str, Any]:
        """Flattened record served by the metadata endpoint."""
        return {
            "mint": self.identifier,
            "name": self.name,
            "symbol": self.symbol,
            "decimals": self.decimals,
            "logoURI": self.logo_uri,
            "tags": list(self.tags),
            "hasMarket": self.has_market,
            "dailyVolume": self.daily_volume,
            "freezeAuthority": self.freeze_authority,
            "mintAuthority": self.mint_authority,
            "socials": {
                "website": self.socials.website,
                "twitter": self.socials.twitter,
                "discord": self.socials.discord,
            },
            "coingeckoId": self.coingecko_id,
            "description": self.description,
        }


@dataclass(frozen=True)
class BalanceSheet:
    """Native balance and positive token balances read from the ledger."""

    address: str
    native_balance: Decimal
    tokens: tuple[tuple[str, Decimal], ...] = ()


@dataclass(frozen=True)
class TokenHolding:
    """One wallet's balance of one token plus derived price and metadata."""

    identifier: str
    balance: Decimal
    name: str = UNKNOWN_NAME
    symbol: str = UNKNOWN_SYMBOL
    price: Decimal | None = None
    confidence: str | None = None
    price_change_24h: float | None = None
    tags: tuple[str, ...] = ()
    logo_uri: str | None = None
    enriched: bool = False

    @property
    def value(self) -> Decimal | None:
        if self.price is None:
            return None
        return self.balance * self.price

    @property
    def verified(self) -> bool:
        return "verified" in self.tags

    def with_price(self, quote: PriceQuote) -> TokenHolding:
        return replace(
            self,
            price=quote.price,
            confidence=quote.confidence,
            price_change_24h=quote.price_change_24h,
        )

    def with_metadata(self, meta: TokenMetadata) -> TokenHolding:
        return replace(
            self,
            name=meta.name,
            symbol=meta.symbol,
            tags=meta.tags,
            logo_uri=meta.logo_uri,
            enriched=True,
        )


@dataclass(frozen=True)
class WalletSnapshot:
    """Everything fetched for one wallet in one cycle."""

    address: str
    native_balance: Decimal
    holdings: tuple[TokenHolding, ...] = ()


@dataclass(frozen=True)
class WalletFailure:
    """A wallet whose aggregation failed, with the reason."""

    address: str
    error: str
    message: str


@dataclass(frozen=True)
class AccumulatedHolding:
    """Cross-wallet summary row for one identifier."""

    identifier: str
    name: str
    symbol: str
    total_balance: Decimal
    price: Decimal
    total_value: Decimal
    logo_uri: str | None = None
    verified: bool = False
    price_change_24h: float | None = None


@dataclass(frozen=True)
class PortfolioView:
    total_value: Decimal
    holdings: tuple[AccumulatedHolding, ...] = ()


@dataclass(frozen=True)
class PortfolioResult:
    """Output of one fetch cycle."""

    snapshots: dict[str, WalletSnapshot]
    native_quote: PriceQuote | None
    view: PortfolioView
    failures: tuple[WalletFailure, ...] = ()
