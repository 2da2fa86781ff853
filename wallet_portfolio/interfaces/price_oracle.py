"""Price oracle protocol — price feed abstraction."""
from typing import Iterable, Protocol

from ..models import PriceQuote


class PriceOracle(Protocol):
    """Abstract interface for fetching token prices by identifier."""

    async def fetch_prices(self, identifiers: Iterable[str]) -> dict[str, PriceQuote]: ...
