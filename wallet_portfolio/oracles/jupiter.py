"""Jupiter price oracle service."""
from __future__ import annotations

import logging
from typing import Any, Iterable

from ..config import JupiterConfig
from ..errors import InvalidInput, UpstreamError
from ..models import PriceQuote
from ..upstream import fetch_json

logger = logging.getLogger(__name__)


def normalize_ids(identifiers: Iterable[str]) -> list[str]:
    """Strip, drop blanks and de-duplicate while keeping first-seen order."""
    seen: dict[str, None] = {}
    for ident in identifiers:
        ident = (ident or "").strip()
        if ident:
            seen.setdefault(ident, None)
    return list(seen)


class JupiterPriceOracle:
    """Fetch prices from the Jupiter Price API."""

    service = "Jupiter price API"

    def __init__(self, config: JupiterConfig) -> None:
        self.price_url = config.price_url
        self.timeout = config.timeout
        self.headers = {"Referer": config.referer, "Origin": config.referer}

    async def fetch_raw(self, identifiers: Iterable[str]) -> dict[str, Any]:
        """Return the upstream body for a batched lookup, unchanged."""
        ids = normalize_ids(identifiers)
        if not ids:
            raise InvalidInput("Token IDs are required")

        body = await fetch_json(
            self.price_url,
            service=self.service,
            params={
                "ids": ",".join(ids),
                "showExtraInfo": "true",
                "includeHistory": "true",
            },
            headers=self.headers,
            timeout=self.timeout,
        )
        if not isinstance(body, dict):
            raise UpstreamError(f"{self.service}: unexpected response body")
        return body

    async def fetch_prices(self, identifiers: Iterable[str]) -> dict[str, PriceQuote]:
        """Fetch current prices for all identifiers in one request.

        Identifiers without a known price are simply absent from the result.
        Raises ``RateLimited`` on HTTP 429 and ``UpstreamError`` otherwise.
        """
        body = await self.fetch_raw(identifiers)
        data = body.get("data") or {}

        prices: dict[str, PriceQuote] = {}
        for ident, record in data.items():
            quote = PriceQuote.from_api(ident, record)
            if quote is not None:
                prices[ident] = quote

        logger.debug("Fetched %d price(s) from Jupiter", len(prices))
        return prices
