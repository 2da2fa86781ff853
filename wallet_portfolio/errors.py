"""Error taxonomy shared by the balance reader, gateways and aggregator."""
from __future__ import annotations


class PortfolioError(Exception):
    """Base class for all portfolio errors."""


class InvalidInput(PortfolioError):
    """Missing or malformed user input (address, identifier list)."""


class InvalidAddress(InvalidInput):
    """Address cannot be parsed by the ledger's addressing scheme."""

    def __init__(self, address: str) -> None:
        super().__init__(f"Invalid wallet address: {address!r}")
        self.address = address


class ReadError(PortfolioError):
    """Ledger RPC transport or RPC-level failure."""


class GatewayError(PortfolioError):
    """Failure reported by the price or metadata service."""

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class RateLimited(GatewayError):
    """Upstream answered HTTP 429."""


class NotFound(GatewayError):
    """Identifier unknown to the upstream service."""


class UpstreamError(GatewayError):
    """Any other upstream failure."""


def raise_for_status(status: int, service: str, allow_not_found: bool = False) -> None:
    """Map a non-success HTTP status from *service* onto the taxonomy.

    404 becomes ``NotFound`` only for lookups where an unknown identifier is
    an expected answer; elsewhere it is an ``UpstreamError``.
    """
    if status == 200:
        return
    if status == 429:
        raise RateLimited(f"{service}: rate limit exceeded", status=status)
    if status == 404 and allow_not_found:
        raise NotFound(f"{service}: not found", status=status)
    raise UpstreamError(f"{service} returned HTTP {status}", status=status)
