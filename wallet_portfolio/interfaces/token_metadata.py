"""Token metadata protocol — display name, symbol, logo and tags."""
from typing import Protocol

from ..models import TokenMetadata


class TokenMetadataSource(Protocol):
    """Abstract interface for token metadata lookups."""

    async def fetch_token(self, identifier: str) -> TokenMetadata: ...

    async def fetch_tagged_tokens(
        self, tags: str = "verified"
    ) -> dict[str, TokenMetadata]: ...
