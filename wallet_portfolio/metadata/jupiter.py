"""Jupiter token metadata service."""
from __future__ import annotations

import logging
from urllib.parse import quote

from ..config import JupiterConfig
from ..errors import InvalidInput, UpstreamError
from ..models import TokenMetadata
from ..upstream import fetch_json

logger = logging.getLogger(__name__)


class JupiterTokenService:
    """Look up token metadata and tag-filtered token lists on Jupiter."""

    service = "Jupiter token API"

    def __init__(self, config: JupiterConfig) -> None:
        self.token_url = config.token_url.rstrip("/")
        self.tags_url = config.tags_url
        self.timeout = config.timeout
        self.headers = {"Referer": config.referer, "Origin": config.referer}

    async def fetch_token(self, identifier: str) -> TokenMetadata:
        """Metadata for one identifier.

        Raises ``NotFound`` for identifiers unknown to Jupiter.
        """
        identifier = (identifier or "").strip()
        if not identifier:
            raise InvalidInput("Mint address is required")

        body = await fetch_json(
            f"{self.token_url}/{quote(identifier, safe='')}",
            service=self.service,
            headers=self.headers,
            timeout=self.timeout,
            allow_not_found=True,
        )
        return TokenMetadata.from_api(body)

    async def fetch_tagged_tokens(self, tags: str = "verified") -> dict[str, TokenMetadata]:
        """Tag-filtered token list keyed by identifier.

        Records failing validation are skipped.
        """
        body = await fetch_json(
            self.tags_url,
            service=self.service,
            params={"tags": tags or "verified"},
            headers=self.headers,
            timeout=self.timeout,
        )

        if isinstance(body, dict):
            records = list(body.values())
        elif isinstance(body, list):
            records = body
        else:
            raise UpstreamError(f"{self.service}: unexpected token list body")

        tokens: dict[str, TokenMetadata] = {}
        skipped = 0
        for record in records:
            try:
                token = TokenMetadata.from_api(record)
            except UpstreamError:
                skipped += 1
                continue
            tokens[token.identifier] = token

        if skipped:
            logger.debug("Skipped %d malformed token record(s)", skipped)
        logger.info("Loaded %d token(s) tagged %r", len(tokens), tags)
        return tokens
