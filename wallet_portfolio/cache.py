"""In-memory caches: the verified-token list and proxy response bodies."""
from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable

from .errors import GatewayError
from .interfaces.token_metadata import TokenMetadataSource
from .models import TokenMetadata

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


class VerifiedTokenCache:
    """Tag-filtered token list, refreshed when older than ``ttl_seconds``.

    A failed refresh keeps serving the previous list; it only raises when
    nothing has been loaded yet.
    """

    def __init__(
        self,
        source: TokenMetadataSource,
        ttl_seconds: float = 300,
        tags: str = "verified",
        clock: Clock = time.monotonic,
    ) -> None:
        self._source = source
        self._ttl = ttl_seconds
        self._tags = tags
        self._clock = clock
        self._tokens: dict[str, TokenMetadata] = {}
        self._loaded = False
        self._last_refresh = 0.0
        self._lock = asyncio.Lock()

    @property
    def loaded(self) -> bool:
        return self._loaded

    def is_expired(self) -> bool:
        return not self._loaded or (self._clock() - self._last_refresh) >= self._ttl

    async def get(self) -> dict[str, TokenMetadata]:
        async with self._lock:
            if not self.is_expired():
                return self._tokens

            try:
                tokens = await self._source.fetch_tagged_tokens(self._tags)
            except GatewayError as e:
                if not self._loaded:
                    raise
                logger.warning("Token list refresh failed, keeping stale copy: %s", e)
                return self._tokens

            self._tokens = tokens
            self._loaded = True
            self._last_refresh = self._clock()
            return self._tokens

    async def is_verified(self, identifier: str) -> bool:
        return identifier in await self.get()

    def invalidate(self) -> None:
        self._loaded = False


@dataclass
class CacheEntry:
    value: Any
    stored_at: float


class ResponseCache:
    """Fresh/stale store for proxy responses.

    ``lookup`` returns ``(value, state)`` where state is ``"fresh"``,
    ``"stale"`` or ``"miss"``. Entries older than fresh + stale are dropped.
    """

    def __init__(
        self,
        fresh_seconds: float,
        stale_seconds: float,
        clock: Clock = time.monotonic,
    ) -> None:
        self.fresh_seconds = fresh_seconds
        self.stale_seconds = stale_seconds
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._refreshing: set[str] = set()

    def lookup(self, key: str) -> tuple[Any, str]:
        entry = self._entries.get(key)
        if entry is None:
            return None, "miss"

        age = self._clock() - entry.stored_at
        if age < self.fresh_seconds:
            return entry.value, "fresh"
        if age < self.fresh_seconds + self.stale_seconds:
            return entry.value, "stale"

        del self._entries[key]
        return None, "miss"

    def store(self, key: str, value: Any) -> None:
        now = self._clock()
        self._sweep(now)
        self._entries[key] = CacheEntry(value=value, stored_at=now)

    def _sweep(self, now: float) -> None:
        horizon = self.fresh_seconds + self.stale_seconds
        expired = [k for k, e in self._entries.items() if now - e.stored_at >= horizon]
        for key in expired:
            del self._entries[key]

    def begin_refresh(self, key: str) -> bool:
        """Claim the refresh slot for *key*; False if one is in flight."""
        if key in self._refreshing:
            return False
        self._refreshing.add(key)
        return True

    def end_refresh(self, key: str) -> None:
        self._refreshing.discard(key)

    def cache_control(self) -> str:
        return (
            f"public, s-maxage={int(self.fresh_seconds)}, "
            f"stale-while-revalidate={int(self.stale_seconds)}"
        )

    def __len__(self) -> int:
        return len(self._entries)
