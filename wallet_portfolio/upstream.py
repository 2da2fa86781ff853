"""Single-shot JSON GET against the price/token service."""
from __future__ import annotations

import asyncio
import logging
import ssl
from typing import Any

import aiohttp
import certifi

from .errors import UpstreamError, raise_for_status

logger = logging.getLogger(__name__)


async def fetch_json(
    url: str,
    *,
    service: str,
    params: dict[str, str] | None = None,
    headers: dict[str, str] | None = None,
    timeout: int = 15,
    allow_not_found: bool = False,
) -> Any:
    """GET *url* and return the decoded JSON body.

    Non-200 statuses are mapped by ``raise_for_status``; transport failures
    and undecodable bodies become ``UpstreamError``. No retry is attempted.
    """
    ssl_context = ssl.create_default_context(cafile=certifi.where())
    connector = aiohttp.TCPConnector(ssl=ssl_context)

    try:
        async with aiohttp.ClientSession(connector=connector) as session:
            async with session.get(
                url,
                params=params,
                headers=headers,
                timeout=aiohttp.ClientTimeout(total=timeout),
            ) as response:
                if response.status != 200:
                    logger.warning("%s: HTTP %s for %s", service, response.status, url)
                raise_for_status(response.status, service, allow_not_found)
                return await response.json(content_type=None)
    except (aiohttp.ClientError, asyncio.TimeoutError, OSError, ValueError) as e:
        logger.error("%s request failed: %s", service, e)
        raise UpstreamError(f"{service} request failed: {e}") from e
