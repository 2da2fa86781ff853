"""Solana RPC client with fallback support."""
from __future__ import annotations

import logging
import ssl
from decimal import Decimal
from typing import Any

import aiohttp
import certifi
from base58 import b58decode

from ...config import ChainConfig
from ...errors import InvalidAddress, ReadError
from ...models import BalanceSheet, to_decimal

logger = logging.getLogger(__name__)

PUBKEY_LENGTH = 32


def validate_address(address: str) -> str:
    """Return the stripped address, or raise ``InvalidAddress``.

    A Solana address is the base58 encoding of a 32-byte public key.
    """
    candidate = (address or "").strip()
    if not candidate:
        raise InvalidAddress(address)
    try:
        decoded = b58decode(candidate)
    except ValueError as e:
        raise InvalidAddress(address) from e
    if len(decoded) != PUBKEY_LENGTH:
        raise InvalidAddress(address)
    return candidate


class SolanaClient:
    """Solana JSON-RPC client with automatic endpoint fallback."""

    def __init__(self, config: ChainConfig) -> None:
        self.endpoints = list(config.rpc_endpoints)
        self.timeout = config.rpc_timeout
        self.native_decimals = config.native_decimals
        self.token_program_ids = tuple(config.token_program_ids)
        self.current_rpc_index = 0

    async def rpc_call(self, method: str, params: list[Any]) -> Any:
        """Make RPC call with fallback to alternative endpoints."""
        payload = {"jsonrpc": "2.0", "id": 1, "method": method, "params": params}

        ssl_context = ssl.create_default_context(cafile=certifi.where())

        last_error: Exception | None = None
        for attempt in range(len(self.endpoints)):
            rpc_index = (self.current_rpc_index + attempt) % len(self.endpoints)
            rpc_url = self.endpoints[rpc_index]

            try:
                connector = aiohttp.TCPConnector(ssl=ssl_context)
                async with aiohttp.ClientSession(connector=connector) as session:
                    async with session.post(
                        rpc_url,
                        json=payload,
                        timeout=aiohttp.ClientTimeout(total=self.timeout),
                    ) as response:
                        result = await response.json()
                        if "error" in result:
                            raise ReadError(f"RPC Error: {result['error']}")

                        if rpc_index != self.current_rpc_index:
                            logger.info("Switched to RPC endpoint: %s", rpc_url)
                            self.current_rpc_index = rpc_index

                        return result.get("result", {})
            except Exception as e:
                last_error = e
                logger.warning("RPC endpoint %s failed: %s", rpc_url, e)
                if attempt < len(self.endpoints) - 1:
                    logger.info("Trying next endpoint...")
                continue

        raise ReadError(f"All RPC endpoints failed. Last error: {last_error}")

    async def get_balance(self, address: str) -> int:
        """Native balance in base units (lamports)."""
        result = await self.rpc_call("getBalance", [address])
        value = result.get("value", 0) if isinstance(result, dict) else result
        try:
            return int(value or 0)
        except (TypeError, ValueError) as e:
            raise ReadError(f"Unexpected getBalance result: {result!r}") from e

    async def get_token_accounts(self, address: str) -> list[dict[str, Any]]:
        """All parsed token accounts owned by the address, across token programs."""
        accounts: list[dict[str, Any]] = []
        for program_id in self.token_program_ids:
            result = await self.rpc_call(
                "getTokenAccountsByOwner",
                [address, {"programId": program_id}, {"encoding": "jsonParsed"}],
            )
            accounts.extend(result.get("value", []) if isinstance(result, dict) else [])
        return accounts

    @staticmethod
    def _parse_token_account(account: dict[str, Any]) -> tuple[str, Decimal] | None:
        # Accounts the node cannot parse come back as ["<base64>", "base64"].
        info: Any = account
        for key in ("account", "data", "parsed", "info"):
            info = info.get(key) if isinstance(info, dict) else None
        if not isinstance(info, dict):
            return None
        mint = info.get("mint")
        token_amount = info.get("tokenAmount")
        if not mint or not isinstance(token_amount, dict) or not token_amount:
            return None

        raw_amount = to_decimal(token_amount.get("amount"))
        decimals = token_amount.get("decimals")
        if raw_amount is not None and decimals is not None:
            balance = raw_amount / (Decimal(10) ** int(decimals))
        else:
            balance = to_decimal(
                token_amount.get("uiAmountString", token_amount.get("uiAmount"))
            )
        if balance is None:
            return None
        return mint, balance

    async def read_balances(self, address: str) -> BalanceSheet:
        """Read native balance and positive token balances for one wallet."""
        address = validate_address(address)

        lamports = await self.get_balance(address)
        native_balance = Decimal(lamports) / (Decimal(10) ** self.native_decimals)

        totals: dict[str, Decimal] = {}
        for account in await self.get_token_accounts(address):
            parsed = self._parse_token_account(account)
            if parsed is None:
                logger.debug("Skipping unparsable token account %s", account.get("pubkey"))
                continue
            mint, balance = parsed
            if balance <= 0:
                continue
            totals[mint] = totals.get(mint, Decimal(0)) + balance

        logger.info(
            "Wallet %s: %s SOL, %d token(s) with positive balance",
            address,
            native_balance,
            len(totals),
        )
        return BalanceSheet(
            address=address,
            native_balance=native_balance,
            tokens=tuple(totals.items()),
        )
