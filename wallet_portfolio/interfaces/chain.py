"""Balance reader protocol — ledger RPC abstraction."""
from typing import Protocol

from ..models import BalanceSheet


class BalanceReader(Protocol):
    """Reads native and token balances owned by an address."""

    async def read_balances(self, address: str) -> BalanceSheet: ...
