"""Solana ledger client."""
from .client import SolanaClient, validate_address

__all__ = ["SolanaClient", "validate_address"]
