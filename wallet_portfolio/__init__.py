"""Wallet portfolio viewer for Solana wallets."""

__version__ = "0.1.0"
