"""Token metadata sources."""
from .jupiter import JupiterTokenService

__all__ = ["JupiterTokenService"]
