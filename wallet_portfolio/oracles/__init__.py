"""Price oracles."""
from .jupiter import JupiterPriceOracle

__all__ = ["JupiterPriceOracle"]
