"""Protocol interfaces for the portfolio pipeline."""
from .chain import BalanceReader
from .price_oracle import PriceOracle
from .token_metadata import TokenMetadataSource

__all__ = ["BalanceReader", "PriceOracle", "TokenMetadataSource"]
