"""Service modules"""
from .aggregator import AggregationResult, WalletAggregator
from .reducer import reduce_portfolio
from .viewer import PortfolioViewer, format_report, result_to_dict

__all__ = [
    "AggregationResult",
    "WalletAggregator",
    "reduce_portfolio",
    "PortfolioViewer",
    "format_report",
    "result_to_dict",
]
