from .aggregator import AggregatorProvider
from .base import Provider, SwapAggregatorProvider

__all__ = ["AggregatorProvider", "Provider", "SwapAggregatorProvider"]
