"""
Price discovery.

Components:
  - UQ112x112 / UQ144x112 fixed point
  - Pair: constant-product pool with cumulative price accumulators
  - Oracle: epoch-gated TWAP over a Pair
"""

from .fixedpoint import UQ112x112, UQ144x112
from .pair import Pair, current_cumulative_prices
from .oracle import Oracle

__all__ = [
    "UQ112x112",
    "UQ144x112",
    "Pair",
    "current_cumulative_prices",
    "Oracle",
]
