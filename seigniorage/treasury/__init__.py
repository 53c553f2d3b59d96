"""
Seigniorage treasury: the epoch-gated policy engine and the fund sink.
"""

from .fund import Fund, FundDeposit
from .treasury import Treasury, TreasuryState

__all__ = [
    "Fund",
    "FundDeposit",
    "Treasury",
    "TreasuryState",
]
