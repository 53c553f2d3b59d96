"""
Seigniorage distributors.

Provides:
  - Boardroom  : snapshot-based proportional distributor (boardroom.py)
  - RewardPool : continuous-rate staking distributor (reward_pool.py)
"""

from .boardroom import Boardroom, BoardSnapshot, Boardseat
from .reward_pool import RewardPool

__all__ = [
    "Boardroom",
    "BoardSnapshot",
    "Boardseat",
    "RewardPool",
]
