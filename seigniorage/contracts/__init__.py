"""
Contract primitives: base contract, access control, block guard, epochs.
"""

from .base import (
    Contract,
    ContractEvent,
    ContractGuard,
    Operator,
    external,
)
from .epoch import Epoch

__all__ = [
    "Contract",
    "ContractEvent",
    "ContractGuard",
    "Operator",
    "external",
    "Epoch",
]
