"""
Contract primitives shared by every protocol component.

  - Contract       : ledger registration, deterministic address, event log
  - external       : entry-point decorator, one atomic ledger transaction per call
  - Operator       : owner/operator capability checks
  - ContractGuard  : one guarded call per origin (and per sender) per block
"""

from __future__ import annotations

import functools
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Tuple, TypeVar

from ..chain import Chain
from ..constants import ZERO_ADDRESS
from ..exceptions import (
    InvalidAddressError,
    NotOperatorError,
    NotOwnerError,
    SameBlockReentryError,
)
from ..logger import get_logger

logger = get_logger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


# ══════════════════════════════════════════════════════════════════════
#  EVENTS
# ══════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class ContractEvent:
    """A log entry emitted by a contract during a successful call."""
    name: str
    address: str
    block_number: int
    timestamp: int
    args: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event": self.name,
            "address": self.address,
            "blockNumber": self.block_number,
            "timestamp": self.timestamp,
            **self.args,
        }


# ══════════════════════════════════════════════════════════════════════
#  ENTRY POINTS
# ══════════════════════════════════════════════════════════════════════

def external(fn: F) -> F:
    """
    Mark a state-mutating entry point.

    The first argument after ``self`` is always the calling address. The
    body runs inside ``chain.transaction``; if it raises, every contract is
    restored to its pre-call state.
    """
    @functools.wraps(fn)
    def wrapper(self, sender: str, *args, **kwargs):
        with self.chain.transaction(sender):
            return fn(self, sender, *args, **kwargs)
    return wrapper  # type: ignore[return-value]


# ══════════════════════════════════════════════════════════════════════
#  CONTRACT
# ══════════════════════════════════════════════════════════════════════

class Contract:
    """A component deployed on the ledger."""

    # Lists that only ever grow; rollback truncates them instead of copying
    _append_only: Tuple[str, ...] = ("_events",)

    def __init__(self, chain: Chain, name: str = ""):
        self.chain = chain
        self.name = name or type(self).__name__
        self._events: List[ContractEvent] = []
        self.address = chain.register(self)

    @property
    def now(self) -> int:
        return self.chain.timestamp

    @property
    def events(self) -> List[ContractEvent]:
        return list(self._events)

    def events_named(self, name: str) -> List[ContractEvent]:
        return [e for e in self._events if e.name == name]

    def _emit(self, name: str, **args: Any) -> ContractEvent:
        event = ContractEvent(
            name=name,
            address=self.address,
            block_number=self.chain.block_number,
            timestamp=self.chain.timestamp,
            args=args,
        )
        self._events.append(event)
        return event

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name} at {self.address[:10]}>"


class Operator(Contract):
    """
    Contract with an owner and an operator.

    The owner appoints the operator; privileged calls compare the caller
    against the operator field.
    """

    def __init__(self, chain: Chain, deployer: str, name: str = ""):
        super().__init__(chain, name)
        self.owner = deployer
        self.operator = deployer

    def is_operator(self, address: str) -> bool:
        return address == self.operator

    def _only_owner(self, sender: str) -> None:
        if sender != self.owner:
            raise NotOwnerError(f"{self.name}: caller {sender} is not the owner")

    def _only_operator(self, sender: str) -> None:
        if sender != self.operator:
            raise NotOperatorError(f"{self.name}: caller {sender} is not the operator")

    @external
    def transfer_operator(self, sender: str, new_operator: str) -> None:
        self._only_owner(sender)
        if not new_operator or new_operator == ZERO_ADDRESS:
            raise InvalidAddressError("operator: zero address given for new operator")
        self._emit("OperatorTransferred", previous=self.operator, new=new_operator)
        self.operator = new_operator

    @external
    def transfer_ownership(self, sender: str, new_owner: str) -> None:
        self._only_owner(sender)
        if not new_owner or new_owner == ZERO_ADDRESS:
            raise InvalidAddressError("ownable: new owner is the zero address")
        self._emit("OwnershipTransferred", previous=self.owner, new=new_owner)
        self.owner = new_owner


class ContractGuard:
    """
    Mixin: at most one guarded call per (block, origin) and (block, sender).

    Keeps an actor from chaining price-sensitive calls against a single
    price snapshot. The entry set resets when the block number changes; a
    rejected call rolls back with its transaction, so only successful calls
    consume the slot.
    """

    _guard_block: int = -1
    _guard_entries: frozenset = frozenset()

    def _one_block(self, sender: str) -> None:
        block = self.chain.block_number
        if self._guard_block != block:
            self._guard_block = block
            self._guard_entries = frozenset()

        origin = self.chain.origin or sender
        if origin in self._guard_entries or sender in self._guard_entries:
            raise SameBlockReentryError("ContractGuard: one block, one function")
        self._guard_entries = self._guard_entries | {origin, sender}
