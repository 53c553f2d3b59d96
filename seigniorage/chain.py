"""
Seigniorage Ledger

The host every contract runs on. Mirrors the block-boundary lifecycle of a
chain node:

  - A clock (block number + timestamp) that only moves forward
  - A registry of contracts with deterministic addresses
  - Atomic transactions: the outermost entry point snapshots every registered
    contract and restores all of them if the call raises
  - Savepoint calls (`try_call`) whose failure is returned as a value

Usage:

    chain = Chain(timestamp=1_700_000_000)
    token = Token(chain, deployer, "Cash", "CASH")
    chain.advance_time(3600)
    token.transfer(alice, bob, 10 * UNIT)
"""

from __future__ import annotations

import copy
import hashlib
import time
from contextlib import contextmanager
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Dict, Iterator, List, Optional

from .constants import BLOCK_TIME
from .logger import get_logger

if TYPE_CHECKING:
    from .contracts.base import Contract

logger = get_logger(__name__)


@dataclass(frozen=True)
class CallResult:
    """Outcome of a best-effort call. `error` is set when `ok` is False."""
    ok: bool
    value: Any = None
    error: Optional[Exception] = None


@dataclass(frozen=True)
class Snapshot:
    """Saved contract state. Append-only logs are kept by length only."""
    state: Dict[str, Any]
    log_lengths: Dict[str, int]


class Chain:
    """
    Sequential single-writer ledger.

    Every mutating contract method runs inside `transaction()`; no partial
    state of a failed call is ever observable.
    """

    def __init__(
        self,
        timestamp: Optional[int] = None,
        block_number: int = 1,
        block_time: int = BLOCK_TIME,
    ):
        self.timestamp = int(timestamp if timestamp is not None else time.time())
        self.block_number = block_number
        self.block_time = block_time
        self._contracts: Dict[str, Contract] = {}
        self._sequence = 0
        self._depth = 0
        self._origin: Optional[str] = None

    # -- Clock --------------------------------------------------------------

    def mine(self, blocks: int = 1, seconds: Optional[int] = None) -> int:
        """
        Close the current block and open `blocks` new ones.

        Args:
            blocks: number of blocks to advance
            seconds: wall time to advance (defaults to blocks * block_time)

        Returns:
            The new block number
        """
        if blocks < 1:
            raise ValueError("Must mine at least one block")
        if self._depth:
            raise RuntimeError("Cannot mine inside a transaction")
        elapsed = blocks * self.block_time if seconds is None else seconds
        if elapsed < 0:
            raise ValueError("Time cannot move backwards")
        self.block_number += blocks
        self.timestamp += elapsed
        return self.block_number

    def advance_time(self, seconds: int) -> int:
        """Advance time by `seconds` in a single new block."""
        return self.mine(1, seconds)

    def set_time(self, timestamp: int) -> int:
        """Jump to an absolute timestamp in a single new block."""
        if timestamp < self.timestamp:
            raise ValueError(
                f"Timestamp must be monotonically increasing ({timestamp} < {self.timestamp})"
            )
        return self.mine(1, timestamp - self.timestamp)

    # -- Registry -----------------------------------------------------------

    def register(self, contract: Contract) -> str:
        """Assign a deterministic address to a newly deployed contract."""
        self._sequence += 1
        seed = f"{self._sequence}:{type(contract).__name__}".encode()
        address = "0x" + hashlib.blake2b(seed, digest_size=20).hexdigest()
        self._contracts[address] = contract
        logger.debug(f"Deployed {type(contract).__name__} at {address}")
        return address

    def get(self, address: str) -> Optional[Contract]:
        return self._contracts.get(address)

    @property
    def contracts(self) -> List[Contract]:
        return list(self._contracts.values())

    # -- Transactions -------------------------------------------------------

    @property
    def origin(self) -> Optional[str]:
        """Externally owned account that opened the running transaction."""
        return self._origin

    @property
    def in_transaction(self) -> bool:
        return self._depth > 0

    def _snapshot(self) -> Dict[str, Snapshot]:
        # Contracts reference each other; the memo keeps those references
        # pointing at the live objects instead of copies.
        memo: Dict[int, Any] = {id(c): c for c in self._contracts.values()}
        memo[id(self)] = self
        snapshot = {}
        for address, contract in self._contracts.items():
            logs = {
                name: len(contract.__dict__[name])
                for name in contract._append_only
                if name in contract.__dict__
            }
            state = {k: v for k, v in contract.__dict__.items() if k not in logs}
            snapshot[address] = Snapshot(copy.deepcopy(state, memo), logs)
        return snapshot

    def _restore(self, snapshot: Dict[str, Snapshot]) -> None:
        for address, saved in snapshot.items():
            contract = self._contracts[address]
            logs = {name: contract.__dict__[name] for name in saved.log_lengths}
            contract.__dict__.clear()
            contract.__dict__.update(saved.state)
            for name, length in saved.log_lengths.items():
                del logs[name][length:]
                contract.__dict__[name] = logs[name]

    @contextmanager
    def transaction(self, origin: str) -> Iterator[str]:
        """
        Run a contract call atomically.

        Nested calls (contract → contract) join the enclosing transaction and
        keep its origin. If the outermost call raises, every contract is
        restored to its pre-call state and the exception propagates.
        """
        if self._depth:
            self._depth += 1
            try:
                yield self._origin
            finally:
                self._depth -= 1
            return

        snapshot = self._snapshot()
        self._depth = 1
        self._origin = origin
        try:
            yield origin
        except Exception:
            self._restore(snapshot)
            raise
        finally:
            self._depth = 0
            self._origin = None

    def try_call(self, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> CallResult:
        """
        Call `fn` under a savepoint.

        A failure rolls back whatever `fn` changed and comes back as
        `CallResult(ok=False, error=...)`; it is never raised.
        """
        snapshot = self._snapshot()
        try:
            value = fn(*args, **kwargs)
        except Exception as e:
            self._restore(snapshot)
            return CallResult(ok=False, error=e)
        return CallResult(ok=True, value=value)

    def __repr__(self) -> str:
        return (
            f"<Chain block={self.block_number} time={self.timestamp} "
            f"contracts={len(self._contracts)}>"
        )
