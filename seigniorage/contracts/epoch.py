"""
Epoch scheduler.

Time-gates an action to at most once per fixed-length epoch. The epoch
index is always derived from absolute time, never from a counter, so an
action that is skipped for several epochs simply runs once when next called.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

from ..chain import Chain
from ..exceptions import EpochNotCallableError, InvalidParameterError, NotStartedError
from ..logger import get_logger
from ..safemath import div, sub
from .base import Operator, external

logger = get_logger(__name__)


class Epoch(Operator):
    """
    Tracks `period`, `start_time` and `last_executed_at`.

    Subclasses wrap their gated action in ``with self._check_epoch():``.
    """

    def __init__(
        self,
        chain: Chain,
        deployer: str,
        period: int,
        start_time: int,
        start_epoch: int = 0,
        name: str = "",
    ):
        super().__init__(chain, deployer, name)
        if period <= 0:
            raise InvalidParameterError(f"{self.name}: period must be positive")
        self.period = period
        self.start_time = start_time
        self.last_executed_at = start_time + start_epoch * period

    # -- Views --------------------------------------------------------------

    def get_last_epoch(self) -> int:
        return div(sub(self.last_executed_at, self.start_time), self.period)

    def get_current_epoch(self) -> int:
        return div(max(self.start_time, self.now) - self.start_time, self.period)

    def get_next_epoch(self) -> int:
        if self.start_time == self.last_executed_at:
            return self.get_last_epoch()
        return self.get_last_epoch() + 1

    def next_epoch_point(self) -> int:
        """Earliest timestamp at which the gated action can run again."""
        return self.start_time + self.get_next_epoch() * self.period

    def callable(self) -> bool:
        return self.get_current_epoch() >= self.get_next_epoch()

    # -- Guards -------------------------------------------------------------

    def _check_start_time(self) -> None:
        if self.now < self.start_time:
            raise NotStartedError(f"{self.name}: not started yet")

    @contextmanager
    def _check_epoch(self) -> Iterator[int]:
        """
        Gate the enclosed block to once per epoch.

        Yields the current epoch index; stamps `last_executed_at` when the
        block exits normally, including an early ``return``.
        """
        now = self.now
        if now <= self.start_time:
            raise NotStartedError(f"{self.name}: not started yet")
        if not self.callable():
            raise EpochNotCallableError(f"{self.name}: not allowed")
        yield self.get_current_epoch()
        self.last_executed_at = now

    # -- Governance ---------------------------------------------------------

    @external
    def set_period(self, sender: str, period: int) -> None:
        self._only_operator(sender)
        if period <= 0:
            raise InvalidParameterError(f"{self.name}: period must be positive")
        logger.info(f"{self.name}: epoch period {self.period}s -> {period}s")
        self.period = period
