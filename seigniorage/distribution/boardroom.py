"""
Boardroom: snapshot-based seigniorage distributor.

Stakers deposit a stake token (Share, or LP shares for the LP boardroom) and
receive cash whenever the Treasury allocates seigniorage. Each allocation
appends a snapshot holding the cumulative reward per staked unit; a staker
only remembers the index of the last snapshot they settled against, so
earnings are two lookups no matter how many allocations were missed:

    earned = balance * (latest.reward_per_share - seat.snapshot.reward_per_share) / UNIT
             + seat.reward_earned

Lockups are counted on the boardroom's own epoch clock, independent of the
Treasury's.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List

from ..chain import Chain
from ..constants import (
    BOARDROOM_EPOCH_PERIOD,
    BOARDROOM_MAX_LOCKUP_EPOCHS,
    BOARDROOM_REWARD_LOCKUP_EPOCHS,
    BOARDROOM_WITHDRAW_LOCKUP_EPOCHS,
    UNIT,
)
from ..contracts.base import ContractGuard, Operator, external
from ..exceptions import (
    InsufficientBalanceError,
    InvalidParameterError,
    LockupError,
    NoStakeError,
    ZeroAmountError,
)
from ..logger import get_logger
from ..safemath import div, mul_div, sub
from ..tokens.token import Token

logger = get_logger(__name__)


# ══════════════════════════════════════════════════════════════════════
#  DATA MODEL
# ══════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class BoardSnapshot:
    """One seigniorage allocation. Index 0 is the zero-reward genesis."""
    block_number: int
    reward_received: int
    reward_per_share: int


@dataclass
class Boardseat:
    """Per-staker ledger entry."""
    balance: int = 0
    last_snapshot_index: int = 0
    reward_earned: int = 0
    epoch_timer_start: int = 0


# ══════════════════════════════════════════════════════════════════════
#  BOARDROOM
# ══════════════════════════════════════════════════════════════════════

class Boardroom(ContractGuard, Operator):
    """
    Pull-based proportional distributor.

    The operator (the Treasury) calls `allocate_seigniorage`; stakers call
    `stake`, `withdraw`, `claim_reward` and `exit`.
    """

    _append_only = Operator._append_only + ("_history",)

    def __init__(
        self,
        chain: Chain,
        deployer: str,
        cash: Token,
        stake_token: Token,
        epoch_aligned_timestamp: int,
        epoch_period: int = BOARDROOM_EPOCH_PERIOD,
        withdraw_lockup_epochs: int = BOARDROOM_WITHDRAW_LOCKUP_EPOCHS,
        reward_lockup_epochs: int = BOARDROOM_REWARD_LOCKUP_EPOCHS,
        name: str = "Boardroom",
    ):
        super().__init__(chain, deployer, name)
        if epoch_period <= 0:
            raise InvalidParameterError(f"{self.name}: epoch period must be positive")
        self._validate_lockup(withdraw_lockup_epochs, reward_lockup_epochs)

        self.cash = cash
        self.stake_token = stake_token
        self.epoch_aligned_timestamp = epoch_aligned_timestamp
        self.epoch_period = epoch_period
        self.withdraw_lockup_epochs = withdraw_lockup_epochs
        self.reward_lockup_epochs = reward_lockup_epochs

        self._total_supply = 0
        self._seats: Dict[str, Boardseat] = {}
        self._history: List[BoardSnapshot] = [
            BoardSnapshot(block_number=chain.block_number, reward_received=0, reward_per_share=0)
        ]

    # ── Epoch clock ───────────────────────────────────────────────────

    def epoch(self) -> int:
        if self.now < self.epoch_aligned_timestamp:
            return 0
        return (self.now - self.epoch_aligned_timestamp) // self.epoch_period

    def next_epoch_point(self) -> int:
        return self.epoch_aligned_timestamp + (self.epoch() + 1) * self.epoch_period

    # ── Views ─────────────────────────────────────────────────────────

    @property
    def total_supply(self) -> int:
        return self._total_supply

    def balance_of(self, director: str) -> int:
        return self._seat(director).balance

    def _seat(self, director: str) -> Boardseat:
        return self._seats.get(director) or Boardseat()

    def latest_snapshot_index(self) -> int:
        return len(self._history) - 1

    def get_latest_snapshot(self) -> BoardSnapshot:
        return self._history[-1]

    def snapshot_at(self, index: int) -> BoardSnapshot:
        return self._history[index]

    def get_last_snapshot_index_of(self, director: str) -> int:
        return self._seat(director).last_snapshot_index

    def reward_per_share(self) -> int:
        return self.get_latest_snapshot().reward_per_share

    def earned(self, director: str) -> int:
        seat = self._seat(director)
        latest_rps = self.get_latest_snapshot().reward_per_share
        stored_rps = self._history[seat.last_snapshot_index].reward_per_share
        return div(seat.balance * sub(latest_rps, stored_rps), UNIT) + seat.reward_earned

    def can_withdraw(self, director: str) -> bool:
        return self._seat(director).epoch_timer_start + self.withdraw_lockup_epochs <= self.epoch()

    def can_claim_reward(self, director: str) -> bool:
        return self._seat(director).epoch_timer_start + self.reward_lockup_epochs <= self.epoch()

    # ── Internal ──────────────────────────────────────────────────────

    def _update_reward(self, director: str) -> Boardseat:
        """Settle director's earnings against the latest snapshot."""
        seat = self._seats.setdefault(director, Boardseat())
        seat.reward_earned = self.earned(director)
        seat.last_snapshot_index = self.latest_snapshot_index()
        return seat

    def _validate_lockup(self, withdraw_lockup_epochs: int, reward_lockup_epochs: int) -> None:
        if not (
            0 <= reward_lockup_epochs <= withdraw_lockup_epochs <= BOARDROOM_MAX_LOCKUP_EPOCHS
        ):
            raise InvalidParameterError(
                f"{self.name}: lockup out of range "
                f"(reward={reward_lockup_epochs}, withdraw={withdraw_lockup_epochs})"
            )

    # ── Staker operations ─────────────────────────────────────────────

    @external
    def stake(self, sender: str, amount: int) -> None:
        """Deposit stake tokens (pulled with transfer_from) and restart the lockup timer."""
        self._one_block(sender)
        if amount <= 0:
            raise ZeroAmountError(f"{self.name}: Cannot stake 0")
        seat = self._update_reward(sender)

        self.stake_token.transfer_from(self.address, sender, self.address, amount)
        seat.balance += amount
        seat.epoch_timer_start = self.epoch()
        self._total_supply += amount

        self._emit("Staked", user=sender, amount=amount)
        logger.debug(f"{self.name}: {sender} staked {amount}")

    @external
    def withdraw(self, sender: str, amount: int) -> None:
        self._one_block(sender)
        if amount <= 0:
            raise ZeroAmountError(f"{self.name}: Cannot withdraw 0")
        if self.balance_of(sender) == 0:
            raise NoStakeError(f"{self.name}: The director does not exist")
        if not self.can_withdraw(sender):
            raise LockupError(f"{self.name}: still in withdraw lockup")
        seat = self._update_reward(sender)
        if seat.balance < amount:
            raise InsufficientBalanceError(
                f"{self.name}: withdraw request {amount} exceeds staked {seat.balance}"
            )

        seat.balance -= amount
        self._total_supply = sub(self._total_supply, amount)
        self.stake_token.transfer(self.address, sender, amount)

        self._emit("Withdrawn", user=sender, amount=amount)
        logger.debug(f"{self.name}: {sender} withdrew {amount}")

    @external
    def claim_reward(self, sender: str) -> int:
        """
        Pay out settled earnings.

        Returns:
            Amount paid (0 when nothing is owed)
        """
        seat = self._update_reward(sender)
        reward = seat.reward_earned
        if reward == 0:
            return 0
        if not self.can_claim_reward(sender):
            raise LockupError(f"{self.name}: still in reward lockup")

        seat.reward_earned = 0
        self.cash.transfer(self.address, sender, reward)
        self._emit("RewardPaid", user=sender, reward=reward)
        return reward

    @external
    def exit(self, sender: str) -> int:
        """Withdraw the whole stake and claim earnings."""
        self.withdraw(sender, self.balance_of(sender))
        return self.claim_reward(sender)

    # ── Treasury operations ───────────────────────────────────────────

    @external
    def allocate_seigniorage(self, sender: str, amount: int) -> None:
        """
        Append a snapshot distributing `amount` cash over current stake.

        Pulls `amount` cash from the caller. Zero is a no-op; allocating to
        an empty boardroom is rejected.
        """
        self._only_operator(sender)
        if amount == 0:
            return
        self._one_block(sender)
        if self._total_supply == 0:
            raise NoStakeError(f"{self.name}: Cannot allocate when totalSupply is 0")

        prev_rps = self.get_latest_snapshot().reward_per_share
        next_rps = prev_rps + mul_div(amount, UNIT, self._total_supply)
        self._history.append(
            BoardSnapshot(
                block_number=self.chain.block_number,
                reward_received=amount,
                reward_per_share=next_rps,
            )
        )
        self.cash.transfer_from(self.address, sender, self.address, amount)

        self._emit("RewardAdded", user=sender, reward=amount)
        logger.info(
            f"{self.name}: allocated {amount} cash over {self._total_supply} staked "
            f"(snapshot {self.latest_snapshot_index()})"
        )

    # ── Governance ────────────────────────────────────────────────────

    @external
    def set_lockup(self, sender: str, withdraw_lockup_epochs: int, reward_lockup_epochs: int) -> None:
        self._only_operator(sender)
        self._validate_lockup(withdraw_lockup_epochs, reward_lockup_epochs)
        self.withdraw_lockup_epochs = withdraw_lockup_epochs
        self.reward_lockup_epochs = reward_lockup_epochs
        logger.info(
            f"{self.name}: lockup set to withdraw={withdraw_lockup_epochs} "
            f"reward={reward_lockup_epochs} epochs"
        )

    @external
    def set_epoch(self, sender: str, epoch_aligned_timestamp: int, epoch_period: int) -> None:
        self._only_operator(sender)
        if epoch_period <= 0:
            raise InvalidParameterError(f"{self.name}: epoch period must be positive")
        self.epoch_aligned_timestamp = epoch_aligned_timestamp
        self.epoch_period = epoch_period

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "stakeToken": self.stake_token.symbol,
            "totalSupply": str(self._total_supply),
            "snapshots": len(self._history),
            "rewardPerShare": str(self.reward_per_share()),
            "epoch": self.epoch(),
            "withdrawLockupEpochs": self.withdraw_lockup_epochs,
            "rewardLockupEpochs": self.reward_lockup_epochs,
        }
