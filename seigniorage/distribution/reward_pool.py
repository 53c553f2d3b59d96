"""
Reward Pool: continuous-rate staking distributor.

A notified reward budget is streamed at a constant per-second rate over a
fixed duration. Stakers accrue in proportion to their share of the staked
supply, integrated over time:

    reward_per_token = stored + (min(now, period_finish) - last_update) * rate * UNIT / total_staked
    earned(account)  = balance * (reward_per_token - paid[account]) / UNIT + owed[account]

A top-up during an active period rolls the unspent remainder of the current
rate into the new rate instead of discarding it.
"""

from __future__ import annotations

from typing import Any, Dict

from ..chain import Chain
from ..constants import REWARD_POOL_DURATION, UNIT
from ..contracts.base import Operator, external
from ..exceptions import (
    InsufficientBalanceError,
    InvalidAddressError,
    InvalidParameterError,
    NotOperatorError,
    NotStartedError,
    ZeroAmountError,
)
from ..logger import get_logger
from ..safemath import div, mul_div, sub
from ..tokens.token import Token

logger = get_logger(__name__)


class RewardPool(Operator):
    """
    Fixed-duration reward stream over a staked token.

    `reward_distribution` is the only address allowed to notify rewards
    (the Treasury); the owner may reassign it.
    """

    def __init__(
        self,
        chain: Chain,
        deployer: str,
        stake_token: Token,
        reward_token: Token,
        start_time: int,
        duration: int = REWARD_POOL_DURATION,
        name: str = "RewardPool",
    ):
        super().__init__(chain, deployer, name)
        if duration <= 0:
            raise InvalidParameterError(f"{self.name}: duration must be positive")
        self.stake_token = stake_token
        self.reward_token = reward_token
        self.start_time = start_time
        self.duration = duration
        self.reward_distribution = deployer

        self.period_finish = 0
        self.reward_rate = 0
        self.last_update_time = 0
        self.reward_per_token_stored = 0
        self.total_notified = 0
        self.total_paid = 0

        self._total_supply = 0
        self._balances: Dict[str, int] = {}
        self._reward_per_token_paid: Dict[str, int] = {}
        self._rewards: Dict[str, int] = {}

    # -- Views --------------------------------------------------------------

    @property
    def total_supply(self) -> int:
        return self._total_supply

    def balance_of(self, account: str) -> int:
        return self._balances.get(account, 0)

    def last_time_reward_applicable(self) -> int:
        return min(self.now, self.period_finish)

    def reward_per_token(self) -> int:
        if self._total_supply == 0:
            return self.reward_per_token_stored
        elapsed = sub(
            self.last_time_reward_applicable(), self.last_update_time,
            f"{self.name}: reward window precedes last update",
        )
        return self.reward_per_token_stored + mul_div(
            elapsed * self.reward_rate, UNIT, self._total_supply
        )

    def earned(self, account: str) -> int:
        paid = self._reward_per_token_paid.get(account, 0)
        return (
            div(self.balance_of(account) * sub(self.reward_per_token(), paid), UNIT)
            + self._rewards.get(account, 0)
        )

    def get_reward_for_duration(self) -> int:
        return self.reward_rate * self.duration

    # -- Internal -----------------------------------------------------------

    def _update_reward(self, account: str = "") -> None:
        """Checkpoint the global accumulator and, if given, one account."""
        self.reward_per_token_stored = self.reward_per_token()
        self.last_update_time = self.last_time_reward_applicable()
        if account:
            self._rewards[account] = self.earned(account)
            self._reward_per_token_paid[account] = self.reward_per_token_stored

    def _check_start(self) -> None:
        if self.now < self.start_time:
            raise NotStartedError(f"{self.name}: not start")

    # -- Staker operations --------------------------------------------------

    @external
    def stake(self, sender: str, amount: int) -> None:
        self._check_start()
        if amount <= 0:
            raise ZeroAmountError(f"{self.name}: Cannot stake 0")
        self._update_reward(sender)
        self.stake_token.transfer_from(self.address, sender, self.address, amount)
        self._total_supply += amount
        self._balances[sender] = self.balance_of(sender) + amount
        self._emit("Staked", user=sender, amount=amount)

    @external
    def withdraw(self, sender: str, amount: int) -> None:
        self._check_start()
        if amount <= 0:
            raise ZeroAmountError(f"{self.name}: Cannot withdraw 0")
        self._update_reward(sender)
        balance = self.balance_of(sender)
        if balance < amount:
            raise InsufficientBalanceError(
                f"{self.name}: withdraw request {amount} exceeds staked {balance}"
            )
        self._balances[sender] = balance - amount
        self._total_supply = sub(self._total_supply, amount)
        self.stake_token.transfer(self.address, sender, amount)
        self._emit("Withdrawn", user=sender, amount=amount)

    @external
    def get_reward(self, sender: str) -> int:
        self._check_start()
        self._update_reward(sender)
        reward = self._rewards.get(sender, 0)
        if reward == 0:
            return 0
        self._rewards[sender] = 0
        self.total_paid += reward
        self.reward_token.transfer(self.address, sender, reward)
        self._emit("RewardPaid", user=sender, reward=reward)
        return reward

    @external
    def exit(self, sender: str) -> int:
        self.withdraw(sender, self.balance_of(sender))
        return self.get_reward(sender)

    # -- Distribution -------------------------------------------------------

    @external
    def notify_reward_amount(self, sender: str, reward: int) -> None:
        """
        Start (or top up) a reward period of `duration` seconds.

        Before `start_time` the window is anchored at `start_time`; during
        an active period the unspent remainder is rolled into the new rate.
        The reward tokens must already be held by the pool.
        """
        if sender != self.reward_distribution:
            raise NotOperatorError(f"{self.name}: Caller is not reward distribution")
        if reward == 0:
            return
        self._update_reward()

        if self.now > self.start_time:
            if self.now >= self.period_finish:
                self.reward_rate = div(reward, self.duration)
            else:
                remaining = self.period_finish - self.now
                leftover = remaining * self.reward_rate
                self.reward_rate = div(reward + leftover, self.duration)
            self.last_update_time = self.now
            self.period_finish = self.now + self.duration
        else:
            self.reward_rate = div(reward, self.duration)
            self.last_update_time = self.start_time
            self.period_finish = self.start_time + self.duration

        self.total_notified += reward
        self._emit("RewardAdded", reward=reward)
        logger.info(
            f"{self.name}: notified {reward} {self.reward_token.symbol}, "
            f"rate={self.reward_rate}/s until {self.period_finish}"
        )

    # -- Governance ---------------------------------------------------------

    @external
    def set_reward_distribution(self, sender: str, reward_distribution: str) -> None:
        self._only_owner(sender)
        if not reward_distribution:
            raise InvalidAddressError(f"{self.name}: empty reward distribution address")
        self.reward_distribution = reward_distribution

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "stakeToken": self.stake_token.symbol,
            "rewardToken": self.reward_token.symbol,
            "totalSupply": str(self._total_supply),
            "rewardRate": str(self.reward_rate),
            "periodFinish": self.period_finish,
            "rewardPerTokenStored": str(self.reward_per_token_stored),
            "totalNotified": str(self.total_notified),
            "totalPaid": str(self.total_paid),
        }
