"""
Boardroom snapshot distributor test suite.

Coverage:
  - Proportional allocation across stakers
  - Snapshot-diff earnings for late joiners and missed allocations
  - Withdraw / reward lockups on the boardroom epoch clock
  - ContractGuard on stake / withdraw
  - Governance: set_lockup, set_epoch
"""

import os
import sys

import pytest

# ── Path setup ────────────────────────────────────────────────────────
ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from seigniorage.chain import Chain
from seigniorage.constants import UNIT
from seigniorage.distribution import Boardroom
from seigniorage.exceptions import (
    InsufficientBalanceError,
    InvalidParameterError,
    LockupError,
    NoStakeError,
    NotOperatorError,
    SameBlockReentryError,
    ZeroAmountError,
)
from seigniorage.tokens import Cash, Share


# ══════════════════════════════════════════════════════════════════════
#  HELPERS
# ══════════════════════════════════════════════════════════════════════

T0 = 1_700_000_000
EPOCH = 8 * 3600

TREASURY = "0x" + "7e" * 20
ALICE = "0x" + "a1" * 20
BOB = "0x" + "b2" * 20
CAROL = "0x" + "c3" * 20


class Setup:
    """Boardroom operated by TREASURY with three funded stakers."""

    def __init__(self, withdraw_lockup=6, reward_lockup=3):
        self.chain = Chain(timestamp=T0)
        self.cash = Cash(self.chain, TREASURY, initial_supply=1_000_000 * UNIT)
        self.share = Share(self.chain, TREASURY, initial_supply=10_000 * UNIT)
        self.room = Boardroom(
            self.chain, TREASURY, self.cash, self.share, T0,
            epoch_period=EPOCH,
            withdraw_lockup_epochs=withdraw_lockup,
            reward_lockup_epochs=reward_lockup,
        )
        for who in (ALICE, BOB, CAROL):
            self.share.transfer(TREASURY, who, 1000 * UNIT)

    def stake(self, who, amount):
        self.share.approve(who, self.room.address, amount)
        self.room.stake(who, amount)

    def allocate(self, amount):
        self.cash.approve(TREASURY, self.room.address, amount)
        self.room.allocate_seigniorage(TREASURY, amount)

    def at_epoch(self, n):
        self.chain.set_time(T0 + n * EPOCH)


# ══════════════════════════════════════════════════════════════════════
#  ALLOCATION
# ══════════════════════════════════════════════════════════════════════


class TestAllocation:

    def test_genesis_snapshot(self):
        s = Setup()
        assert s.room.latest_snapshot_index() == 0
        assert s.room.reward_per_share() == 0

    def test_proportional_split(self):
        s = Setup()
        s.stake(ALICE, 100 * UNIT)
        s.stake(BOB, 300 * UNIT)
        s.chain.mine()
        s.allocate(400 * UNIT)

        assert s.room.reward_per_share() == UNIT
        assert s.room.earned(ALICE) == 100 * UNIT
        assert s.room.earned(BOB) == 300 * UNIT
        assert s.cash.balance_of(s.room.address) == 400 * UNIT

    def test_earned_is_snapshot_difference(self):
        s = Setup()
        s.stake(ALICE, 100 * UNIT)
        s.stake(BOB, 300 * UNIT)
        for _ in range(3):
            s.chain.mine()
            s.allocate(400 * UNIT)

        latest = s.room.get_latest_snapshot().reward_per_share
        stored = s.room.snapshot_at(s.room.get_last_snapshot_index_of(ALICE)).reward_per_share
        assert s.room.get_last_snapshot_index_of(ALICE) == 0
        assert s.room.earned(ALICE) == 100 * UNIT * (latest - stored) // UNIT == 300 * UNIT

    def test_late_joiner_earns_only_later_allocations(self):
        s = Setup()
        s.stake(ALICE, 100 * UNIT)
        s.chain.mine()
        s.allocate(100 * UNIT)
        s.chain.mine()

        s.stake(CAROL, 100 * UNIT)
        assert s.room.earned(CAROL) == 0
        assert s.room.get_last_snapshot_index_of(CAROL) == 1

        s.chain.mine()
        s.allocate(200 * UNIT)
        assert s.room.earned(ALICE) == 200 * UNIT
        assert s.room.earned(CAROL) == 100 * UNIT

    def test_settled_rewards_survive_new_stake(self):
        s = Setup()
        s.stake(ALICE, 100 * UNIT)
        s.chain.mine()
        s.allocate(50 * UNIT)
        s.chain.mine()
        s.stake(ALICE, 100 * UNIT)
        assert s.room.earned(ALICE) == 50 * UNIT
        s.chain.mine()
        s.allocate(100 * UNIT)
        assert s.room.earned(ALICE) == 150 * UNIT

    def test_rounding_never_overpays(self):
        s = Setup()
        for who in (ALICE, BOB, CAROL):
            s.stake(who, UNIT)
        s.chain.mine()
        s.allocate(10 * UNIT)
        total = sum(s.room.earned(w) for w in (ALICE, BOB, CAROL))
        assert total <= 10 * UNIT

    def test_zero_allocation_is_noop(self):
        s = Setup()
        s.allocate(0)
        assert s.room.latest_snapshot_index() == 0
        assert not s.room.events_named("RewardAdded")

    def test_allocation_requires_stake(self):
        s = Setup()
        with pytest.raises(NoStakeError, match="totalSupply is 0"):
            s.allocate(UNIT)
        assert s.room.latest_snapshot_index() == 0
        assert s.cash.balance_of(s.room.address) == 0

    def test_allocation_requires_operator(self):
        s = Setup()
        s.stake(ALICE, UNIT)
        s.cash.transfer(TREASURY, ALICE, UNIT)
        s.cash.approve(ALICE, s.room.address, UNIT)
        with pytest.raises(NotOperatorError):
            s.room.allocate_seigniorage(ALICE, UNIT)


# ══════════════════════════════════════════════════════════════════════
#  STAKING
# ══════════════════════════════════════════════════════════════════════


class TestStaking:

    def test_stake_zero(self):
        s = Setup()
        with pytest.raises(ZeroAmountError, match="Cannot stake 0"):
            s.room.stake(ALICE, 0)

    def test_stake_pulls_tokens(self):
        s = Setup()
        s.stake(ALICE, 250 * UNIT)
        assert s.room.total_supply == 250 * UNIT
        assert s.room.balance_of(ALICE) == 250 * UNIT
        assert s.share.balance_of(ALICE) == 750 * UNIT

    def test_one_stake_per_block(self):
        s = Setup()
        s.stake(ALICE, UNIT)
        s.share.approve(ALICE, s.room.address, UNIT)
        with pytest.raises(SameBlockReentryError):
            s.room.stake(ALICE, UNIT)
        s.chain.mine()
        s.room.stake(ALICE, UNIT)
        assert s.room.balance_of(ALICE) == 2 * UNIT

    def test_withdraw_without_stake(self):
        s = Setup()
        with pytest.raises(NoStakeError):
            s.room.withdraw(ALICE, UNIT)

    def test_withdraw_more_than_staked(self):
        s = Setup(withdraw_lockup=0, reward_lockup=0)
        s.stake(ALICE, UNIT)
        s.chain.mine()
        with pytest.raises(InsufficientBalanceError):
            s.room.withdraw(ALICE, 2 * UNIT)

    def test_claim_with_nothing_owed(self):
        s = Setup()
        s.stake(ALICE, UNIT)
        assert s.room.claim_reward(ALICE) == 0


# ══════════════════════════════════════════════════════════════════════
#  LOCKUPS
# ══════════════════════════════════════════════════════════════════════


class TestLockups:

    def test_epoch_clock(self):
        s = Setup()
        assert s.room.epoch() == 0
        s.at_epoch(2)
        assert s.room.epoch() == 2
        assert s.room.next_epoch_point() == T0 + 3 * EPOCH

    def test_withdraw_locked(self):
        s = Setup()
        s.stake(ALICE, 100 * UNIT)
        s.at_epoch(5)
        assert not s.room.can_withdraw(ALICE)
        with pytest.raises(LockupError, match="withdraw lockup"):
            s.room.withdraw(ALICE, UNIT)
        s.at_epoch(6)
        s.room.withdraw(ALICE, UNIT)
        assert s.room.balance_of(ALICE) == 99 * UNIT

    def test_reward_locked(self):
        s = Setup()
        s.stake(ALICE, 100 * UNIT)
        s.chain.mine()
        s.allocate(10 * UNIT)
        s.at_epoch(2)
        with pytest.raises(LockupError, match="reward lockup"):
            s.room.claim_reward(ALICE)
        assert s.room.earned(ALICE) == 10 * UNIT

        s.at_epoch(3)
        assert s.room.claim_reward(ALICE) == 10 * UNIT
        assert s.cash.balance_of(ALICE) == 10 * UNIT
        assert s.room.earned(ALICE) == 0

    def test_new_stake_restarts_timer(self):
        s = Setup()
        s.stake(ALICE, 100 * UNIT)
        s.at_epoch(5)
        s.stake(ALICE, UNIT)
        s.at_epoch(6)
        assert not s.room.can_withdraw(ALICE)
        s.at_epoch(11)
        assert s.room.can_withdraw(ALICE)

    def test_exit(self):
        s = Setup()
        s.stake(ALICE, 100 * UNIT)
        s.chain.mine()
        s.allocate(40 * UNIT)
        s.at_epoch(6)
        assert s.room.exit(ALICE) == 40 * UNIT
        assert s.room.balance_of(ALICE) == 0
        assert s.share.balance_of(ALICE) == 1000 * UNIT


# ══════════════════════════════════════════════════════════════════════
#  GOVERNANCE
# ══════════════════════════════════════════════════════════════════════


class TestGovernance:

    def test_set_lockup(self):
        s = Setup()
        s.room.set_lockup(TREASURY, 2, 1)
        assert (s.room.withdraw_lockup_epochs, s.room.reward_lockup_epochs) == (2, 1)

    @pytest.mark.parametrize("withdraw,reward", [(1, 2), (57, 3), (6, -1)])
    def test_set_lockup_out_of_range(self, withdraw, reward):
        s = Setup()
        with pytest.raises(InvalidParameterError, match="lockup out of range"):
            s.room.set_lockup(TREASURY, withdraw, reward)

    def test_set_lockup_requires_operator(self):
        s = Setup()
        with pytest.raises(NotOperatorError):
            s.room.set_lockup(ALICE, 2, 1)

    def test_invalid_constructor_lockup(self):
        with pytest.raises(InvalidParameterError):
            Setup(withdraw_lockup=1, reward_lockup=3)

    def test_set_epoch(self):
        s = Setup()
        s.room.set_epoch(TREASURY, T0, 3600)
        s.chain.set_time(T0 + 7200)
        assert s.room.epoch() == 2
        with pytest.raises(InvalidParameterError):
            s.room.set_epoch(TREASURY, T0, 0)

    def test_to_dict(self):
        s = Setup()
        d = s.room.to_dict()
        assert d["stakeToken"] == "SHARE"
        assert d["snapshots"] == 1
