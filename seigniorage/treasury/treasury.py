"""
Seigniorage Treasury

Monetary policy engine for the cash peg. Once per epoch `allocate_seigniorage`
reads the oracle TWAP and either:

  - Contracts: price at or below the floor grows the bond debt ceiling and
    decays the bond price (bonds get cheaper, cash gets burned for bonds)
  - Holds: price inside the band clears debt and resets the bond price
  - Expands: price above the ceiling mints new cash, split between the
    development fund, the bond redemption reserve and the two boardrooms

Between epochs anyone may `buy_bonds` (below peg, against debt capacity) or
`redeem_bonds` (above the ceiling, against the redemption reserve).

State machine:

    UNINITIALIZED --initialize--> ACTIVE --migrate--> MIGRATED (terminal)

Security features:
  - One guarded entry per origin per block (ContractGuard)
  - Every mutating entry requires operator rights over the assets
  - Oracle refresh is best-effort: its failure is returned, logged, dropped
  - Bond holders are paid before stakers (redemption reserve is filled first)
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional

from ..chain import Chain
from ..constants import (
    BOND_PRICE_DELTA,
    BOND_REWARD_RATE,
    BOND_REWARD_THRESHOLD_PCT,
    CASH_PRICE_CEILING_PCT,
    CASH_PRICE_FLOOR_PCT,
    DEBT_ADD_RATE,
    EPOCH_PERIOD,
    FUND_ALLOCATION_RATE,
    MAX_DEBT_RATE,
    MAX_INFLATION_RATE,
    MIN_BOND_PRICE,
    PERCENT,
    SHARE_BOARDROOM_ALLOCATION,
    UNIT,
)
from ..contracts.base import ContractGuard, external
from ..contracts.epoch import Epoch
from ..distribution.boardroom import Boardroom
from ..distribution.reward_pool import RewardPool
from ..exceptions import (
    AlreadyInitializedError,
    InsufficientBudgetError,
    InvalidAddressError,
    InvalidParameterError,
    MigratedError,
    NoDebtCapacityError,
    NotInitializedError,
    NotOperatorError,
    NotPredecessorError,
    OracleConsultError,
    PriceMovedError,
    PriceNotEligibleError,
    ProtocolError,
    ZeroAmountError,
)
from ..exchange.oracle import Oracle
from ..logger import get_logger
from ..safemath import mul_div, percent_of, sub
from ..tokens.token import Token
from .fund import Fund

logger = get_logger(__name__)


class TreasuryState(Enum):
    UNINITIALIZED = "uninitialized"
    ACTIVE = "active"
    MIGRATED = "migrated"


class Treasury(ContractGuard, Epoch):
    """
    Epoch-gated stabilizer for one cash/bond/share triple.

    Every price is UNIT-scaled: `cash_price_one` is the peg (1.0), the
    ceiling, floor and bond-reward threshold are whole percentages of it.
    """

    def __init__(
        self,
        chain: Chain,
        deployer: str,
        cash: Token,
        bond: Token,
        share: Token,
        oracle: Oracle,
        boardroom: Boardroom,
        lp_boardroom: Boardroom,
        bond_reward_pool: RewardPool,
        fund: Fund,
        start_time: int,
        period: int = EPOCH_PERIOD,
        previous_treasury: Optional[str] = None,
        cash_price_one: int = UNIT,
        ceiling_pct: int = CASH_PRICE_CEILING_PCT,
        floor_pct: int = CASH_PRICE_FLOOR_PCT,
        bond_reward_threshold_pct: int = BOND_REWARD_THRESHOLD_PCT,
        name: str = "Treasury",
    ):
        super().__init__(chain, deployer, period, start_time, 0, name)
        self.cash = cash
        self.bond = bond
        self.share = share
        self.oracle = oracle
        self.boardroom = boardroom
        self.lp_boardroom = lp_boardroom
        self.bond_reward_pool = bond_reward_pool
        self.fund = fund
        self.previous_treasury = previous_treasury

        if not 0 < floor_pct <= PERCENT <= ceiling_pct:
            raise InvalidParameterError(
                f"{self.name}: band must satisfy floor <= 100 <= ceiling "
                f"(floor={floor_pct}, ceiling={ceiling_pct})"
            )
        if not 0 < bond_reward_threshold_pct <= floor_pct:
            raise InvalidParameterError(
                f"{self.name}: bond reward threshold {bond_reward_threshold_pct} above floor"
            )
        self.ceiling_pct = ceiling_pct
        self.floor_pct = floor_pct
        self.bond_reward_threshold_pct = bond_reward_threshold_pct
        self._apply_cash_price_one(cash_price_one)

        self.max_inflation_rate = MAX_INFLATION_RATE
        self.debt_add_rate = DEBT_ADD_RATE
        self.max_debt_rate = MAX_DEBT_RATE
        self.fund_allocation_rate = FUND_ALLOCATION_RATE
        self.bond_reward_rate = BOND_REWARD_RATE
        self.min_bond_price = MIN_BOND_PRICE
        self.bond_price_delta = BOND_PRICE_DELTA

        self.accumulated_seigniorage = 0
        self.accumulated_debt = 0
        self.bond_price = UNIT

        self.initialized = False
        self.migrated = False

    # ══════════════════════════════════════════════════════════════════
    #  VIEWS
    # ══════════════════════════════════════════════════════════════════

    @property
    def state(self) -> TreasuryState:
        if self.migrated:
            return TreasuryState.MIGRATED
        if self.initialized:
            return TreasuryState.ACTIVE
        return TreasuryState.UNINITIALIZED

    def get_reserve(self) -> int:
        return self.accumulated_seigniorage

    def circulating_supply(self) -> int:
        return sub(
            self.cash.total_supply, self.accumulated_seigniorage,
            f"{self.name}: reserve exceeds cash supply",
        )

    def get_cash_price(self) -> int:
        """Oracle price of one whole cash token."""
        try:
            return self.oracle.consult(self.cash, UNIT)
        except ProtocolError as e:
            raise OracleConsultError(
                f"{self.name}: failed to consult cash price from the oracle"
            ) from e

    def max_bond_purchase(self) -> int:
        """Cash that `buy_bonds` would burn right now at most."""
        return mul_div(self.accumulated_debt, self.bond_price, UNIT)

    # ══════════════════════════════════════════════════════════════════
    #  GUARDS
    # ══════════════════════════════════════════════════════════════════

    def _check_not_migrated(self) -> None:
        if self.migrated:
            raise MigratedError(f"{self.name}: migrated")

    def _check_active(self) -> None:
        self._check_not_migrated()
        if not self.initialized:
            raise NotInitializedError(f"{self.name}: not initialized")

    def _check_operator(self) -> None:
        for asset in (self.cash, self.bond, self.share, self.boardroom, self.lp_boardroom):
            if asset.operator != self.address:
                raise NotOperatorError(
                    f"{self.name}: need more permission ({asset.name})"
                )

    def _update_cash_price(self) -> None:
        result = self.chain.try_call(self.oracle.update, self.address)
        if not result.ok:
            logger.debug(f"{self.name}: oracle refresh skipped: {result.error}")

    # ══════════════════════════════════════════════════════════════════
    #  BONDS
    # ══════════════════════════════════════════════════════════════════

    @external
    def buy_bonds(self, sender: str, amount: int, target_price: Optional[int] = None) -> int:
        """
        Burn cash below peg in exchange for bonds at `bond_price`.

        The caller must approve the Treasury to burn its cash.

        Args:
            sender: buyer
            amount: cash offered; capped by the remaining debt capacity
            target_price: reject if the oracle price is above it

        Returns:
            Bonds minted to sender
        """
        self._one_block(sender)
        self._check_active()
        self._check_start_time()
        self._check_operator()
        if amount <= 0:
            raise ZeroAmountError(f"{self.name}: cannot purchase bonds with zero amount")

        cash_price = self.get_cash_price()
        if target_price is not None and cash_price > target_price:
            raise PriceMovedError(f"{self.name}: cash price moved")
        if cash_price >= self.cash_price_one:
            raise PriceNotEligibleError(
                f"{self.name}: cashPrice not eligible for bond purchase"
            )

        burn_amount = min(amount, self.max_bond_purchase())
        if burn_amount <= 0:
            raise NoDebtCapacityError(f"{self.name}: no debt to purchase bonds against")
        bond_amount = mul_div(burn_amount, UNIT, self.bond_price)

        self.cash.burn_from(self.address, sender, burn_amount)
        self.bond.mint(self.address, sender, bond_amount)
        self.accumulated_debt = sub(
            self.accumulated_debt, bond_amount, f"{self.name}: bonds exceed debt"
        )
        self._update_cash_price()

        self._emit("BoughtBonds", buyer=sender, cash=burn_amount, bonds=bond_amount)
        logger.debug(
            f"{self.name}: {sender} burned {burn_amount} cash for {bond_amount} bonds"
        )
        return bond_amount

    @external
    def redeem_bonds(self, sender: str, amount: int, target_price: Optional[int] = None) -> int:
        """
        Exchange bonds 1:1 for reserved cash above the ceiling.

        The caller must approve the Treasury to burn its bonds.

        Returns:
            Cash paid to sender
        """
        self._one_block(sender)
        self._check_active()
        self._check_start_time()
        self._check_operator()
        if amount <= 0:
            raise ZeroAmountError(f"{self.name}: cannot redeem bonds with zero amount")

        cash_price = self.get_cash_price()
        if target_price is not None and cash_price < target_price:
            raise PriceMovedError(f"{self.name}: cash price moved")
        if cash_price <= self.cash_price_ceiling:
            raise PriceNotEligibleError(
                f"{self.name}: cashPrice not eligible for bond redemption"
            )

        redeem_amount = min(self.accumulated_seigniorage, amount)
        if redeem_amount <= 0:
            raise InsufficientBudgetError(f"{self.name}: no seigniorage reserved for redemption")
        if self.cash.balance_of(self.address) < redeem_amount:
            raise InsufficientBudgetError(f"{self.name}: treasury has no more budget")

        self.accumulated_seigniorage = sub(self.accumulated_seigniorage, redeem_amount)
        self.bond.burn_from(self.address, sender, redeem_amount)
        self.cash.transfer(self.address, sender, redeem_amount)
        self._update_cash_price()

        self._emit("RedeemedBonds", redeemer=sender, amount=redeem_amount)
        logger.debug(f"{self.name}: {sender} redeemed {redeem_amount} bonds")
        return redeem_amount

    # ══════════════════════════════════════════════════════════════════
    #  MONETARY POLICY
    # ══════════════════════════════════════════════════════════════════

    @external
    def allocate_seigniorage(self, sender: str) -> int:
        """
        Run the epoch's policy decision.

        Returns:
            Cash minted this epoch (0 unless the price is above the ceiling)
        """
        self._one_block(sender)
        self._check_active()
        self._check_start_time()
        self._check_operator()

        with self._check_epoch() as epoch:
            self._update_cash_price()
            cash_price = self.get_cash_price()
            circulating = self.circulating_supply()

            if cash_price <= self.bond_reward_threshold:
                self._fund_bond_rewards()

            if cash_price <= self.cash_price_floor:
                self._contract(circulating)
            else:
                self.accumulated_debt = 0
                self.bond_price = UNIT

            if cash_price <= self.cash_price_ceiling:
                phase = "contraction" if cash_price <= self.cash_price_floor else "in band"
                logger.info(
                    f"{self.name} epoch {epoch}: {phase} at price {cash_price}, "
                    f"debt={self.accumulated_debt} bondPrice={self.bond_price}"
                )
                return 0

            seigniorage = self._expand(circulating, cash_price)
            logger.info(
                f"{self.name} epoch {epoch}: expansion at price {cash_price}, "
                f"minted {seigniorage} cash"
            )
            return seigniorage

    def _fund_bond_rewards(self) -> None:
        # bond supply grows here without touching accumulated_debt
        bonus = percent_of(self.bond.total_supply, self.bond_reward_rate)
        if bonus == 0:
            return
        self.bond.mint(self.address, self.bond_reward_pool.address, bonus)
        self.bond_reward_pool.notify_reward_amount(self.address, bonus)
        self._emit("BondRewardFunded", amount=bonus)

    def _contract(self, circulating: int) -> None:
        added_debt = percent_of(circulating, self.debt_add_rate)
        max_debt = percent_of(circulating, self.max_debt_rate)
        self.accumulated_debt = min(self.accumulated_debt + added_debt, max_debt)

        if self.bond_price > self.min_bond_price + self.bond_price_delta:
            self.bond_price -= self.bond_price_delta
        else:
            self.bond_price = self.min_bond_price

    def _expand(self, circulating: int, cash_price: int) -> int:
        percentage = sub(cash_price, self.cash_price_one)
        seigniorage = min(
            mul_div(circulating, percentage, self.cash_price_one),
            percent_of(circulating, self.max_inflation_rate),
        )
        if seigniorage == 0:
            return 0
        self.cash.mint(self.address, self.address, seigniorage)

        fund_reserve = percent_of(seigniorage, self.fund_allocation_rate)
        if fund_reserve > 0:
            self.cash.approve(self.address, self.fund.address, fund_reserve)
            self.fund.deposit(
                self.address, self.cash, fund_reserve, "Treasury: Seigniorage Allocation"
            )
            self._emit("DevFundFunded", amount=fund_reserve)

        remaining = seigniorage - fund_reserve
        treasury_reserve = min(
            remaining // 2,
            sub(
                self.bond.total_supply, self.accumulated_seigniorage,
                f"{self.name}: reserve exceeds bond supply",
            ),
        )
        if treasury_reserve > 0:
            self.accumulated_seigniorage += treasury_reserve
            self._emit("TreasuryFunded", amount=treasury_reserve)

        boardroom_reserve = remaining - treasury_reserve
        if boardroom_reserve > 0:
            share_reserve = percent_of(boardroom_reserve, SHARE_BOARDROOM_ALLOCATION)
            lp_reserve = boardroom_reserve - share_reserve
            for room, reserve in ((self.boardroom, share_reserve), (self.lp_boardroom, lp_reserve)):
                if reserve > 0:
                    self.cash.approve(self.address, room.address, reserve)
                    room.allocate_seigniorage(self.address, reserve)
            self._emit("BoardroomFunded", amount=boardroom_reserve, share=share_reserve, lp=lp_reserve)
        return seigniorage

    # ══════════════════════════════════════════════════════════════════
    #  LIFECYCLE
    # ══════════════════════════════════════════════════════════════════

    @external
    def initialize(
        self,
        sender: str,
        accumulated_seigniorage: int = 0,
        accumulated_debt: int = 0,
        bond_price: Optional[int] = None,
        cash_price_one: Optional[int] = None,
    ) -> None:
        """
        Move to ACTIVE, exactly once.

        A genesis treasury is initialized by its operator. A successor is
        initialized only by `previous_treasury`, which forwards its counters
        during `migrate`.
        """
        self._check_not_migrated()
        if self.initialized:
            raise AlreadyInitializedError(f"{self.name}: initialized")
        if self.previous_treasury is not None:
            if sender != self.previous_treasury:
                raise NotPredecessorError(
                    f"{self.name}: caller {sender} is not the previous treasury"
                )
        else:
            self._only_operator(sender)

        if accumulated_seigniorage < 0 or accumulated_debt < 0:
            raise InvalidParameterError(f"{self.name}: negative counters")
        if bond_price is not None:
            if not self.min_bond_price <= bond_price <= UNIT:
                raise InvalidParameterError(f"{self.name}: bond price {bond_price} out of range")
            self.bond_price = bond_price
        if cash_price_one is not None:
            self._apply_cash_price_one(cash_price_one)
        self.accumulated_seigniorage = accumulated_seigniorage
        self.accumulated_debt = accumulated_debt
        self.initialized = True

        self._emit(
            "Initialized", executor=sender,
            accumulated_seigniorage=accumulated_seigniorage, accumulated_debt=accumulated_debt,
        )
        logger.info(
            f"{self.name}: initialized by {sender} "
            f"(seigniorage={accumulated_seigniorage}, debt={accumulated_debt})"
        )

    @external
    def migrate(self, sender: str, target: "Treasury") -> None:
        """
        Hand every asset and distributor to `target`, then initialize it.

        Irreversible. The Treasury must own the assets, both boardrooms and
        the bond reward pool.
        """
        self._only_operator(sender)
        self._check_not_migrated()
        self._check_operator()
        if target is self or target.address == self.address:
            raise InvalidAddressError(f"{self.name}: cannot migrate to itself")

        for contract in (self.cash, self.bond, self.share, self.boardroom, self.lp_boardroom):
            contract.transfer_operator(self.address, target.address)
            contract.transfer_ownership(self.address, target.address)
        self.bond_reward_pool.set_reward_distribution(self.address, target.address)
        self.bond_reward_pool.transfer_operator(self.address, target.address)
        self.bond_reward_pool.transfer_ownership(self.address, target.address)

        for token in (self.cash, self.bond, self.share):
            balance = token.balance_of(self.address)
            if balance > 0:
                token.transfer(self.address, target.address, balance)

        target.initialize(
            self.address,
            self.accumulated_seigniorage,
            self.accumulated_debt,
            self.bond_price,
            self.cash_price_one,
        )
        self.migrated = True

        self._emit("Migration", target=target.address)
        logger.warning(f"{self.name}: migrated to {target.address}")

    # ══════════════════════════════════════════════════════════════════
    #  GOVERNANCE
    # ══════════════════════════════════════════════════════════════════

    def _apply_cash_price_one(self, cash_price_one: int) -> None:
        if cash_price_one <= 0:
            raise InvalidParameterError(f"{self.name}: cash price one must be positive")
        self.cash_price_one = cash_price_one
        self.cash_price_ceiling = cash_price_one * self.ceiling_pct // PERCENT
        self.cash_price_floor = cash_price_one * self.floor_pct // PERCENT
        self.bond_reward_threshold = cash_price_one * self.bond_reward_threshold_pct // PERCENT

    def _set_rate(self, sender: str, field: str, rate: int) -> None:
        self._only_operator(sender)
        self._check_not_migrated()
        if not 0 <= rate <= PERCENT:
            raise InvalidParameterError(f"{self.name}: {field} {rate} out of range [0, 100]")
        logger.info(f"{self.name}: {field} {getattr(self, field)} -> {rate}")
        setattr(self, field, rate)

    @external
    def set_fund(self, sender: str, fund: Fund) -> None:
        self._only_operator(sender)
        self._check_not_migrated()
        self.fund = fund
        self._emit("FundChanged", fund=fund.address)

    @external
    def set_fund_allocation_rate(self, sender: str, rate: int) -> None:
        self._set_rate(sender, "fund_allocation_rate", rate)

    @external
    def set_max_inflation_rate(self, sender: str, rate: int) -> None:
        self._set_rate(sender, "max_inflation_rate", rate)

    @external
    def set_debt_add_rate(self, sender: str, rate: int) -> None:
        self._set_rate(sender, "debt_add_rate", rate)

    @external
    def set_max_debt_rate(self, sender: str, rate: int) -> None:
        self._set_rate(sender, "max_debt_rate", rate)

    @external
    def set_bond_reward_rate(self, sender: str, rate: int) -> None:
        self._set_rate(sender, "bond_reward_rate", rate)

    @external
    def set_cash_price_one(self, sender: str, cash_price_one: int) -> None:
        self._only_operator(sender)
        self._check_not_migrated()
        self._apply_cash_price_one(cash_price_one)
        logger.info(f"{self.name}: cash price one set to {cash_price_one}")

    @external
    def set_bond_price_delta(self, sender: str, delta: int) -> None:
        self._only_operator(sender)
        self._check_not_migrated()
        if not 0 <= delta <= UNIT:
            raise InvalidParameterError(f"{self.name}: bond price delta {delta} out of range")
        self.bond_price_delta = delta

    @external
    def set_min_bond_price(self, sender: str, min_bond_price: int) -> None:
        self._only_operator(sender)
        self._check_not_migrated()
        if not 0 < min_bond_price <= UNIT:
            raise InvalidParameterError(f"{self.name}: min bond price {min_bond_price} out of range")
        self.min_bond_price = min_bond_price
        self.bond_price = max(self.bond_price, min_bond_price)

    @external
    def set_period(self, sender: str, period: int) -> None:
        self._check_not_migrated()
        super().set_period(sender, period)

    @external
    def transfer_operator(self, sender: str, new_operator: str) -> None:
        self._check_not_migrated()
        super().transfer_operator(sender, new_operator)

    @external
    def transfer_ownership(self, sender: str, new_owner: str) -> None:
        self._check_not_migrated()
        super().transfer_ownership(sender, new_owner)

    # ══════════════════════════════════════════════════════════════════
    #  SERIALIZATION
    # ══════════════════════════════════════════════════════════════════

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "address": self.address,
            "state": self.state.value,
            "epoch": self.get_current_epoch(),
            "nextEpochPoint": self.next_epoch_point(),
            "cashPriceOne": str(self.cash_price_one),
            "cashPriceCeiling": str(self.cash_price_ceiling),
            "cashPriceFloor": str(self.cash_price_floor),
            "bondPrice": str(self.bond_price),
            "accumulatedSeigniorage": str(self.accumulated_seigniorage),
            "accumulatedDebt": str(self.accumulated_debt),
            "previousTreasury": self.previous_treasury,
        }
