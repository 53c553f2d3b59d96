"""
Seigniorage Protocol Deployment

Bootstraps a complete protocol instance on a ledger:
- Cash, Bond, Share and a peg token (DAI)
- A CASH/DAI pair seeded with liquidity and its TWAP oracle
- The share boardroom, the LP boardroom and the bond reward pool
- The development fund and the Treasury

After wiring, operator and ownership of every asset and distributor move to
the Treasury and the Treasury is initialized, so the returned protocol is
ACTIVE and ready for its first epoch.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

from .chain import Chain
from .config import ProtocolConfig, TreasuryConfig
from .constants import UNIT
from .distribution import Boardroom, RewardPool
from .exchange import Oracle, Pair
from .logger import get_logger
from .tokens import Bond, Cash, Share, Token
from .treasury import Fund, Treasury

logger = get_logger(__name__)

DEPLOYER = "0x" + "de" * 20

DEFAULT_CASH_SUPPLY = 1_000_000 * UNIT
DEFAULT_SHARE_SUPPLY = 100_000 * UNIT
DEFAULT_PEG_SUPPLY = 1_000_000 * UNIT
DEFAULT_LIQUIDITY = 200_000 * UNIT


@dataclass
class Protocol:
    """Handles to every deployed contract."""
    chain: Chain
    config: ProtocolConfig
    deployer: str
    cash: Cash
    bond: Bond
    share: Share
    dai: Token
    pair: Pair
    oracle: Oracle
    boardroom: Boardroom
    lp_boardroom: Boardroom
    bond_reward_pool: RewardPool
    fund: Fund
    treasury: Treasury

    def cash_price(self) -> int:
        """Committed TWAP of one cash, in DAI."""
        return self.oracle.consult(self.cash, UNIT)

    def spot_price(self) -> int:
        return self.pair.spot_price(self.cash).mul(UNIT).decode144()

    def advance_epoch(self) -> int:
        """Move the clock one Treasury period forward."""
        return self.chain.advance_time(self.treasury.period)

    def summary(self) -> Dict[str, Any]:
        return {
            "blockNumber": self.chain.block_number,
            "timestamp": self.chain.timestamp,
            "cashSupply": str(self.cash.total_supply),
            "bondSupply": str(self.bond.total_supply),
            "treasury": self.treasury.to_dict(),
            "oracle": self.oracle.to_dict(),
            "boardroom": self.boardroom.to_dict(),
            "lpBoardroom": self.lp_boardroom.to_dict(),
            "bondRewardPool": self.bond_reward_pool.to_dict(),
        }


def apply_treasury_policy(treasury: Treasury, sender: str, policy: TreasuryConfig) -> None:
    """Push configured policy parameters through the governance setters."""
    treasury.set_max_inflation_rate(sender, policy.max_inflation_rate)
    treasury.set_debt_add_rate(sender, policy.debt_add_rate)
    treasury.set_max_debt_rate(sender, policy.max_debt_rate)
    treasury.set_fund_allocation_rate(sender, policy.fund_allocation_rate)
    treasury.set_bond_reward_rate(sender, policy.bond_reward_rate)
    treasury.set_min_bond_price(sender, policy.min_bond_price)
    treasury.set_bond_price_delta(sender, policy.bond_price_delta)


def hand_over(treasury: Treasury, sender: str) -> None:
    """Give the Treasury operator and owner rights over everything it drives."""
    for contract in (
        treasury.cash, treasury.bond, treasury.share,
        treasury.boardroom, treasury.lp_boardroom,
    ):
        contract.transfer_operator(sender, treasury.address)
        contract.transfer_ownership(sender, treasury.address)

    pool = treasury.bond_reward_pool
    pool.set_reward_distribution(sender, treasury.address)
    pool.transfer_operator(sender, treasury.address)
    pool.transfer_ownership(sender, treasury.address)


def deploy_protocol(
    config: Optional[ProtocolConfig] = None,
    chain: Optional[Chain] = None,
    deployer: str = DEPLOYER,
    cash_supply: int = DEFAULT_CASH_SUPPLY,
    share_supply: int = DEFAULT_SHARE_SUPPLY,
    peg_supply: int = DEFAULT_PEG_SUPPLY,
    liquidity: int = DEFAULT_LIQUIDITY,
) -> Protocol:
    """
    Deploy and wire a full protocol.

    Args:
        config: Protocol configuration (defaults when omitted)
        chain: Existing ledger; a new one is created from `config.chain`
        deployer: Account that receives the initial supplies
        cash_supply: Cash minted to the deployer
        share_supply: Share minted to the deployer
        peg_supply: DAI minted to the deployer
        liquidity: Amount of each of cash and DAI seeded into the pair (1:1)

    Returns:
        Protocol with an initialized Treasury
    """
    config = config or ProtocolConfig()
    config.validate()
    if chain is None:
        chain = Chain(
            timestamp=config.chain.start_timestamp or None,
            block_time=config.chain.block_time,
        )

    cash = Cash(chain, deployer, initial_supply=cash_supply)
    bond = Bond(chain, deployer)
    share = Share(chain, deployer, initial_supply=share_supply)
    dai = Token(chain, deployer, "Dai Stablecoin", "DAI")
    dai.mint(deployer, deployer, peg_supply)

    pair = Pair(chain, deployer, cash, dai)
    cash.approve(deployer, pair.address, liquidity)
    dai.approve(deployer, pair.address, liquidity)
    pair.add_liquidity(deployer, liquidity, liquidity)

    now = chain.timestamp
    oracle = Oracle(chain, deployer, pair, config.oracle.period, now + config.oracle.start_delay)
    start_time = now + config.epoch.start_delay

    rooms = config.boardroom
    boardroom = Boardroom(
        chain, deployer, cash, share, start_time, rooms.epoch_period,
        rooms.withdraw_lockup_epochs, rooms.reward_lockup_epochs, name="ShareBoardroom",
    )
    lp_boardroom = Boardroom(
        chain, deployer, cash, pair, start_time, rooms.epoch_period,
        rooms.withdraw_lockup_epochs, rooms.reward_lockup_epochs, name="LPBoardroom",
    )
    bond_reward_pool = RewardPool(
        chain, deployer, bond, bond, start_time, config.reward_pool.duration,
        name="BondRewardPool",
    )
    fund = Fund(chain, deployer, name="DevFund")

    policy = config.treasury
    treasury = Treasury(
        chain, deployer, cash, bond, share, oracle, boardroom, lp_boardroom,
        bond_reward_pool, fund, start_time, config.epoch.period,
        cash_price_one=policy.cash_price_one,
        ceiling_pct=policy.ceiling_pct,
        floor_pct=policy.floor_pct,
        bond_reward_threshold_pct=policy.bond_reward_threshold_pct,
    )
    apply_treasury_policy(treasury, deployer, policy)
    hand_over(treasury, deployer)
    treasury.initialize(deployer)

    logger.info(
        f"Protocol deployed at block {chain.block_number}: treasury {treasury.address}, "
        f"epoch period {treasury.period}s starting {start_time}"
    )
    return Protocol(
        chain=chain,
        config=config,
        deployer=deployer,
        cash=cash,
        bond=bond,
        share=share,
        dai=dai,
        pair=pair,
        oracle=oracle,
        boardroom=boardroom,
        lp_boardroom=lp_boardroom,
        bond_reward_pool=bond_reward_pool,
        fund=fund,
        treasury=treasury,
    )
