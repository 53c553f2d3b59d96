"""
Protocol asset test suite.

Coverage:
  - Token validation
  - transfer / approve / transfer_from
  - operator mint and burn_from, holder burn
  - Cash / Bond / Share constructors
"""

import os
import sys

import pytest

# ── Path setup ────────────────────────────────────────────────────────
ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from seigniorage.chain import Chain
from seigniorage.constants import UNIT, ZERO_ADDRESS
from seigniorage.exceptions import (
    InsufficientAllowanceError,
    InsufficientBalanceError,
    InvalidAddressError,
    InvalidParameterError,
    NotOperatorError,
)
from seigniorage.tokens import Bond, Cash, Share, Token


# ══════════════════════════════════════════════════════════════════════
#  HELPERS
# ══════════════════════════════════════════════════════════════════════

DEPLOYER = "0x" + "d0" * 20
ALICE = "0x" + "a1" * 20
BOB = "0x" + "b2" * 20
TREASURY = "0x" + "7e" * 20


@pytest.fixture
def chain():
    return Chain(timestamp=1_700_000_000)


@pytest.fixture
def cash(chain):
    return Cash(chain, DEPLOYER, initial_supply=1000 * UNIT)


# ══════════════════════════════════════════════════════════════════════
#  CONSTRUCTION
# ══════════════════════════════════════════════════════════════════════


class TestTokenCreation:

    def test_protocol_assets(self, chain):
        cash = Cash(chain, DEPLOYER)
        bond = Bond(chain, DEPLOYER)
        share = Share(chain, DEPLOYER, initial_supply=5 * UNIT)
        assert (cash.symbol, bond.symbol, share.symbol) == ("CASH", "BOND", "SHARE")
        assert cash.total_supply == UNIT
        assert bond.total_supply == 0
        assert share.balance_of(DEPLOYER) == 5 * UNIT

    def test_zero_initial_supply(self, chain):
        assert Cash(chain, DEPLOYER, initial_supply=0).total_supply == 0

    def test_empty_name(self, chain):
        with pytest.raises(InvalidParameterError, match="name"):
            Token(chain, DEPLOYER, "", "X")

    def test_empty_symbol(self, chain):
        with pytest.raises(InvalidParameterError, match="symbol"):
            Token(chain, DEPLOYER, "Token", "")

    def test_bad_decimals(self, chain):
        with pytest.raises(InvalidParameterError, match="Decimals"):
            Token(chain, DEPLOYER, "Token", "TKN", decimals=19)

    def test_to_dict(self, cash):
        d = cash.to_dict()
        assert d["symbol"] == "CASH"
        assert d["totalSupply"] == str(1000 * UNIT)
        assert d["holders"] == 1


# ══════════════════════════════════════════════════════════════════════
#  TRANSFERS
# ══════════════════════════════════════════════════════════════════════


class TestTransfers:

    def test_transfer(self, cash):
        assert cash.transfer(DEPLOYER, ALICE, 10 * UNIT)
        assert cash.balance_of(ALICE) == 10 * UNIT
        assert cash.balance_of(DEPLOYER) == 990 * UNIT
        event = cash.events_named("Transfer")[-1]
        assert event.args == {"sender": DEPLOYER, "recipient": ALICE, "amount": 10 * UNIT}

    def test_transfer_insufficient(self, cash):
        with pytest.raises(InsufficientBalanceError, match="CASH"):
            cash.transfer(ALICE, BOB, 1)

    def test_transfer_to_zero_address(self, cash):
        with pytest.raises(InvalidAddressError):
            cash.transfer(DEPLOYER, ZERO_ADDRESS, 1)

    def test_negative_transfer(self, cash):
        with pytest.raises(InvalidParameterError):
            cash.transfer(DEPLOYER, ALICE, -1)

    def test_approve_and_transfer_from(self, cash):
        cash.approve(DEPLOYER, ALICE, 50 * UNIT)
        cash.transfer_from(ALICE, DEPLOYER, BOB, 20 * UNIT)
        assert cash.balance_of(BOB) == 20 * UNIT
        assert cash.allowance(DEPLOYER, ALICE) == 30 * UNIT

    def test_transfer_from_over_allowance(self, cash):
        cash.approve(DEPLOYER, ALICE, UNIT)
        with pytest.raises(InsufficientAllowanceError):
            cash.transfer_from(ALICE, DEPLOYER, BOB, 2 * UNIT)
        assert cash.allowance(DEPLOYER, ALICE) == UNIT

    def test_transfer_from_over_balance_keeps_allowance(self, cash):
        cash.transfer(DEPLOYER, ALICE, UNIT)
        cash.approve(ALICE, BOB, 10 * UNIT)
        with pytest.raises(InsufficientBalanceError):
            cash.transfer_from(BOB, ALICE, BOB, 2 * UNIT)
        assert cash.allowance(ALICE, BOB) == 10 * UNIT

    def test_negative_approve(self, cash):
        with pytest.raises(InvalidParameterError):
            cash.approve(DEPLOYER, ALICE, -1)


# ══════════════════════════════════════════════════════════════════════
#  SUPPLY
# ══════════════════════════════════════════════════════════════════════


class TestSupply:

    def test_operator_mint(self, chain):
        bond = Bond(chain, DEPLOYER)
        bond.mint(DEPLOYER, ALICE, 7 * UNIT)
        assert bond.total_supply == 7 * UNIT
        assert bond.balance_of(ALICE) == 7 * UNIT

    def test_mint_requires_operator(self, cash):
        with pytest.raises(NotOperatorError):
            cash.mint(ALICE, ALICE, UNIT)

    def test_mint_after_operator_transfer(self, cash):
        cash.transfer_operator(DEPLOYER, TREASURY)
        cash.mint(TREASURY, ALICE, UNIT)
        with pytest.raises(NotOperatorError):
            cash.mint(DEPLOYER, ALICE, UNIT)

    def test_holder_burn(self, cash):
        cash.burn(DEPLOYER, 100 * UNIT)
        assert cash.total_supply == 900 * UNIT

    def test_burn_more_than_balance(self, cash):
        with pytest.raises(InsufficientBalanceError):
            cash.burn(ALICE, 1)

    def test_burn_from_needs_allowance(self, cash):
        cash.transfer_operator(DEPLOYER, TREASURY)
        cash.transfer(DEPLOYER, ALICE, 10 * UNIT)
        with pytest.raises(InsufficientAllowanceError):
            cash.burn_from(TREASURY, ALICE, UNIT)
        cash.approve(ALICE, TREASURY, UNIT)
        cash.burn_from(TREASURY, ALICE, UNIT)
        assert cash.balance_of(ALICE) == 9 * UNIT
        assert cash.total_supply == 999 * UNIT

    def test_burn_from_requires_operator(self, cash):
        cash.approve(DEPLOYER, ALICE, UNIT)
        with pytest.raises(NotOperatorError):
            cash.burn_from(ALICE, DEPLOYER, UNIT)
