"""
Fungible token: ERC-20 style ledger used for every protocol asset.

Implements:
  - transfer / approve / transfer_from / balance_of / total_supply
  - operator-only mint and burn_from (the Treasury and distributors)
  - holder burn
  - Cash / Bond / Share constructors for the three protocol assets

Amounts are integers in the smallest unit (10**decimals per token).
"""

from typing import Any, Dict, Tuple

from ..chain import Chain
from ..constants import DECIMALS, UNIT, ZERO_ADDRESS
from ..contracts.base import Operator, external
from ..exceptions import (
    InsufficientAllowanceError,
    InsufficientBalanceError,
    InvalidAddressError,
    InvalidParameterError,
)
from ..logger import get_logger

logger = get_logger(__name__)


class Token(Operator):
    """
    Fungible token with an operator that may mint and burn.

    Mirrors ERC-20 semantics:
        - balance_of(address) -> int
        - transfer(sender, recipient, amount)
        - approve(owner, spender, amount)
        - transfer_from(spender, owner, recipient, amount)
        - total_supply -> int
    """

    def __init__(
        self,
        chain: Chain,
        deployer: str,
        name: str,
        symbol: str,
        decimals: int = DECIMALS,
    ):
        if not name:
            raise InvalidParameterError("Token name cannot be empty")
        if not symbol:
            raise InvalidParameterError("Token symbol cannot be empty")
        if decimals < 0 or decimals > 18:
            raise InvalidParameterError(f"Decimals must be 0-18, got {decimals}")

        super().__init__(chain, deployer, name)
        self.symbol = symbol
        self.decimals = decimals
        self._total_supply = 0
        self._balances: Dict[str, int] = {}
        self._allowances: Dict[Tuple[str, str], int] = {}  # (owner, spender)

    # ── Read-only views ───────────────────────────────────────────────

    @property
    def total_supply(self) -> int:
        return self._total_supply

    def balance_of(self, address: str) -> int:
        return self._balances.get(address, 0)

    def allowance(self, owner: str, spender: str) -> int:
        return self._allowances.get((owner, spender), 0)

    # ── Internal bookkeeping ──────────────────────────────────────────

    def _transfer(self, sender: str, recipient: str, amount: int) -> None:
        if amount < 0:
            raise InvalidParameterError("Transfer amount cannot be negative")
        if not recipient or recipient == ZERO_ADDRESS:
            raise InvalidAddressError(f"{self.symbol}: transfer to the zero address")
        bal = self.balance_of(sender)
        if bal < amount:
            raise InsufficientBalanceError(
                f"{self.symbol}: {sender} balance {bal} < transfer amount {amount}"
            )
        self._balances[sender] = bal - amount
        self._balances[recipient] = self.balance_of(recipient) + amount
        self._emit("Transfer", sender=sender, recipient=recipient, amount=amount)

    def _mint(self, recipient: str, amount: int) -> None:
        if not recipient or recipient == ZERO_ADDRESS:
            raise InvalidAddressError(f"{self.symbol}: mint to the zero address")
        if amount < 0:
            raise InvalidParameterError("Mint amount cannot be negative")
        self._total_supply += amount
        self._balances[recipient] = self.balance_of(recipient) + amount
        self._emit("Transfer", sender=ZERO_ADDRESS, recipient=recipient, amount=amount)

    def _burn(self, holder: str, amount: int) -> None:
        if amount < 0:
            raise InvalidParameterError("Burn amount cannot be negative")
        bal = self.balance_of(holder)
        if bal < amount:
            raise InsufficientBalanceError(
                f"{self.symbol}: {holder} balance {bal} < burn amount {amount}"
            )
        self._balances[holder] = bal - amount
        self._total_supply -= amount
        self._emit("Transfer", sender=holder, recipient=ZERO_ADDRESS, amount=amount)

    def _spend_allowance(self, owner: str, spender: str, amount: int) -> None:
        allow = self.allowance(owner, spender)
        if allow < amount:
            raise InsufficientAllowanceError(
                f"{self.symbol}: allowance {allow} < amount {amount}"
            )
        self._allowances[(owner, spender)] = allow - amount

    # ── Core ERC-20 operations ────────────────────────────────────────

    @external
    def transfer(self, sender: str, recipient: str, amount: int) -> bool:
        self._transfer(sender, recipient, amount)
        return True

    @external
    def approve(self, sender: str, spender: str, amount: int) -> bool:
        if amount < 0:
            raise InvalidParameterError("Allowance amount cannot be negative")
        self._allowances[(sender, spender)] = amount
        self._emit("Approval", owner=sender, spender=spender, amount=amount)
        return True

    @external
    def transfer_from(self, sender: str, owner: str, recipient: str, amount: int) -> bool:
        """Move `amount` from `owner` to `recipient` using sender's allowance."""
        self._spend_allowance(owner, sender, amount)
        self._transfer(owner, recipient, amount)
        return True

    # ── Supply operations ─────────────────────────────────────────────

    @external
    def mint(self, sender: str, recipient: str, amount: int) -> bool:
        self._only_operator(sender)
        self._mint(recipient, amount)
        logger.debug(f"Mint: {amount} {self.symbol} -> {recipient}")
        return True

    @external
    def burn(self, sender: str, amount: int) -> None:
        self._burn(sender, amount)

    @external
    def burn_from(self, sender: str, holder: str, amount: int) -> None:
        """Operator burns `amount` of holder's tokens against holder's allowance."""
        self._only_operator(sender)
        self._spend_allowance(holder, sender, amount)
        self._burn(holder, amount)
        logger.debug(f"Burn: {amount} {self.symbol} from {holder}")

    # ── Serialization ─────────────────────────────────────────────────

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "symbol": self.symbol,
            "decimals": self.decimals,
            "address": self.address,
            "totalSupply": str(self._total_supply),
            "owner": self.owner,
            "operator": self.operator,
            "holders": len([b for b in self._balances.values() if b > 0]),
        }

    def __repr__(self) -> str:
        return f"<Token {self.symbol} supply={self._total_supply}>"


# ══════════════════════════════════════════════════════════════════════
#  PROTOCOL ASSETS
# ══════════════════════════════════════════════════════════════════════

class Cash(Token):
    """Elastic-supply pegged asset. Seeds `initial_supply` to the deployer."""

    def __init__(self, chain: Chain, deployer: str, initial_supply: int = UNIT):
        super().__init__(chain, deployer, "Cash", "CASH")
        if initial_supply:
            self._mint(deployer, initial_supply)


class Bond(Token):
    """Discount instrument, minted only against accumulated debt."""

    def __init__(self, chain: Chain, deployer: str):
        super().__init__(chain, deployer, "Bond", "BOND")


class Share(Token):
    """Asset entitled to seigniorage during expansions."""

    def __init__(self, chain: Chain, deployer: str, initial_supply: int = UNIT):
        super().__init__(chain, deployer, "Share", "SHARE")
        if initial_supply:
            self._mint(deployer, initial_supply)
