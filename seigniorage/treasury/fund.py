"""
Development fund: the sink for the fund share of seigniorage.
"""

from dataclasses import dataclass
from typing import Any, Dict, List

from ..chain import Chain
from ..contracts.base import Operator, external
from ..exceptions import ZeroAmountError
from ..logger import get_logger
from ..tokens.token import Token

logger = get_logger(__name__)


@dataclass(frozen=True)
class FundDeposit:
    token: str
    depositor: str
    amount: int
    reason: str
    block_number: int


class Fund(Operator):
    """Holds deposited tokens; only the operator withdraws."""

    _append_only = Operator._append_only + ("_deposits",)

    def __init__(self, chain: Chain, deployer: str, name: str = "Fund"):
        super().__init__(chain, deployer, name)
        self._deposits: List[FundDeposit] = []

    @property
    def deposits(self) -> List[FundDeposit]:
        return list(self._deposits)

    def balance(self, token: Token) -> int:
        return token.balance_of(self.address)

    @external
    def deposit(self, sender: str, token: Token, amount: int, reason: str) -> None:
        """Pull `amount` of `token` from sender (requires prior approval)."""
        if amount <= 0:
            raise ZeroAmountError(f"{self.name}: cannot deposit zero")
        token.transfer_from(self.address, sender, self.address, amount)
        self._deposits.append(
            FundDeposit(
                token=token.symbol,
                depositor=sender,
                amount=amount,
                reason=reason,
                block_number=self.chain.block_number,
            )
        )
        self._emit("Deposit", token=token.symbol, depositor=sender, amount=amount, reason=reason)
        logger.debug(f"{self.name}: {amount} {token.symbol} deposited by {sender} ({reason})")

    @external
    def withdraw(self, sender: str, token: Token, amount: int, to: str, reason: str) -> None:
        self._only_operator(sender)
        if amount <= 0:
            raise ZeroAmountError(f"{self.name}: cannot withdraw zero")
        token.transfer(self.address, to, amount)
        self._emit("Withdrawal", token=token.symbol, to=to, amount=amount, reason=reason)
        logger.info(f"{self.name}: {amount} {token.symbol} withdrawn to {to} ({reason})")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "operator": self.operator,
            "deposits": len(self._deposits),
        }
