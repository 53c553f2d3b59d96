"""
Seigniorage TWAP Oracle

Epoch-gated time-weighted average price oracle over a constant-product pair:
  - Arithmetic-mean TWAP:  (cumulative_now - cumulative_then) / elapsed
  - Committed at most once per epoch via `update()`
  - Counterfactual cumulative read; the pair is never mutated
  - 112.112 fixed-point averages; `consult` truncates to 144 bits

Security features:
  - Averages move only once per epoch, so a single-block price spike is
    diluted across the whole window
  - Zero-elapsed updates are silent no-ops (no divide-by-zero)
  - Oversized results raise instead of wrapping
"""

from __future__ import annotations

from typing import Any, Dict

from ..chain import Chain
from ..constants import UINT32_MODULUS, UINT256_MODULUS
from ..contracts.base import external
from ..contracts.epoch import Epoch
from ..exceptions import InvalidTokenError, NoReservesError
from ..logger import get_logger
from ..tokens.token import Token
from .fixedpoint import UQ112x112
from .pair import Pair, current_cumulative_prices

logger = get_logger(__name__)


class Oracle(Epoch):
    """
    Fixed-window TWAP oracle for one pair.

    `consult` returns zero until the first successful `update`.
    """

    def __init__(
        self,
        chain: Chain,
        deployer: str,
        pair: Pair,
        period: int,
        start_time: int,
    ):
        super().__init__(chain, deployer, period, start_time, 0, name="Oracle")
        self.pair = pair
        self.token0 = pair.token0
        self.token1 = pair.token1
        self.price0_cumulative_last = pair.price0_cumulative_last
        self.price1_cumulative_last = pair.price1_cumulative_last

        reserve0, reserve1, block_timestamp_last = pair.get_reserves()
        if reserve0 == 0 or reserve1 == 0:
            raise NoReservesError("Oracle: NO_RESERVES")
        self.block_timestamp_last = block_timestamp_last

        self.price0_average = UQ112x112(0)
        self.price1_average = UQ112x112(0)

    # -- Update -------------------------------------------------------------

    @external
    def update(self, sender: str) -> bool:
        """
        Commit new averages for the epoch.

        Returns:
            True if averages were committed, False when no time has elapsed
            since the last commit (the epoch is still consumed).
        """
        with self._check_epoch() as epoch:
            price0_cumulative, price1_cumulative, block_timestamp = (
                current_cumulative_prices(self.pair, self.now)
            )
            time_elapsed = (block_timestamp - self.block_timestamp_last) % UINT32_MODULUS
            if time_elapsed == 0:
                return False

            self.price0_average = UQ112x112(
                ((price0_cumulative - self.price0_cumulative_last) % UINT256_MODULUS)
                // time_elapsed
            )
            self.price1_average = UQ112x112(
                ((price1_cumulative - self.price1_cumulative_last) % UINT256_MODULUS)
                // time_elapsed
            )
            self.price0_cumulative_last = price0_cumulative
            self.price1_cumulative_last = price1_cumulative
            self.block_timestamp_last = block_timestamp

            self._emit(
                "Updated",
                price0_cumulative=price0_cumulative,
                price1_cumulative=price1_cumulative,
            )
            logger.debug(
                f"Oracle epoch {epoch}: committed TWAP over {time_elapsed}s "
                f"({self.token0.symbol}={self.price0_average.mul(10 ** 18).decode144()})"
            )
            return True

    # -- Reads --------------------------------------------------------------

    def consult(self, token: Token, amount_in: int) -> int:
        """Value of `amount_in` of `token` at the committed average."""
        if token is self.token0:
            return self.price0_average.mul(amount_in).decode144()
        if token is self.token1:
            return self.price1_average.mul(amount_in).decode144()
        raise InvalidTokenError("Oracle: INVALID_TOKEN")

    def twap(self, token: Token, amount_in: int) -> int:
        """
        Live average since the last commit, read without mutating state.

        Falls back to the committed average when no time has elapsed.
        """
        price0_cumulative, price1_cumulative, block_timestamp = (
            current_cumulative_prices(self.pair, self.now)
        )
        time_elapsed = (block_timestamp - self.block_timestamp_last) % UINT32_MODULUS
        if time_elapsed == 0:
            return self.consult(token, amount_in)

        if token is self.token0:
            average = (price0_cumulative - self.price0_cumulative_last) % UINT256_MODULUS
        elif token is self.token1:
            average = (price1_cumulative - self.price1_cumulative_last) % UINT256_MODULUS
        else:
            raise InvalidTokenError("Oracle: INVALID_TOKEN")
        return UQ112x112(average // time_elapsed).mul(amount_in).decode144()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "pair": self.pair.symbol,
            "period": self.period,
            "startTime": self.start_time,
            "lastEpoch": self.get_last_epoch(),
            "blockTimestampLast": self.block_timestamp_last,
            "price0Average": str(self.price0_average.value),
            "price1Average": str(self.price1_average.value),
        }
