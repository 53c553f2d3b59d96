"""
Constant-product pair (x * y = k) with cumulative price accumulators.

The pair is the price source for the TWAP oracle:
  - Reserves are updated on every liquidity change, swap and sync
  - On each update the *previous* reserve ratio is integrated over the time
    elapsed since the last update into price0/price1 cumulative accumulators
  - Timestamps are kept modulo 2**32 and accumulators modulo 2**256; only
    differences of two readings are meaningful, so wraparound is harmless

The pair is itself a Token: its supply is the LP share ledger.
"""

from __future__ import annotations

import math
from typing import Dict, Any, Tuple

from ..chain import Chain
from ..constants import (
    MINIMUM_LIQUIDITY,
    SWAP_FEE_DENOMINATOR,
    SWAP_FEE_NUMERATOR,
    UINT32_MODULUS,
    UINT256_MODULUS,
)
from ..contracts.base import external
from ..exceptions import (
    InsufficientBalanceError,
    InvalidParameterError,
    InvalidTokenError,
    SlippageError,
    ZeroAmountError,
)
from ..logger import get_logger
from ..tokens.token import Token
from .fixedpoint import UINT112_MAX, UQ112x112

logger = get_logger(__name__)


class Pair(Token):
    """
    Two-token liquidity pool.

    token0 / token1 ordering follows construction order; price0 is the price
    of token0 denominated in token1.
    """

    def __init__(self, chain: Chain, deployer: str, token0: Token, token1: Token):
        if token0 is token1:
            raise InvalidParameterError("Pair: IDENTICAL_ADDRESSES")
        super().__init__(
            chain, deployer,
            f"{token0.symbol}-{token1.symbol} LP",
            f"{token0.symbol}-{token1.symbol}",
        )
        self.token0 = token0
        self.token1 = token1
        self.reserve0 = 0
        self.reserve1 = 0
        self.block_timestamp_last = 0
        self.price0_cumulative_last = 0
        self.price1_cumulative_last = 0

    # -- Views --------------------------------------------------------------

    def get_reserves(self) -> Tuple[int, int, int]:
        return self.reserve0, self.reserve1, self.block_timestamp_last

    def spot_price(self, token: Token) -> UQ112x112:
        """Instantaneous price of `token` in the other token."""
        if token is self.token0:
            return UQ112x112.fraction(self.reserve1, self.reserve0)
        if token is self.token1:
            return UQ112x112.fraction(self.reserve0, self.reserve1)
        raise InvalidTokenError(f"Pair: {token.symbol} is not in {self.symbol}")

    def get_amount_out(self, amount_in: int, reserve_in: int, reserve_out: int) -> int:
        if amount_in <= 0:
            raise ZeroAmountError("Pair: INSUFFICIENT_INPUT_AMOUNT")
        if reserve_in <= 0 or reserve_out <= 0:
            raise InsufficientBalanceError("Pair: INSUFFICIENT_LIQUIDITY")
        amount_in_with_fee = amount_in * SWAP_FEE_NUMERATOR
        numerator = amount_in_with_fee * reserve_out
        denominator = reserve_in * SWAP_FEE_DENOMINATOR + amount_in_with_fee
        return numerator // denominator

    # -- Accumulator --------------------------------------------------------

    def _update(self, balance0: int, balance1: int) -> None:
        if balance0 > UINT112_MAX or balance1 > UINT112_MAX:
            raise InvalidParameterError("Pair: OVERFLOW")
        block_timestamp = self.now % UINT32_MODULUS
        time_elapsed = (block_timestamp - self.block_timestamp_last) % UINT32_MODULUS
        if time_elapsed > 0 and self.reserve0 != 0 and self.reserve1 != 0:
            self.price0_cumulative_last = (
                self.price0_cumulative_last
                + UQ112x112.fraction(self.reserve1, self.reserve0).value * time_elapsed
            ) % UINT256_MODULUS
            self.price1_cumulative_last = (
                self.price1_cumulative_last
                + UQ112x112.fraction(self.reserve0, self.reserve1).value * time_elapsed
            ) % UINT256_MODULUS
        self.reserve0 = balance0
        self.reserve1 = balance1
        self.block_timestamp_last = block_timestamp
        self._emit("Sync", reserve0=balance0, reserve1=balance1)

    def _pool_balances(self) -> Tuple[int, int]:
        return self.token0.balance_of(self.address), self.token1.balance_of(self.address)

    # -- Liquidity ----------------------------------------------------------

    @external
    def add_liquidity(self, sender: str, amount0: int, amount1: int) -> int:
        """
        Deposit both tokens (pulled with transfer_from) and mint LP shares.

        Returns:
            LP shares minted to sender
        """
        if amount0 <= 0 or amount1 <= 0:
            raise ZeroAmountError("Pair: INSUFFICIENT_LIQUIDITY_MINTED")
        self.token0.transfer_from(self.address, sender, self.address, amount0)
        self.token1.transfer_from(self.address, sender, self.address, amount1)

        if self.total_supply == 0:
            liquidity = math.isqrt(amount0 * amount1) - MINIMUM_LIQUIDITY
            # first MINIMUM_LIQUIDITY shares are locked in the pair forever
            self._mint(self.address, MINIMUM_LIQUIDITY)
        else:
            liquidity = min(
                amount0 * self.total_supply // self.reserve0,
                amount1 * self.total_supply // self.reserve1,
            )
        if liquidity <= 0:
            raise ZeroAmountError("Pair: INSUFFICIENT_LIQUIDITY_MINTED")

        self._mint(sender, liquidity)
        self._update(*self._pool_balances())
        self._emit("Mint", sender=sender, amount0=amount0, amount1=amount1)
        return liquidity

    @external
    def remove_liquidity(self, sender: str, liquidity: int) -> Tuple[int, int]:
        """Burn LP shares and return the pro-rata reserves."""
        if liquidity <= 0:
            raise ZeroAmountError("Pair: INSUFFICIENT_LIQUIDITY_BURNED")
        balance0, balance1 = self._pool_balances()
        supply = self.total_supply
        amount0 = liquidity * balance0 // supply
        amount1 = liquidity * balance1 // supply
        if amount0 == 0 or amount1 == 0:
            raise ZeroAmountError("Pair: INSUFFICIENT_LIQUIDITY_BURNED")

        self._burn(sender, liquidity)
        self.token0.transfer(self.address, sender, amount0)
        self.token1.transfer(self.address, sender, amount1)
        self._update(*self._pool_balances())
        self._emit("Burn", sender=sender, amount0=amount0, amount1=amount1)
        return amount0, amount1

    # -- Trading ------------------------------------------------------------

    @external
    def swap(self, sender: str, token_in: Token, amount_in: int, min_amount_out: int = 0) -> int:
        """
        Swap an exact input amount of `token_in` for the other token.

        Returns:
            Output amount sent to sender
        """
        if token_in is self.token0:
            token_out, reserve_in, reserve_out = self.token1, self.reserve0, self.reserve1
        elif token_in is self.token1:
            token_out, reserve_in, reserve_out = self.token0, self.reserve1, self.reserve0
        else:
            raise InvalidTokenError(f"Pair: {token_in.symbol} is not in {self.symbol}")

        amount_out = self.get_amount_out(amount_in, reserve_in, reserve_out)
        if amount_out < min_amount_out:
            raise SlippageError(
                f"Pair: output {amount_out} below minimum {min_amount_out}"
            )
        if amount_out <= 0:
            raise ZeroAmountError("Pair: INSUFFICIENT_OUTPUT_AMOUNT")

        token_in.transfer_from(self.address, sender, self.address, amount_in)
        token_out.transfer(self.address, sender, amount_out)
        self._update(*self._pool_balances())
        self._emit(
            "Swap", sender=sender, token_in=token_in.symbol,
            amount_in=amount_in, amount_out=amount_out,
        )
        logger.debug(f"Swap: {amount_in} {token_in.symbol} -> {amount_out} {token_out.symbol}")
        return amount_out

    @external
    def sync(self, sender: str) -> None:
        """Force reserves to match balances."""
        self._update(*self._pool_balances())

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update({
            "token0": self.token0.symbol,
            "token1": self.token1.symbol,
            "reserve0": str(self.reserve0),
            "reserve1": str(self.reserve1),
            "blockTimestampLast": self.block_timestamp_last,
        })
        return data


def current_cumulative_prices(pair: Pair, now: int) -> Tuple[int, int, int]:
    """
    Counterfactual read of the pair's cumulative prices at `now`.

    Extends the last stored accumulators by the current reserve ratio times
    the time elapsed since the pair's last update, without touching the pair.

    Returns:
        (price0_cumulative, price1_cumulative, block_timestamp mod 2**32)
    """
    block_timestamp = now % UINT32_MODULUS
    price0_cumulative = pair.price0_cumulative_last
    price1_cumulative = pair.price1_cumulative_last

    reserve0, reserve1, block_timestamp_last = pair.get_reserves()
    if block_timestamp_last != block_timestamp and reserve0 and reserve1:
        time_elapsed = (block_timestamp - block_timestamp_last) % UINT32_MODULUS
        price0_cumulative = (
            price0_cumulative + UQ112x112.fraction(reserve1, reserve0).value * time_elapsed
        ) % UINT256_MODULUS
        price1_cumulative = (
            price1_cumulative + UQ112x112.fraction(reserve0, reserve1).value * time_elapsed
        ) % UINT256_MODULUS
    return price0_cumulative, price1_cumulative, block_timestamp
