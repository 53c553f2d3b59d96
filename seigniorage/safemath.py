"""
Checked unsigned integer arithmetic.

All protocol amounts are non-negative integers in the smallest unit
(`UNIT` = 10**18 per whole token, prices scaled the same way). Python ints
never overflow, so the failure modes that matter are underflow below zero
and division by zero. Both raise instead of wrapping or truncating.
"""

from decimal import Decimal, ROUND_DOWN, localcontext
from typing import Union

from .constants import UNIT
from .exceptions import DivisionByZeroError, SubtractionUnderflowError


def sub(a: int, b: int, message: str = "subtraction underflow") -> int:
    if b > a:
        raise SubtractionUnderflowError(f"{message}: {a} - {b}")
    return a - b


def div(a: int, b: int, message: str = "division by zero") -> int:
    """Floor division of non-negative integers."""
    if b == 0:
        raise DivisionByZeroError(message)
    return a // b


def mul_div(a: int, b: int, c: int, message: str = "division by zero") -> int:
    """`a * b // c` without intermediate truncation."""
    return div(a * b, c, message)


def percent_of(amount: int, rate: int) -> int:
    """`rate` percent of `amount`, rounded down."""
    return amount * rate // 100


def to_wei(value: Union[str, int, float, Decimal]) -> int:
    """
    Convert a human value ("1.05", 2, Decimal("0.5")) to a UNIT-scaled int.

    Floats go through their string form so 1.05 becomes exactly 1.05 * UNIT.
    """
    if isinstance(value, float):
        value = repr(value)
    with localcontext() as ctx:
        ctx.prec = 78
        scaled = Decimal(value) * UNIT
    if scaled < 0:
        raise SubtractionUnderflowError(f"negative amount: {value}")
    return int(scaled.to_integral_value(rounding=ROUND_DOWN))


def from_wei(amount: int, places: int = 6) -> Decimal:
    """UNIT-scaled int to a Decimal quantized to `places` digits (display only)."""
    with localcontext() as ctx:
        ctx.prec = 78
        return (Decimal(amount) / UNIT).quantize(Decimal(1).scaleb(-places), rounding=ROUND_DOWN)
