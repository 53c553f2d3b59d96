"""
Checked arithmetic and fixed-point test suite.

Coverage:
  - safemath: sub / div / mul_div / percent_of, to_wei / from_wei
  - UQ112x112: encode, fraction, mul, decode and range failures
  - UQ144x112: decode144
"""

import os
import sys
from decimal import Decimal

import pytest

# ── Path setup ────────────────────────────────────────────────────────
ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from seigniorage.constants import UNIT
from seigniorage.exceptions import (
    DivisionByZeroError,
    FixedPointOverflowError,
    MathError,
    SubtractionUnderflowError,
)
from seigniorage.exchange.fixedpoint import (
    Q112,
    UINT112_MAX,
    UINT224_MAX,
    UQ112x112,
    UQ144x112,
)
from seigniorage.safemath import div, from_wei, mul_div, percent_of, sub, to_wei


# ══════════════════════════════════════════════════════════════════════
#  SAFEMATH
# ══════════════════════════════════════════════════════════════════════


class TestSub:

    def test_sub(self):
        assert sub(10, 3) == 7

    def test_sub_to_zero(self):
        assert sub(5, 5) == 0

    def test_underflow_raises(self):
        with pytest.raises(SubtractionUnderflowError, match="3 - 4"):
            sub(3, 4)

    def test_underflow_custom_message(self):
        with pytest.raises(SubtractionUnderflowError, match="reserve exceeds supply"):
            sub(0, 1, "reserve exceeds supply")

    def test_underflow_is_math_error(self):
        with pytest.raises(MathError):
            sub(0, 1)


class TestDiv:

    def test_floor_division(self):
        assert div(7, 2) == 3

    def test_division_by_zero(self):
        with pytest.raises(DivisionByZeroError):
            div(1, 0)

    def test_mul_div_keeps_precision(self):
        # (a * b) // c, not (a // c) * b
        assert mul_div(3, UNIT, 2) == 3 * UNIT // 2
        assert mul_div(1, 3, 2) == 1

    def test_mul_div_by_zero(self):
        with pytest.raises(DivisionByZeroError, match="no price"):
            mul_div(1, 1, 0, "no price")

    def test_percent_of(self):
        assert percent_of(1000, 2) == 20
        assert percent_of(99, 10) == 9
        assert percent_of(1000, 0) == 0


class TestWeiConversion:

    def test_to_wei_string(self):
        assert to_wei("1.05") == 105 * UNIT // 100

    def test_to_wei_int(self):
        assert to_wei(2) == 2 * UNIT

    def test_to_wei_float_is_exact(self):
        assert to_wei(0.95) == 95 * UNIT // 100

    def test_to_wei_truncates_below_unit(self):
        assert to_wei("0.0000000000000000019") == 1

    def test_to_wei_negative_raises(self):
        with pytest.raises(SubtractionUnderflowError):
            to_wei("-1")

    def test_from_wei(self):
        assert from_wei(15 * UNIT // 10) == Decimal("1.500000")

    def test_from_wei_places(self):
        assert from_wei(UNIT // 3, 2) == Decimal("0.33")


# ══════════════════════════════════════════════════════════════════════
#  FIXED POINT
# ══════════════════════════════════════════════════════════════════════


class TestUQ112x112:

    def test_encode_decode(self):
        assert UQ112x112.encode(42).decode() == 42

    def test_encode_out_of_range(self):
        with pytest.raises(FixedPointOverflowError):
            UQ112x112.encode(UINT112_MAX + 1)

    def test_value_out_of_range(self):
        with pytest.raises(FixedPointOverflowError):
            UQ112x112(UINT224_MAX + 1)

    def test_negative_value(self):
        with pytest.raises(FixedPointOverflowError):
            UQ112x112(-1)

    def test_fraction_exact(self):
        assert UQ112x112.fraction(3, 2).value == 3 * Q112 // 2

    def test_fraction_by_zero(self):
        with pytest.raises(DivisionByZeroError, match="DIV_BY_ZERO"):
            UQ112x112.fraction(1, 0)

    def test_fraction_operand_too_wide(self):
        with pytest.raises(FixedPointOverflowError):
            UQ112x112.fraction(UINT112_MAX + 1, 1)

    def test_mul_decode144(self):
        half = UQ112x112.fraction(1, 2)
        assert half.mul(10 * UNIT).decode144() == 5 * UNIT

    def test_mul_truncates_low_bits(self):
        third = UQ112x112.fraction(1, 3)
        assert third.mul(UNIT).decode144() == UNIT // 3

    def test_mul_overflow_raises(self):
        big = UQ112x112(UINT224_MAX)
        with pytest.raises(FixedPointOverflowError, match="MULTIPLICATION_OVERFLOW"):
            big.mul(1 << 40)

    def test_mul_negative_raises(self):
        with pytest.raises(FixedPointOverflowError):
            UQ112x112.encode(1).mul(-1)

    def test_price_of_one(self):
        one = UQ112x112.fraction(1000 * UNIT, 1000 * UNIT)
        assert one.mul(UNIT).decode144() == UNIT


class TestUQ144x112:

    def test_decode144(self):
        assert UQ144x112(7 << 112).decode144() == 7

    def test_decode144_overflow(self):
        with pytest.raises(FixedPointOverflowError, match="144 bits"):
            UQ144x112(1 << 256).decode144()
