"""
Binary fixed-point numbers for price averages.

  - UQ112x112 : 224-bit value, 112 integer bits / 112 fractional bits
  - UQ144x112 : product of a UQ112x112 and an integer, decoded to 144 bits

Values are stored as plain Python ints with explicit range checks on every
construction and product. Leaving the range raises instead of wrapping.
Truncation of the low fractional bits is expected.
"""

from __future__ import annotations

from dataclasses import dataclass

from ..exceptions import DivisionByZeroError, FixedPointOverflowError

RESOLUTION = 112
Q112 = 1 << RESOLUTION
UINT112_MAX = (1 << 112) - 1
UINT144_MAX = (1 << 144) - 1
UINT224_MAX = (1 << 224) - 1
UINT256_MAX = (1 << 256) - 1


@dataclass(frozen=True)
class UQ112x112:
    """Unsigned 112.112 fixed-point ratio."""
    value: int = 0

    def __post_init__(self):
        if self.value < 0 or self.value > UINT224_MAX:
            raise FixedPointOverflowError(f"UQ112x112 out of range: {self.value}")

    @classmethod
    def encode(cls, x: int) -> UQ112x112:
        if x < 0 or x > UINT112_MAX:
            raise FixedPointOverflowError(f"FixedPoint: cannot encode {x} in 112 bits")
        return cls(x << RESOLUTION)

    @classmethod
    def fraction(cls, numerator: int, denominator: int) -> UQ112x112:
        """numerator / denominator, both at most 112 bits."""
        if denominator == 0:
            raise DivisionByZeroError("FixedPoint: DIV_BY_ZERO")
        if numerator > UINT112_MAX or denominator > UINT112_MAX:
            raise FixedPointOverflowError("FixedPoint: fraction operands exceed 112 bits")
        return cls((numerator << RESOLUTION) // denominator)

    def mul(self, y: int) -> UQ144x112:
        """Multiply by an unsigned integer; the product must fit 256 bits."""
        if y < 0:
            raise FixedPointOverflowError("FixedPoint: negative multiplier")
        z = self.value * y
        if z > UINT256_MAX:
            raise FixedPointOverflowError("FixedPoint: MULTIPLICATION_OVERFLOW")
        return UQ144x112(z)

    def decode(self) -> int:
        return self.value >> RESOLUTION


@dataclass(frozen=True)
class UQ144x112:
    """Unsigned 144.112 fixed-point product."""
    value: int = 0

    def decode144(self) -> int:
        result = self.value >> RESOLUTION
        if result > UINT144_MAX:
            raise FixedPointOverflowError("FixedPoint: result exceeds 144 bits")
        return result
