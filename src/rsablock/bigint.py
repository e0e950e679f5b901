"""Arbitrary-precision unsigned integers and the modular exponentiation built on them.

`BigUnsigned` is an immutable value type: every operation returns a fresh instance, no operation truncates, and
anything that would go below zero is rejected. Parsing is all-or-nothing, a malformed string never yields a
partially built value.

Typical usage example:

    n = BigUnsigned.from_hex("c4f1...")
    m = BigUnsigned.from_bytes(block)
    c = modexp(m, 65537, n)
    out = c.to_bytes(n.byte_length())
"""
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0
import functools
from typing import Union

from rsablock.errors import InvalidFormat

_HEX_DIGITS = frozenset("0123456789abcdefABCDEF")
_DEC_DIGITS = frozenset("0123456789")

Operand = Union["BigUnsigned", int]


def _operand(other: object) -> int | None:
    """Unwraps an operand to a native int, None if the type is not supported."""
    if isinstance(other, BigUnsigned):
        return other._value  # pylint: disable=protected-access
    if isinstance(other, int) and not isinstance(other, bool):
        return other
    return None


@functools.total_ordering
class BigUnsigned:
    """An immutable arbitrary-precision non-negative integer.

    Accepts plain ints as the other operand of every operator, on either side.

    Attributes:
        _value: The wrapped native integer. Never negative.
    """

    __slots__ = ("_value",)

    def __init__(self, value: Operand = 0) -> None:
        raw = _operand(value)
        if raw is None:
            raise TypeError(f"Cannot build BigUnsigned from {type(value).__name__}")
        if raw < 0:
            raise ValueError("BigUnsigned cannot hold a negative value")
        object.__setattr__(self, "_value", raw)

    def __setattr__(self, name, value):
        raise AttributeError("BigUnsigned is immutable")

    def __reduce__(self):
        return BigUnsigned, (self._value,)

    @classmethod
    def from_hex(cls, text: str) -> "BigUnsigned":
        """Parses a hexadecimal digit string.

        Args:
            text: Hex digits, optionally prefixed by `0x`. Surrounding whitespace is ignored.

        Returns:
            The parsed value.

        Raises:
            InvalidFormat: If the string is empty or holds any non-hex character.
        """
        digits = text.strip()
        if digits[:2] in ("0x", "0X"):
            digits = digits[2:]
        if not digits or not _HEX_DIGITS.issuperset(digits):
            raise InvalidFormat(f"Not a hexadecimal number: {text!r}")
        return cls(int(digits, 16))

    @classmethod
    def from_decimal(cls, text: str) -> "BigUnsigned":
        """Parses a decimal digit string.

        Raises:
            InvalidFormat: If the string is empty or holds any non-decimal character.
        """
        digits = text.strip()
        if not digits or not _DEC_DIGITS.issuperset(digits):
            raise InvalidFormat(f"Not a decimal number: {text!r}")
        return cls(int(digits, 10))

    @classmethod
    def from_bytes(cls, data: bytes) -> "BigUnsigned":
        """Reads big-endian base-256 digits, most significant byte first. Empty input is zero."""
        return cls(int.from_bytes(data, byteorder="big", signed=False))

    def to_bytes(self, width: int) -> bytes:
        """Writes the value into a fixed-width big-endian byte field.

        Args:
            width: The exact number of bytes to produce.

        Returns:
            `width` bytes, zero-filled on the left where the value is shorter.

        Raises:
            OverflowError: If the value does not fit into `width` bytes.
        """
        if width < 0:
            raise ValueError("Width must be >= 0")
        if self.byte_length() > width:
            raise OverflowError(f"Value needs {self.byte_length()} bytes, which exceeds the {width}-byte field")
        return self._value.to_bytes(width, byteorder="big", signed=False)

    def to_hex(self) -> str:
        return format(self._value, "x")

    def to_binary_string(self, width: int = 0) -> str:
        """Binary digits of the value, left-padded with zeros to at least `width` digits."""
        return format(self._value, "b").zfill(width)

    def bit_length(self) -> int:
        return self._value.bit_length()

    def byte_length(self) -> int:
        return (self._value.bit_length() + 7) // 8

    def is_zero(self) -> bool:
        return self._value == 0

    def is_odd(self) -> bool:
        return self._value & 1 == 1

    def __add__(self, other: Operand) -> "BigUnsigned":
        rhs = _operand(other)
        if rhs is None:
            return NotImplemented
        return BigUnsigned(self._value + rhs)

    __radd__ = __add__

    def __sub__(self, other: Operand) -> "BigUnsigned":
        rhs = _operand(other)
        if rhs is None:
            return NotImplemented
        if rhs > self._value:
            raise ValueError("Subtraction result would be negative")
        return BigUnsigned(self._value - rhs)

    def __rsub__(self, other: Operand) -> "BigUnsigned":
        lhs = _operand(other)
        if lhs is None:
            return NotImplemented
        return BigUnsigned(lhs) - self

    def __mul__(self, other: Operand) -> "BigUnsigned":
        rhs = _operand(other)
        if rhs is None:
            return NotImplemented
        return BigUnsigned(self._value * rhs)

    __rmul__ = __mul__

    def __floordiv__(self, other: Operand) -> "BigUnsigned":
        rhs = _operand(other)
        if rhs is None:
            return NotImplemented
        return BigUnsigned(self._value // rhs)

    def __rfloordiv__(self, other: Operand) -> "BigUnsigned":
        lhs = _operand(other)
        if lhs is None:
            return NotImplemented
        return BigUnsigned(lhs) // self

    def __mod__(self, other: Operand) -> "BigUnsigned":
        rhs = _operand(other)
        if rhs is None:
            return NotImplemented
        return BigUnsigned(self._value % rhs)

    def __rmod__(self, other: Operand) -> "BigUnsigned":
        lhs = _operand(other)
        if lhs is None:
            return NotImplemented
        return BigUnsigned(lhs) % self

    def __divmod__(self, other: Operand) -> tuple["BigUnsigned", "BigUnsigned"]:
        rhs = _operand(other)
        if rhs is None:
            return NotImplemented
        quot, rem = divmod(self._value, rhs)
        return BigUnsigned(quot), BigUnsigned(rem)

    def __pow__(self, exponent: Operand, modulus: Operand | None = None) -> "BigUnsigned":
        if modulus is not None:
            return modexp(self, exponent, modulus)
        rhs = _operand(exponent)
        if rhs is None:
            return NotImplemented
        if rhs < 0:
            raise ValueError("Exponent must be >= 0")
        return BigUnsigned(self._value**rhs)

    def __lshift__(self, bits: int) -> "BigUnsigned":
        return BigUnsigned(self._value << bits)

    def __rshift__(self, bits: int) -> "BigUnsigned":
        return BigUnsigned(self._value >> bits)

    def __eq__(self, other: object) -> bool:
        rhs = _operand(other)
        if rhs is None:
            return NotImplemented
        return self._value == rhs

    def __lt__(self, other: Operand) -> bool:
        rhs = _operand(other)
        if rhs is None:
            return NotImplemented
        return self._value < rhs

    def __hash__(self) -> int:
        return hash(self._value)

    def __bool__(self) -> bool:
        return self._value != 0

    def __int__(self) -> int:
        return self._value

    __index__ = __int__

    def __str__(self) -> str:
        return str(self._value)

    def __repr__(self) -> str:
        return f"BigUnsigned(0x{self.to_hex()})"


def modexp(base: Operand, exponent: Operand, modulus: Operand) -> BigUnsigned:
    """Computes `base ** exponent % modulus` by right-to-left square-and-multiply.

    The exponent is consumed from its least significant bit upwards. Whenever the current bit is set the
    accumulator picks up the current power of the base, and the power is squared between steps.

    Args:
        base: The number to raise.
        exponent: The exponent. Zero yields 1 (reduced by the modulus).
        modulus: The modulus. Must be non-zero.

    Returns:
        The modular power.

    Raises:
        ZeroDivisionError: If the modulus is zero.
    """
    base, exponent, modulus = BigUnsigned(base), BigUnsigned(exponent), BigUnsigned(modulus)
    if modulus.is_zero():
        raise ZeroDivisionError("modexp() modulus must not be zero")
    result = BigUnsigned(1) % modulus
    power = base % modulus
    while not exponent.is_zero():
        if exponent.is_odd():
            result = (result * power) % modulus
        exponent >>= 1
        if not exponent.is_zero():
            power = (power * power) % modulus
    return result
