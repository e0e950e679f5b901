# pylint: disable=missing-module-docstring
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0
import pickle

import pytest

from rsablock import bigint
from rsablock.bigint import BigUnsigned
from rsablock.bigint import modexp
from rsablock.errors import InvalidFormat

large = 2**1023 + 2**512 + 12345


@pytest.mark.parametrize("text,expected", [
    ("0", 0),
    ("ff", 255),
    ("FF", 255),
    ("0x10001", 65537),
    ("  c4f1  ", 0xc4f1),
    ("00000001", 1),
    (format(large, "x"), large),
])
def test_from_hex(text, expected):
    assert BigUnsigned.from_hex(text) == expected


@pytest.mark.parametrize("text", ["", "0x", "12g4", "c4:f1", "12 34", "-1", "1_000", "0xzz"])
def test_from_hex_rejects(text):
    with pytest.raises(InvalidFormat):
        BigUnsigned.from_hex(text)


def test_invalid_format_is_value_error():
    with pytest.raises(ValueError):
        BigUnsigned.from_hex("not hex")


@pytest.mark.parametrize("text,expected", [("0", 0), ("65537", 65537), (str(large), large)])
def test_from_decimal(text, expected):
    assert BigUnsigned.from_decimal(text) == expected


@pytest.mark.parametrize("text", ["", "ff", "1.5", "-3", "12 3"])
def test_from_decimal_rejects(text):
    with pytest.raises(InvalidFormat):
        BigUnsigned.from_decimal(text)


def test_rejects_negative_and_foreign_types():
    with pytest.raises(ValueError):
        BigUnsigned(-1)
    with pytest.raises(TypeError):
        BigUnsigned(1.0)
    with pytest.raises(TypeError):
        BigUnsigned(True)


def test_arithmetic_exact():
    a = BigUnsigned(large)
    b = BigUnsigned(2**700 + 3)
    assert a + b == large + 2**700 + 3
    assert a - b == large - (2**700 + 3)
    assert a * b == large * (2**700 + 3)
    assert a // b == large // (2**700 + 3)
    assert a % b == large % (2**700 + 3)
    assert divmod(a, b) == (large // (2**700 + 3), large % (2**700 + 3))
    assert b**3 == (2**700 + 3)**3
    assert a >> 1 == large // 2
    assert (a << 8) == large * 256


def test_mixed_int_operands():
    a = BigUnsigned(10)
    assert isinstance(a + 1, BigUnsigned)
    assert isinstance(1 + a, BigUnsigned)
    assert 15 - a == 5
    assert 3 * a == 30
    assert 25 // a == 2
    assert 25 % a == 5


def test_subtraction_never_negative():
    with pytest.raises(ValueError, match="negative"):
        BigUnsigned(3) - 4
    with pytest.raises(ValueError):
        2 - BigUnsigned(3)


def test_comparison_and_hash():
    a, b = BigUnsigned(5), BigUnsigned(7)
    assert a < b <= 7
    assert b > a >= 5
    assert a == 5 and a != b
    assert hash(a) == hash(5)
    assert len({BigUnsigned(5), BigUnsigned(5), 5}) == 1
    assert sorted([b, a]) == [a, b]


def test_immutable():
    a = BigUnsigned(5)
    with pytest.raises(AttributeError):
        a._value = 6  # pylint: disable=protected-access
    c = a
    c += 1
    assert a == 5 and c == 6


def test_pickle_roundtrip():
    a = BigUnsigned(large)
    assert pickle.loads(pickle.dumps(a)) == a


@pytest.mark.parametrize("value,width,expected", [
    (0, 4, b"\x00\x00\x00\x00"),
    (1, 1, b"\x01"),
    (0x0102, 4, b"\x00\x00\x01\x02"),
    (0xffff, 2, b"\xff\xff"),
    (0, 0, b""),
])
def test_to_bytes(value, width, expected):
    assert BigUnsigned(value).to_bytes(width) == expected


def test_to_bytes_refuses_truncation():
    with pytest.raises(OverflowError):
        BigUnsigned(0x10000).to_bytes(2)
    with pytest.raises(OverflowError):
        BigUnsigned(1).to_bytes(0)


def test_from_bytes_is_base256_big_endian():
    data = bytes(range(1, 40))
    expected = sum(b * 256**(len(data) - 1 - i) for i, b in enumerate(data))
    assert BigUnsigned.from_bytes(data) == expected
    assert BigUnsigned.from_bytes(b"") == 0
    assert BigUnsigned.from_bytes(b"\x00\x00\x07") == 7


def test_bytes_roundtrip_keeps_leading_zeros():
    data = b"\x00\x02" + bytes(range(1, 126))
    assert BigUnsigned.from_bytes(data).to_bytes(len(data)) == data


def test_text_conversions():
    a = BigUnsigned(0x1f)
    assert a.to_hex() == "1f"
    assert a.to_binary_string() == "11111"
    assert a.to_binary_string(8) == "00011111"
    assert BigUnsigned(0).to_binary_string(8) == "00000000"
    assert str(a) == "31"
    assert int(a) == 31
    assert repr(a) == "BigUnsigned(0x1f)"


def test_lengths():
    assert BigUnsigned(0).bit_length() == 0
    assert BigUnsigned(0).byte_length() == 0
    assert BigUnsigned(255).byte_length() == 1
    assert BigUnsigned(256).byte_length() == 2
    assert BigUnsigned(2**1023).byte_length() == 128
    assert BigUnsigned(2**1024 - 1).byte_length() == 128
    assert BigUnsigned(3).is_odd() and not BigUnsigned(4).is_odd()
    assert BigUnsigned(0).is_zero() and not BigUnsigned(0)


@pytest.mark.parametrize("base,exponent,modulus,expected", [
    (4, 13, 497, 445),
    (2, 10, 1000, 24),
    (3, 1, 7, 3),
    (0, 5, 7, 0),
    (10, 3, 1, 0),
    (7, 2, 13, 10),
])
def test_modexp_known_values(base, exponent, modulus, expected):
    assert modexp(base, exponent, modulus) == expected


@pytest.mark.parametrize("base,modulus", [(2, 3), (4, 497), (large, 2**1024 - 3), (0, 7)])
def test_modexp_zero_exponent(base, modulus):
    assert modexp(base, 0, modulus) == 1


def test_modexp_matches_builtin():
    mod = 2**1024 - 105
    for base, exponent in ((large, 65537), (large + 7, large >> 3), (3, 2**300 + 1)):
        assert modexp(base, exponent, mod) == pow(base, exponent, mod)


def test_modexp_zero_modulus():
    with pytest.raises(ZeroDivisionError):
        modexp(3, 3, 0)


def test_three_argument_pow_uses_modexp(mocker):
    spy = mocker.spy(bigint, "modexp")
    assert pow(BigUnsigned(4), 13, 497) == 445
    spy.assert_called_once()
