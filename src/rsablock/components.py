"""Reads RSA keys from the clear-text component listing printed by OpenSSL.

The listings come from `openssl rsa -in rsa_priv.pem -text -out rsa_priv_components.txt` (private) or
`openssl rsa -pubin -in rsa_pub.pem -text -out rsa_pub_components.txt` (public) and look like:

    Private-Key: (1024 bit, 2 primes)
    modulus:
        00:c4:9b:...
        ...
    publicExponent: 65537 (0x10001)
    privateExponent:
        ...

Typical usage example:

    key = load_key(pathlib.Path("rsa_priv_components.txt"))
"""
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0
import logging
import pathlib
from typing import NamedTuple

from rsablock import rsa
from rsablock.bigint import BigUnsigned
from rsablock.errors import InvalidFormat

logger = logging.getLogger(__name__)

# Section names of both the private and the public listing, lower-cased.
SECTIONS = {
    "modulus": "mod",
    "publicexponent": "pub_exp",
    "exponent": "pub_exp",
    "privateexponent": "priv_exp",
    "prime1": "p",
    "prime2": "q",
    "exponent1": "exp1",
    "exponent2": "exp2",
    "coefficient": "coeff",
}


class _Section(NamedTuple):
    field: str
    lineno: int
    inline: str
    hexlines: list[str]


def _section_value(section: _Section) -> BigUnsigned:
    if section.inline:
        # "65537 (0x10001)"
        return BigUnsigned.from_decimal(section.inline.split("(", 1)[0])
    if not section.hexlines:
        raise InvalidFormat(f"Line {section.lineno}: section has no value")
    return BigUnsigned.from_hex("".join(section.hexlines))


def parse_components(text: str) -> rsa.RSAPrivKey | rsa.RSAPubKey:
    """Parses an OpenSSL key component listing.

    Args:
        text: The listing.

    Returns:
        A private key if the listing carries a private exponent, a public key otherwise.

    Raises:
        InvalidFormat: On unknown or duplicate sections, bad digits, a lone prime or missing modulus/public exponent.
    """
    sections: list[_Section] = []
    for lineno, line in enumerate(text.splitlines(), 1):
        if line.startswith("-----BEGIN"):
            break
        if not line.strip():
            continue
        if line[0].isspace():
            if not sections or sections[-1].inline:
                raise InvalidFormat(f"Line {lineno}: hex data outside of a section")
            sections[-1].hexlines.append("".join(line.split()).replace(":", ""))
            continue
        name, sep, rest = line.partition(":")
        if not sep:
            raise InvalidFormat(f"Line {lineno}: expected a section header, got {line!r}")
        name = name.strip().lower()
        if name.endswith("-key"):
            continue
        if name not in SECTIONS:
            raise InvalidFormat(f"Line {lineno}: unknown section {name!r}")
        sections.append(_Section(SECTIONS[name], lineno, rest.strip(), []))

    values: dict[str, BigUnsigned] = {}
    for section in sections:
        if section.field in values:
            raise InvalidFormat(f"Line {section.lineno}: duplicate {section.field} section")
        values[section.field] = _section_value(section)
    if "mod" not in values or "pub_exp" not in values:
        raise InvalidFormat("Key listing needs at least a modulus and a public exponent")
    if ("p" in values) != ("q" in values):
        raise InvalidFormat("Key listing holds only one of prime1/prime2")
    if "priv_exp" not in values:
        return rsa.RSAPubKey(values["mod"], values["pub_exp"])
    return rsa.RSAPrivKey(values["mod"], values["pub_exp"], values["priv_exp"], values.get("p"), values.get("q"),
                          values.get("exp1"), values.get("exp2"), values.get("coeff"))


def read_components(file: pathlib.Path) -> rsa.RSAPrivKey | rsa.RSAPubKey:
    """Reads an OpenSSL key component listing from file. See `parse_components`."""
    try:
        with open(file, "r", encoding="utf-8") as f:
            text = f.read()
    except UnicodeDecodeError as err:
        raise InvalidFormat(f"{file}: not a text key listing") from err
    key = parse_components(text)
    logger.debug("Read %d-bit %s key components from %s", key.mod.bit_length(),
                 "private" if isinstance(key, rsa.RSAPrivKey) else "public", file)
    return key


def load_key(file: pathlib.Path) -> rsa.RSAPrivKey | rsa.RSAPubKey:
    """Loads a key from a PEM file or a component listing, whichever the file holds.

    Args:
        file: The key file.

    Returns:
        The private or public key held by the file.
    """
    subtype = rsa.pem_subtype(file)
    if subtype == "PKCS1_PUB":
        return rsa.RSAPubKey.import_key(file)
    if subtype is not None:
        return rsa.RSAPrivKey.import_key(file)
    return read_components(file)
