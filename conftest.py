"""Configures pytest further and provides the shared key fixtures."""
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0
from cryptography.hazmat.primitives.asymmetric import rsa
import pytest

from rsablock.rsa import RSAPrivKey
from rsablock.rsa import RSAPubKey

TARGET_SIZES = [1024, 2048, pytest.param(4096, marks=pytest.mark.slow)]
_known_keys: dict[int, rsa.RSAPrivateKey] = {}


def pytest_addoption(parser):
    parser.addoption("--skip-slow", action="store_true", default=False, help="skip slower tests (4096-bit keys)")
    parser.addoption("--run-extreme", action="store_true", default=False, help="run extremely slow tests")


def pytest_collection_modifyitems(config, items):
    skipdict = {}
    if config.getoption("--skip-slow"):
        skipdict["slow"] = pytest.mark.skip(reason="Slow test: needs no --skip-slow option")
    if not config.getoption("--run-extreme"):
        skipdict["extreme"] = pytest.mark.skip(reason="Extreme test: needs --run-extreme option")
    for item in items:
        for k, v in skipdict.items():
            if k in item.keywords:
                item.add_marker(v)


def crypto_key(size: int) -> rsa.RSAPrivateKey:
    """Generates a reference key once per size and session."""
    if size not in _known_keys:
        _known_keys[size] = rsa.generate_private_key(public_exponent=65537, key_size=size)
    return _known_keys[size]


def localize_keys(pk: rsa.RSAPrivateKey, crt: bool = True) -> tuple[RSAPubKey, RSAPrivKey]:
    privs = pk.private_numbers()
    pubs = pk.public_key().public_numbers()
    if crt:
        pkey = RSAPrivKey(pubs.n, pubs.e, privs.d, privs.p, privs.q, privs.dmp1, privs.dmq1, privs.iqmp)
    else:
        pkey = RSAPrivKey(pubs.n, pubs.e, privs.d)
    return RSAPubKey(pubs.n, pubs.e), pkey


def openssl_hex(value: int) -> str:
    """Formats a value the way `openssl rsa -text` does: 15 octets per indented line, sign octet if needed."""
    raw = value.to_bytes((value.bit_length() + 7) // 8 or 1, "big")
    if raw[0] & 0x80:
        raw = b"\x00" + raw
    octets = [f"{b:02x}" for b in raw]
    lines = ["    " + ":".join(octets[i:i + 15]) for i in range(0, len(octets), 15)]
    return ":\n".join(lines)


def openssl_listing(pk: rsa.RSAPrivateKey, public: bool = False) -> str:
    pubs = pk.public_key().public_numbers()
    bits = pk.key_size
    if public:
        return (f"Public-Key: ({bits} bit)\n"
                f"Modulus:\n{openssl_hex(pubs.n)}\n"
                f"Exponent: {pubs.e} ({hex(pubs.e)})\n")
    privs = pk.private_numbers()
    parts = [f"Private-Key: ({bits} bit, 2 primes)", f"modulus:\n{openssl_hex(pubs.n)}",
             f"publicExponent: {pubs.e} ({hex(pubs.e)})"]
    for name, value in (("privateExponent", privs.d), ("prime1", privs.p), ("prime2", privs.q),
                        ("exponent1", privs.dmp1), ("exponent2", privs.dmq1), ("coefficient", privs.iqmp)):
        parts.append(f"{name}:\n{openssl_hex(value)}")
    return "\n".join(parts) + "\n"


@pytest.fixture(scope="session", params=TARGET_SIZES)
def keyset(request) -> rsa.RSAPrivateKey:
    return crypto_key(request.param)


@pytest.fixture(scope="session")
def small_key() -> rsa.RSAPrivateKey:
    return crypto_key(1024)


@pytest.fixture(scope="session")
def small_pair(small_key) -> tuple[RSAPubKey, RSAPrivKey]:
    return localize_keys(small_key)


@pytest.fixture()
def listing_file(tmp_path):
    """Factory writing an OpenSSL component listing for a reference key."""

    def write(pk: rsa.RSAPrivateKey, public: bool = False):
        dest = tmp_path / ("rsa_pub_components.txt" if public else "rsa_priv_components.txt")
        with open(dest, "w", encoding="utf-8") as f:
            f.write(openssl_listing(pk, public))
        return dest

    return write
