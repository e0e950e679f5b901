"""Key types and the raw RSA primitive the block pipeline runs on.

Both key types keep their numbers as `BigUnsigned` and apply plain textbook RSA through
`rsablock.bigint.modexp`. Keys can be moved in and out of PEM files (PKCS#1 public, PKCS#8 or traditional
PKCS#1 private), and the module provides the octet string <-> integer marshalling used per block.

Typical usage example:

    pk = RSAPrivKey.import_key(pathlib.Path("rsa_priv.pem"))
    c = pk.pub.c_rsa(bytes_to_integer(block))
    r = integer_to_bytes(pk.c_rsa(c), pk.bsize)
"""
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0
import base64
import binascii
import logging
import pathlib
from typing import Any

from pyasn1 import error
from pyasn1.codec.der import decoder
from pyasn1.codec.der import encoder
from pyasn1.codec.native import encoder as localize
from pyasn1.type import univ
from pyasn1_modules import rfc5208
from pyasn1_modules import rfc8017

from rsablock.bigint import BigUnsigned
from rsablock.bigint import modexp
from rsablock.bigint import Operand
from rsablock.errors import InvalidFormat

logger = logging.getLogger(__name__)

# PEM armour labels, "-----BEGIN <label>-----" / "-----END <label>-----".
PEM_TYPES = {
    "PKCS1_PRIV": "RSA PRIVATE KEY",
    "PKCS1_PUB": "RSA PUBLIC KEY",
    "PKCS8": "PRIVATE KEY",
}
PEM_WIDTH = 64


def _armour(subtype: str) -> tuple[str, str]:
    label = PEM_TYPES[subtype]
    return f"-----BEGIN {label}-----", f"-----END {label}-----"


def _to_der(record: Any, **fields: Any) -> bytes:
    for name, value in fields.items():
        record[name] = int(value) if isinstance(value, BigUnsigned) else value
    return encoder.encode(record)


def _from_der(payload: bytes, spec: Any, file: pathlib.Path) -> Any:
    try:
        record, _ = decoder.decode(payload, asn1Spec=spec)
    except error.PyAsn1Error as err:
        raise InvalidFormat(f"{file}: not a valid {type(spec).__name__} structure") from err
    return record


class RSAKey:
    """Common part of public and private keys.

    Attributes:
        mod: The modulus shared by both halves of the keypair.
        expo: The exponent this key applies, public or private.
        bsize: Byte width of the modulus. Every padded and every cipher block is exactly this wide.
    """

    def __init__(self, mod: Operand, expo: Operand) -> None:
        self.mod = BigUnsigned(mod)
        self.expo = BigUnsigned(expo)
        self.bsize = self.mod.byte_length()

    def c_rsa(self, message: Operand) -> BigUnsigned:
        """Raises a message representative to this key's exponent modulo the modulus.

        Args:
            message: The block, as an integer.

        Returns:
            `message ** expo % mod`

        Raises:
            ValueError: If `message` is negative or not below the modulus.
        """
        if message < 0 or message >= self.mod:
            raise ValueError(f"Representative outside of [0, {self.bsize * 8}-bit modulus)")
        return modexp(message, self.expo, self.mod)


class RSAPubKey(RSAKey):
    """Public half of a keypair. Nothing beyond the modulus and exponent."""

    def export(self, file: pathlib.Path) -> None:
        """Writes the key as a PKCS#1 `RSA PUBLIC KEY` PEM file."""
        write_pem(file, "PKCS1_PUB", _to_der(rfc8017.RSAPublicKey(), modulus=self.mod, publicExponent=self.expo))

    @classmethod
    def import_key(cls, file: pathlib.Path) -> "RSAPubKey":
        """Reads a PKCS#1 `RSA PUBLIC KEY` PEM file.

        Args:
            file: Path of the PEM file.

        Returns:
            The public key it holds.
        """
        fields = localize.encode(_from_der(read_pem(file, "PKCS1_PUB"), rfc8017.RSAPublicKey(), file))
        key = cls(fields["modulus"], fields["publicExponent"])
        logger.debug("Imported %d-bit public key from %s", key.mod.bit_length(), file)
        return key


class RSAPrivKey(RSAKey):
    """Private half of a keypair, with its public half attached.

    The CRT numbers are kept so the key can be written back out in full; the pipeline only ever
    applies the private exponent.

    Attributes:
        mod: The modulus shared by both halves of the keypair.
        expo: The private exponent.
        pub: The matching public key.
        p: First prime factor of the modulus.
        q: Second prime factor of the modulus.
        exp1: `expo mod (p - 1)`, aka dmp1.
        exp2: `expo mod (q - 1)`, aka dmq1.
        coeff: `q^-1 mod p`, aka iqmp.
    """

    def __init__(self,
                 mod: Operand,
                 pub_exp: Operand,
                 priv_exp: Operand,
                 p: Operand | None = None,
                 q: Operand | None = None,
                 exp1: Operand | None = None,
                 exp2: Operand | None = None,
                 coeff: Operand | None = None) -> None:
        """Builds the key. With both primes present, absent CRT numbers are computed from them.

        Args:
            mod: Modulus.
            pub_exp: Public exponent.
            priv_exp: Private exponent.
            p: First prime.
            q: Second prime.
            exp1: dmp1.
            exp2: dmq1.
            coeff: iqmp.

        Raises:
            ValueError: If only one of the two primes is given.
        """
        if (p is None) != (q is None):
            raise ValueError("Both primes or neither must be given")
        super().__init__(mod, priv_exp)
        self.pub = RSAPubKey(mod, pub_exp)
        self.p: BigUnsigned | None = None
        self.q: BigUnsigned | None = None
        self.exp1: BigUnsigned | None = None
        self.exp2: BigUnsigned | None = None
        self.coeff: BigUnsigned | None = None
        if p is not None and q is not None:
            self.p, self.q = BigUnsigned(p), BigUnsigned(q)
            self.exp1 = self.expo % (self.p - 1) if exp1 is None else BigUnsigned(exp1)
            self.exp2 = self.expo % (self.q - 1) if exp2 is None else BigUnsigned(exp2)
            self.coeff = BigUnsigned(pow(int(self.q), -1, int(self.p)) if coeff is None else coeff)

    def export(self, file: pathlib.Path) -> None:
        """Writes the key as an unencrypted PKCS#8 `PRIVATE KEY` PEM file.

        Args:
            file: Destination path.

        Raises:
            NotImplementedError: If the key was built without its primes.
        """
        if not self.p or not self.q:
            raise NotImplementedError("Keys without prime factors cannot be written as PKCS#8.")
        inner = _to_der(rfc8017.RSAPrivateKey(),
                        version=0,
                        modulus=self.mod,
                        publicExponent=self.pub.expo,
                        privateExponent=self.expo,
                        prime1=self.p,
                        prime2=self.q,
                        exponent1=self.exp1,
                        exponent2=self.exp2,
                        coefficient=self.coeff)
        algo = rfc5208.AlgorithmIdentifier()
        algo["algorithm"] = rfc8017.rsaEncryption
        algo["parameters"] = univ.Null("")
        write_pem(file, "PKCS8", _to_der(rfc5208.PrivateKeyInfo(), version=0, privateKeyAlgorithm=algo,
                                         privateKey=inner))

    @classmethod
    def import_key(cls, file: pathlib.Path) -> "RSAPrivKey":
        """Reads a private key PEM file.

        Both the PKCS#8 `PRIVATE KEY` wrapper and the bare PKCS#1 `RSA PRIVATE KEY` form are understood.

        Args:
            file: Path of the PEM file.

        Returns:
            The private key it holds.

        Raises:
            IOError: If the wrapper or the key structure is not supported.
        """
        if pem_subtype(file) == "PKCS1_PRIV":
            der = read_pem(file, "PKCS1_PRIV")
        else:
            wrapper = _from_der(read_pem(file, "PKCS8"), rfc5208.PrivateKeyInfo(), file)
            if wrapper["version"] != 0:
                raise IOError(f"PKCS#8 wrapper version {wrapper['version']} is not understood")
            if wrapper["privateKeyAlgorithm"]["algorithm"] != rfc8017.rsaEncryption:
                raise IOError("PKCS#8 payload is not an RSA key")
            der = wrapper["privateKey"].asOctets()
        fields = localize.encode(_from_der(der, rfc8017.RSAPrivateKey(), file))
        if fields["version"] != 0:
            raise IOError("Only two-prime RSA keys can be imported")
        key = cls(fields["modulus"], fields["publicExponent"], fields["privateExponent"], fields["prime1"],
                  fields["prime2"], fields["exponent1"], fields["exponent2"], fields["coefficient"])
        logger.debug("Imported %d-bit private key from %s", key.mod.bit_length(), file)
        return key


def pem_subtype(file: pathlib.Path) -> str | None:
    """Returns the PEM_TYPES entry whose header opens the file, None if it is not a known PEM file."""
    with open(file, "r", encoding="ascii", errors="replace") as f:
        first = f.readline().strip()
    return next((subtype for subtype in PEM_TYPES if _armour(subtype)[0] == first), None)


def read_pem(file: pathlib.Path, subtype: str) -> bytes:
    """Extracts the base64 body of a PEM file.

    Args:
        file: Path of the PEM file.
        subtype: Key of `PEM_TYPES` the armour has to match.

    Returns:
        The DER payload.

    Raises:
        IOError: If the header does not match or the footer never comes before a blank line or the end of file.
        InvalidFormat: If the file is not ASCII text or the body is not valid base64.
    """
    begin, end = _armour(subtype)
    body = []
    try:
        with open(file, "r", encoding="ascii") as f:
            first = f.readline().strip()
            if first != begin:
                raise IOError(f"Expected {begin!r} on the first line, found {first!r}")
            for raw in f:
                line = raw.strip()
                if not line:
                    break
                if line == end:
                    return base64.b64decode("".join(body))
                body.append(line)
    except UnicodeDecodeError as err:
        raise InvalidFormat(f"{file}: PEM files must be ASCII text") from err
    except binascii.Error as err:
        raise InvalidFormat(f"{file}: PEM body is not valid base64") from err
    raise IOError(f"Missing {end!r} footer")


def write_pem(file: pathlib.Path, subtype: str, data: bytes) -> None:
    """Wraps DER data in PEM armour, `PEM_WIDTH` base64 characters per line.

    Args:
        file: Destination path.
        subtype: Key of `PEM_TYPES` naming the armour.
        data: The DER payload.
    """
    begin, end = _armour(subtype)
    text = base64.b64encode(data).decode("ascii")
    lines = [begin, *(text[i:i + PEM_WIDTH] for i in range(0, len(text), PEM_WIDTH)), end]
    with open(file, "w", encoding="ascii") as f:
        f.write("\n".join(lines) + "\n")


def bytes_to_integer(msg: bytes) -> BigUnsigned:
    """Reads an octet string as a big-endian integer."""
    return BigUnsigned.from_bytes(msg)


def integer_to_bytes(msg: Operand, fixedlen: int) -> bytes:
    """Writes an integer as a big-endian octet string of exactly `fixedlen` bytes.

    Raises:
        OverflowError: If the integer is wider than `fixedlen` bytes.
    """
    return BigUnsigned(msg).to_bytes(fixedlen)
