"""Textbook RSA file encryption in an Academic Sense.

Encrypts and decrypts files or messages block by block with PKCS#1 v1.5 padding, using keys exported by OpenSSL as
clear-text component listings or PEM files. Arithmetic runs on the `BigUnsigned` type with a square-and-multiply
modular exponentiation.

Typical usage example:

    key = load_key(pathlib.Path("rsa_priv_components.txt"))
    c = encrypt(b"Hi there!", key.pub)
    r = decrypt(c, key)
"""
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0
from rsablock.bigint import BigUnsigned
from rsablock.bigint import modexp
from rsablock.components import load_key
from rsablock.components import parse_components
from rsablock.components import read_components
from rsablock.errors import CorruptCiphertext
from rsablock.errors import InvalidFormat
from rsablock.errors import InvalidPadding
from rsablock.errors import KeyTooSmall
from rsablock.errors import PlaintextTooLarge
from rsablock.errors import RSABlockError
from rsablock.pipeline import decrypt
from rsablock.pipeline import decrypt_file
from rsablock.pipeline import encrypt
from rsablock.pipeline import encrypt_file
from rsablock.pipeline import PipelineContext
from rsablock.rsa import RSAPrivKey
from rsablock.rsa import RSAPubKey

__version__ = "0.1.0"
__all__ = [
    "BigUnsigned",
    "modexp",
    "load_key",
    "parse_components",
    "read_components",
    "RSAPrivKey",
    "RSAPubKey",
    "PipelineContext",
    "encrypt",
    "decrypt",
    "encrypt_file",
    "decrypt_file",
    "RSABlockError",
    "InvalidFormat",
    "PlaintextTooLarge",
    "InvalidPadding",
    "CorruptCiphertext",
    "KeyTooSmall",
]
