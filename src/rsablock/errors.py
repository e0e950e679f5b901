"""Exceptions raised throughout the block pipeline.

Every error derives from `RSABlockError` and from the built-in exception family that matches its nature, so
existing handlers for `ValueError` or `RuntimeError` keep catching them. None of these are transient: the
current operation is abandoned and the error propagates to the caller.
"""
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0


class RSABlockError(Exception):
    """Base class of all block pipeline errors.

    Attributes:
        index: The index of the offending block, if the error is tied to one.
    """

    def __init__(self, message: str, index: int | None = None) -> None:
        if index is not None:
            message = f"Block {index}: {message}"
        super().__init__(message)
        self.index = index


class InvalidFormat(RSABlockError, ValueError):
    """Malformed numeric string or key component file."""


class PlaintextTooLarge(RSABlockError, ValueError):
    """A plaintext block does not fit into the modulus width with the minimum padding."""


class InvalidPadding(RSABlockError, RuntimeError):
    """A decrypted block fails the `00 02 ... 00` structure check."""


class CorruptCiphertext(RSABlockError, ValueError):
    """Ciphertext is not made of whole modulus-width blocks, or a block is out of range."""


class KeyTooSmall(RSABlockError, ValueError):
    """The modulus is too narrow to carry padded blocks."""
