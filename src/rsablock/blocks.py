"""Block level handling: splitting messages into blocks and PKCS#1 v1.5 (block type 2) padding.

A plaintext message is cut so that only the *first* block may be short, all later blocks are exactly
`max_block_size` long. Every padded block has the form `00 02 <non-zero random filler> 00 <data>` and is exactly
as wide as the modulus.

Typical usage example:

    blocks = chunk_plaintext(message, 117)
    padded = [pad(b, 128) for b in blocks]
    restored = [unpad(p, 128) for p in padded]
"""
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0
import secrets
from typing import Callable

from rsablock.errors import CorruptCiphertext
from rsablock.errors import InvalidPadding
from rsablock.errors import PlaintextTooLarge

# Two marker bytes, a separator and at least eight filler bytes, as recommended by PKCS#1.
MIN_PAD: int = 11
BLOCK_TYPE: bytes = b"\x00\x02"
SEPARATOR: int = 0x00
# Markers plus separator, the least any padding can be.
PAD_FLOOR: int = len(BLOCK_TYPE) + 1


def _randbyte() -> int:
    return secrets.randbits(8)


def first_block_size(message_size: int, max_block_size: int) -> int:
    """Size of the leading block of a message.

    Args:
        message_size: Total message length in bytes.
        max_block_size: Size of every block but the first.

    Returns:
        `message_size % max_block_size`, or a full block when that remainder is zero. Zero only for an empty message.
    """
    if max_block_size <= 0:
        raise ValueError("Block size must be > 0")
    if message_size == 0:
        return 0
    return message_size % max_block_size or max_block_size


def chunk_plaintext(data: bytes, max_block_size: int) -> list[bytes]:
    """Splits a message into plaintext blocks, with the short remainder placed first.

    Args:
        data: The message.
        max_block_size: Size of every block but the first.

    Returns:
        The ordered blocks, their concatenation is `data`.
    """
    first = first_block_size(len(data), max_block_size)
    if not first:
        return []
    blocks = [bytes(data[:first])]
    blocks.extend(bytes(data[i:i + max_block_size]) for i in range(first, len(data), max_block_size))
    return blocks


def chunk_ciphertext(data: bytes, block_size: int) -> list[bytes]:
    """Splits ciphertext into its fixed-width blocks.

    Raises:
        CorruptCiphertext: If the length is not an exact multiple of `block_size`.
    """
    if block_size <= 0:
        raise ValueError("Block size must be > 0")
    if len(data) % block_size:
        raise CorruptCiphertext(f"Ciphertext length {len(data)} is not a multiple of the {block_size}-byte block size")
    return [bytes(data[i:i + block_size]) for i in range(0, len(data), block_size)]


def pad(block: bytes, target_width: int, min_pad: int = MIN_PAD, randbyte: Callable[[], int] | None = None) -> bytes:
    """Pads a plaintext block according to PKCS#1 v1.5 encryption padding.

    Filled from the end backwards: the data goes into the tail, preceded by the zero separator, preceded by
    non-zero filler, with the `00 02` block type in front.

    Args:
        block: The plaintext block.
        target_width: Width of the padded block, equal to the modulus byte width.
        min_pad: Minimum overhead in bytes (markers, separator and filler).
        randbyte: Source of filler bytes in range [0, 255]. Zero draws are discarded.

    Returns:
        The padded block, exactly `target_width` bytes long.

    Raises:
        PlaintextTooLarge: If `target_width < len(block) + min_pad`.
        ValueError: If `min_pad` cannot even hold the markers and the separator.
    """
    if min_pad < PAD_FLOOR:
        raise ValueError(f"Minimum padding must be >= {PAD_FLOOR}")
    if target_width < len(block) + min_pad:
        raise PlaintextTooLarge(f"{len(block)} byte block plus {min_pad} bytes of padding exceeds {target_width} bytes")
    draw = randbyte or _randbyte
    filler = bytearray()
    for _ in range(target_width - len(block) - len(BLOCK_TYPE) - 1):
        b = draw()
        while b == 0:
            b = draw()
        filler.append(b)
    return BLOCK_TYPE + bytes(filler) + bytes([SEPARATOR]) + bytes(block)


def unpad(padded: bytes, width: int | None = None) -> bytes:
    """Removes PKCS#1 v1.5 encryption padding.

    Args:
        padded: The padded block.
        width: The expected block width. Defaults to the length of `padded`.

    Returns:
        The data following the separator, `width - (separator_index + 1)` bytes long.

    Raises:
        InvalidPadding: If the block type marker or the separator is missing.
    """
    width = len(padded) if width is None else width
    if len(padded) != width:
        raise InvalidPadding(f"Padded block is {len(padded)} bytes, expected {width}")
    if padded[0:2] != BLOCK_TYPE:
        raise InvalidPadding("Block type marker 00 02 not found")
    sep = padded.find(bytes([SEPARATOR]), len(BLOCK_TYPE))
    if sep == -1:
        raise InvalidPadding("Padding separator not found")
    return bytes(padded[sep + 1:])
