"""Block-by-block RSA encryption and decryption of messages and files.

Encryption runs chunk -> pad -> RSA -> concatenate, decryption runs split -> RSA -> unpad -> concatenate. Every
invocation works on its own `PipelineContext`, and each stage returns a new context instead of mutating the old one.
Blocks are independent of each other: there is no chaining, and output order always equals input order.

Typical usage example:

    key = load_key(pathlib.Path("rsa_priv_components.txt"))
    c = encrypt(b"Hi there!", key.pub)
    r = decrypt(c, key)
"""
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0
import concurrent.futures
import dataclasses
import logging
import pathlib
from typing import Any, Callable, Sequence
import warnings

from rsablock import blocks
from rsablock import rsa
from rsablock.errors import CorruptCiphertext
from rsablock.errors import KeyTooSmall
from rsablock.errors import RSABlockError

logger = logging.getLogger(__name__)

MIN_KEY_BYTES: int = 16


@dataclasses.dataclass(frozen=True)
class PipelineContext:
    """State of one encrypt or decrypt invocation.

    The three block sequences are index-aligned once populated.

    Attributes:
        key: The key applied by the RSA stage. Public for encryption, private for decryption.
        block_size: Width of padded and cipher blocks, the modulus byte width.
        min_pad: Minimum padding overhead per block.
        message_size: Total plaintext length in bytes.
        plain_blocks: Plaintext blocks. Only the first one may be shorter than `max_plain_block_size`.
        padded_blocks: Padded blocks, `block_size` bytes each.
        cipher_blocks: Cipher blocks, `block_size` bytes each.
    """
    key: rsa.RSAKey
    block_size: int
    min_pad: int = blocks.MIN_PAD
    message_size: int = 0
    plain_blocks: tuple[bytes, ...] = ()
    padded_blocks: tuple[bytes, ...] = ()
    cipher_blocks: tuple[bytes, ...] = ()

    @classmethod
    def for_key(cls, key: rsa.RSAKey, min_pad: int = blocks.MIN_PAD) -> "PipelineContext":
        """Creates a fresh context, checking the key is wide enough to carry padded blocks.

        Raises:
            ValueError: If `min_pad` is below `blocks.PAD_FLOOR`.
            KeyTooSmall: If the modulus is narrower than `MIN_KEY_BYTES` or leaves no room next to the padding.
        """
        if min_pad < blocks.PAD_FLOOR:
            raise ValueError(f"Minimum padding must be >= {blocks.PAD_FLOOR}, got {min_pad}")
        if key.bsize < MIN_KEY_BYTES:
            raise KeyTooSmall(f"Modulus is {key.bsize} bytes wide, at least {MIN_KEY_BYTES} are required")
        if key.bsize <= min_pad:
            raise KeyTooSmall(f"Modulus of {key.bsize} bytes leaves no room for data next to {min_pad} padding bytes")
        return cls(key=key, block_size=key.bsize, min_pad=min_pad)

    @property
    def max_plain_block_size(self) -> int:
        return self.block_size - self.min_pad

    @property
    def first_block_size(self) -> int:
        return blocks.first_block_size(self.message_size, self.max_plain_block_size)

    @property
    def block_count(self) -> int:
        return max(len(self.plain_blocks), len(self.padded_blocks), len(self.cipher_blocks))


def _at_block(index: int, func: Callable, *args: Any) -> Any:
    """Runs `func` for the block at `index`, tagging pipeline errors with that index."""
    try:
        return func(*args)
    except RSABlockError as err:
        if err.index is not None:
            raise
        raise type(err)(str(err), index) from err


def _map_blocks(func: Callable[[int, bytes], bytes], items: Sequence[bytes], workers: int | None) -> tuple[bytes, ...]:
    if workers and workers > 1 and len(items) > 1:
        with concurrent.futures.ThreadPoolExecutor(max_workers=workers) as executor:
            return tuple(executor.map(func, range(len(items)), items))
    return tuple(map(func, range(len(items)), items))


def split_plaintext(ctx: PipelineContext, message: bytes) -> PipelineContext:
    plain = blocks.chunk_plaintext(message, ctx.max_plain_block_size)
    logger.debug("Split %d bytes into %d plaintext blocks (first block %d bytes)", len(message), len(plain),
                 len(plain[0]) if plain else 0)
    return dataclasses.replace(ctx, message_size=len(message), plain_blocks=tuple(plain))


def split_ciphertext(ctx: PipelineContext, ciphertext: bytes) -> PipelineContext:
    cipher = blocks.chunk_ciphertext(ciphertext, ctx.block_size)
    logger.debug("Split %d bytes into %d cipher blocks", len(ciphertext), len(cipher))
    return dataclasses.replace(ctx, cipher_blocks=tuple(cipher))


def pad_blocks(ctx: PipelineContext, randbyte: Callable[[], int] | None = None) -> PipelineContext:
    """Pads every plaintext block to the full block size.

    Raises:
        PlaintextTooLarge: If a block does not fit, tagged with its index.
    """
    padded = tuple(
        _at_block(i, blocks.pad, block, ctx.block_size, ctx.min_pad, randbyte)
        for i, block in enumerate(ctx.plain_blocks))
    return dataclasses.replace(ctx, padded_blocks=padded)


def encrypt_blocks(ctx: PipelineContext, workers: int | None = None) -> PipelineContext:
    """Applies the RSA primitive to every padded block."""

    def encrypt_one(_index: int, block: bytes) -> bytes:
        return rsa.integer_to_bytes(ctx.key.c_rsa(rsa.bytes_to_integer(block)), ctx.block_size)

    return dataclasses.replace(ctx, cipher_blocks=_map_blocks(encrypt_one, ctx.padded_blocks, workers))


def decrypt_blocks(ctx: PipelineContext, workers: int | None = None) -> PipelineContext:
    """Applies the RSA primitive to every cipher block.

    Raises:
        CorruptCiphertext: If a block is not below the modulus, tagged with its index.
    """

    def decrypt_one(index: int, block: bytes) -> bytes:
        try:
            value = ctx.key.c_rsa(rsa.bytes_to_integer(block))
        except ValueError as err:
            raise CorruptCiphertext("Cipher block is not below the modulus", index) from err
        return rsa.integer_to_bytes(value, ctx.block_size)

    return dataclasses.replace(ctx, padded_blocks=_map_blocks(decrypt_one, ctx.cipher_blocks, workers))


def unpad_blocks(ctx: PipelineContext) -> PipelineContext:
    """Strips the padding of every padded block.

    Raises:
        InvalidPadding: If a block is malformed, tagged with its index.
    """
    plain = tuple(_at_block(i, blocks.unpad, block, ctx.block_size) for i, block in enumerate(ctx.padded_blocks))
    return dataclasses.replace(ctx, message_size=sum(len(b) for b in plain), plain_blocks=plain)


def join_plaintext(ctx: PipelineContext) -> bytes:
    return b"".join(ctx.plain_blocks)


def join_ciphertext(ctx: PipelineContext) -> bytes:
    return b"".join(ctx.cipher_blocks)


def encrypt_message(message: bytes,
                    key: rsa.RSAKey,
                    *,
                    min_pad: int = blocks.MIN_PAD,
                    workers: int | None = None,
                    randbyte: Callable[[], int] | None = None) -> PipelineContext:
    """Runs the whole encryption pipeline over a message.

    Args:
        message: The plaintext.
        key: The public key. A private key is accepted and its public half used.
        min_pad: Minimum padding overhead per block.
        workers: Number of threads for the RSA stage. None or 1 runs sequentially.
        randbyte: Source of padding filler bytes, see `blocks.pad`.

    Returns:
        The final context, holding plaintext, padded and cipher blocks.
    """
    warnings.warn("Textbook RSA encryption is unsecure! Please use with care.", RuntimeWarning)
    if isinstance(key, rsa.RSAPrivKey):
        key = key.pub
    ctx = PipelineContext.for_key(key, min_pad)
    ctx = split_plaintext(ctx, message)
    ctx = pad_blocks(ctx, randbyte)
    ctx = encrypt_blocks(ctx, workers)
    logger.info("Encrypted %d bytes into %d blocks of %d bytes", ctx.message_size, ctx.block_count, ctx.block_size)
    return ctx


def decrypt_message(ciphertext: bytes,
                    key: rsa.RSAPrivKey,
                    *,
                    min_pad: int = blocks.MIN_PAD,
                    workers: int | None = None) -> PipelineContext:
    """Runs the whole decryption pipeline over a ciphertext.

    Args:
        ciphertext: The ciphertext, a whole number of modulus-wide blocks.
        key: The private key.
        min_pad: Minimum padding overhead per block, used for the key width check.
        workers: Number of threads for the RSA stage. None or 1 runs sequentially.

    Returns:
        The final context, holding cipher, padded and plaintext blocks.

    Raises:
        TypeError: If `key` is not a private key.
    """
    if not isinstance(key, rsa.RSAPrivKey):
        raise TypeError("Decryption requires a private key")
    ctx = PipelineContext.for_key(key, min_pad)
    ctx = split_ciphertext(ctx, ciphertext)
    ctx = decrypt_blocks(ctx, workers)
    ctx = unpad_blocks(ctx)
    logger.info("Decrypted %d blocks into %d bytes", ctx.block_count, ctx.message_size)
    return ctx


def encrypt(message: bytes, key: rsa.RSAKey, **kwargs) -> bytes:
    """Encrypts a message, see `encrypt_message` for the keyword arguments."""
    return join_ciphertext(encrypt_message(message, key, **kwargs))


def decrypt(ciphertext: bytes, key: rsa.RSAPrivKey, **kwargs) -> bytes:
    """Decrypts a ciphertext, see `decrypt_message` for the keyword arguments."""
    return join_plaintext(decrypt_message(ciphertext, key, **kwargs))


def encrypt_file(src: pathlib.Path, dst: pathlib.Path, key: rsa.RSAKey, **kwargs) -> PipelineContext:
    """Encrypts the file `src` into `dst`.

    On failure `dst` may be left behind partially written, and must then be treated as invalid.
    """
    with open(src, "rb") as f:
        message = f.read()
    ctx = encrypt_message(message, key, **kwargs)
    with open(dst, "wb") as f:
        f.write(join_ciphertext(ctx))
    return ctx


def decrypt_file(src: pathlib.Path, dst: pathlib.Path, key: rsa.RSAPrivKey, **kwargs) -> PipelineContext:
    """Decrypts the file `src` into `dst`."""
    with open(src, "rb") as f:
        ciphertext = f.read()
    ctx = decrypt_message(ciphertext, key, **kwargs)
    with open(dst, "wb") as f:
        f.write(join_plaintext(ctx))
    return ctx
