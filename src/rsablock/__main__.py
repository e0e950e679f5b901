"""The Command Line Interface for the utility, including Interactive elements.

A hybrid CLI/ICLI (Command Line Interface/Interactive Command Line Interface) that prompts for whatever the command
line left out, unless non-interactive mode is on, in which case missing arguments are an error.

Typical usage example:

    rsablock -n encrypt -k rsa_priv_components.txt -f report.pdf -o report.bin
    rsablock -n decrypt -k rsa_priv_components.txt -f report.bin -o report.pdf
    rsablock -n test -k rsa_priv_components.txt -f notes.txt
    OR
    python -m rsablock
"""
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0
import argparse
import logging
import pathlib
import sys
import time
import typing

import rsablock
from rsablock import components
from rsablock import pipeline
from rsablock.bigint import BigUnsigned
from rsablock.blocks import MIN_PAD
from rsablock.blocks import PAD_FLOOR
from rsablock.errors import RSABlockError
from rsablock.rsa import RSAPrivKey


class HelpData(typing.NamedTuple):
    description: str
    format: typing.Type = str
    choices: list[str] | None = None
    default: typing.Any = None
    advanced: bool = False


def padding_size(text: str) -> int:
    """Parses a minimum padding size, refusing values that cannot hold the markers and separator."""
    value = int(text)
    if value < PAD_FLOOR:
        raise ValueError(f"Minimum padding must be >= {PAD_FLOOR}")
    return value


help_dict: dict[str, HelpData] = {
    "subcommand":
        HelpData(
            description="The available subcommands in RSA Block.",
            choices=["encrypt", "decrypt", "test", "convert"],
        ),
    "encrypt":
        HelpData("File encryption utility."),
    "decrypt":
        HelpData("File decryption utility."),
    "test":
        HelpData("Encrypts then decrypts a file, reporting blocks and timings."),
    "convert":
        HelpData("Converts a key component listing to PEM files."),
    "key":
        HelpData(
            description="Location of the key file (OpenSSL component listing or PEM).",
            format=pathlib.Path,
        ),
    "infile":
        HelpData(
            description="Location of the input file.",
            format=pathlib.Path,
        ),
    "outfile":
        HelpData(
            description="Location of the output file.",
            format=pathlib.Path,
        ),
    "public_key":
        HelpData(
            description="Destination of the PKCS1 public key PEM file.",
            format=pathlib.Path,
        ),
    "min_pad":
        HelpData(
            description="Minimum padding overhead per block, in bytes.",
            format=padding_size,
            advanced=True,
            default=MIN_PAD,
        ),
    "workers":
        HelpData(
            description="Number of worker threads for the RSA stage.",
            format=int,
            advanced=True,
            default=1,
        ),
    "overwrite":
        HelpData(
            description="Overwrite specified destination files if they exist?",
            choices=["Y", "N"],
            default="N",
        )
}

needs = {
    "encrypt": ("key", "infile", "outfile", "min_pad", "workers"),
    "decrypt": ("key", "infile", "outfile", "min_pad", "workers"),
    "test": ("key", "infile", "min_pad", "workers"),
    "convert": ("key", "public_key"),
}

keyp = argparse.ArgumentParser(add_help=False)
keyp.add_argument("--key", "-k", type=help_dict["key"].format, help=help_dict["key"].description)
infile = argparse.ArgumentParser(add_help=False)
infile.add_argument("--infile", "-f", type=help_dict["infile"].format, help=help_dict["infile"].description)
outfile = argparse.ArgumentParser(add_help=False)
outfile.add_argument("--outfile", "-o", type=help_dict["outfile"].format, help=help_dict["outfile"].description)
tuning = argparse.ArgumentParser(add_help=False)
tuning.add_argument("--min-pad", type=help_dict["min_pad"].format, help=help_dict["min_pad"].description)
tuning.add_argument("--workers", "-w", type=help_dict["workers"].format, help=help_dict["workers"].description)
overwrite = argparse.ArgumentParser(add_help=False)
overwrite.add_argument("--overwrite", "-O", action="store_const", const="Y", help=help_dict["overwrite"].description)
corep = argparse.ArgumentParser(prog="rsablock")
corep.add_argument("--version", "-v", action="version", version=f"%(prog)s {rsablock.__version__}")
corep.add_argument("--non-interactive", "-n", action="store_true", help="Enable non-interactive mode")
corep.add_argument("--advanced", "-a", action="store_true", help="Enable advanced mode, for interactive mode")
corep.add_argument("--verbose", "-V", action="count", default=0, help="Log pipeline progress, repeat for more detail")
commands = corep.add_subparsers(dest="subcommand", title="Subcommands")

encrypt = commands.add_parser("encrypt",
                              parents=[keyp, infile, outfile, tuning, overwrite],
                              help=help_dict["encrypt"].description)
decrypt = commands.add_parser("decrypt",
                              parents=[keyp, infile, outfile, tuning, overwrite],
                              help=help_dict["decrypt"].description)
roundtrip = commands.add_parser("test", parents=[keyp, infile, tuning, overwrite], help=help_dict["test"].description)
convert = commands.add_parser("convert", parents=[keyp, overwrite], help=help_dict["convert"].description)
convert.add_argument("--public_key",
                     "-p",
                     type=help_dict["public_key"].format,
                     help=help_dict["public_key"].description)
convert.add_argument("--private_key",
                     "-P",
                     type=pathlib.Path,
                     help="Destination of the PKCS8 private key PEM file. Only for private listings.")


def checkmodes(arg: str, mode: tuple[bool, bool]):
    helper_data = help_dict[arg]
    if (mode[0] or (helper_data.advanced and not mode[1])) and helper_data.default is not None:
        return helper_data.default
    if mode[0]:
        raise IOError(f"Argument {arg} is missing and non-interactive mode is active.")
    return helper_data


def choice_handler(arg: str, mode: tuple[bool, bool], prntr: typing.Callable = print):
    helper_data = checkmodes(arg, mode)
    if not isinstance(helper_data, HelpData):
        return helper_data
    prntr(f"Please specify the {arg}!")
    prntr("Description: " + helper_data.description)
    choices = helper_data.choices
    vald = set(choices)
    for choice in choices:
        defstring = " (Default)" if choice == helper_data.default else ""
        if help_dict.get(choice, None):
            prntr(f"{choice} - {help_dict[choice].description}" + defstring)
        else:
            prntr(f"{choice}" + defstring)
    if helper_data.default is not None:
        prntr("To accept default just click enter. Otherwise specify value.")
    while True:
        ch = input(f"{arg}: ")
        if ch in vald:
            return ch
        if not ch and helper_data.default is not None:
            return helper_data.default
        prntr("Please select an option from the list.")


def input_handler(arg: str, mode: tuple[bool, bool], prntr: typing.Callable = print):
    helper_data = checkmodes(arg, mode)
    if not isinstance(helper_data, HelpData):
        return helper_data
    prntr(f"Please specify the {arg}!")
    prntr("Description: " + helper_data.description)
    if helper_data.default is not None:
        prntr(f"Default value: {helper_data.default}")
        prntr("To accept default just click enter. Otherwise specify value.")
    cls = helper_data.format
    while True:
        ch = input(f"{arg}: ")
        if not ch and helper_data.default is not None:
            return helper_data.default
        if ch == "":
            prntr("Please provide a value.")
            continue
        try:
            return cls(ch)
        except ValueError:
            prntr(f"We could not convert your value to {cls.__name__}.")


def format_blocks(blocks: typing.Sequence[bytes]) -> str:
    """One line per block, bytes as space separated 8-digit binary strings."""
    lines = []
    for block in blocks:
        bits = BigUnsigned.from_bytes(block).to_binary_string(len(block) * 8)
        lines.append(" ".join(bits[i:i + 8] for i in range(0, len(bits), 8)))
    return "\n".join(lines)


def format_text(blocks: typing.Sequence[bytes]) -> str:
    return b"".join(blocks).decode("utf-8", errors="replace")


def configure_logging(verbosity: int) -> None:
    level = logging.WARNING if verbosity <= 0 else logging.INFO if verbosity == 1 else logging.DEBUG
    logging.basicConfig(level=level,
                        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
                        handlers=[logging.StreamHandler(sys.stderr)])
    logging.captureWarnings(True)


def confirm_overwrite(targets: typing.Iterable[pathlib.Path | None], args: argparse.Namespace,
                      mode: tuple[bool, bool], prntr: typing.Callable) -> bool:
    if not any(t is not None and t.exists() for t in targets):
        return True
    rs = getattr(args, "overwrite", None)
    if rs is None:
        rs = choice_handler("overwrite", mode, prntr)
    if rs == "N":
        print("Destination file already exists!")
        return False
    return True


def private_key(args: argparse.Namespace) -> RSAPrivKey | None:
    key = components.load_key(args.key)
    if not isinstance(key, RSAPrivKey):
        print(f"{args.subcommand.capitalize()} requires a private key file.", file=sys.stderr)
        return None
    return key


def run_test(args: argparse.Namespace, key: RSAPrivKey) -> int:
    """Encrypts and decrypts the input file, printing the block arrays and timings."""
    src: pathlib.Path = args.infile
    enc_path = src.with_name(f"{src.stem}_encr.bin")
    dec_path = src.with_name(f"{src.stem}_decr{src.suffix}")
    as_text = src.suffix == ".txt"
    tuned = {"min_pad": args.min_pad, "workers": args.workers}

    print("\n=============== BEGINNING RSA ENCRYPTION ===============\n")
    time1 = time.perf_counter()
    enc = pipeline.encrypt_file(src, enc_path, key, **tuned)
    time2 = time.perf_counter()
    if as_text:
        print("\nInput file as text:")
        print(format_text(enc.plain_blocks))
    print("\nInput file as binary data:")
    print(format_blocks(enc.plain_blocks))
    print("\nOutput file (encrypted) as binary data:")
    print(format_blocks(enc.cipher_blocks))

    print("\n=============== BEGINNING RSA DECRYPTION ===============\n")
    time3 = time.perf_counter()
    dec = pipeline.decrypt_file(enc_path, dec_path, key, **tuned)
    time4 = time.perf_counter()
    print("\nDecrypted file as binary data: (should be the same as input file above)")
    print(format_blocks(dec.plain_blocks))
    if as_text:
        print("\nDecrypted file as text: (should be the same as input file above)")
        print(format_text(dec.plain_blocks))

    matched = pipeline.join_plaintext(dec) == pipeline.join_plaintext(enc)
    print("\n=============== RESULTS ===============\n")
    print(f"Time to encrypt: {(time2 - time1) * 1000:.0f} milliseconds")
    print(f"Time to decrypt: {(time4 - time3) * 1000:.0f} milliseconds")
    print(f"Blocks: {enc.block_count} x {enc.block_size} bytes, first plaintext block {enc.first_block_size} bytes")
    print(f"Round trip {'matched' if matched else 'DID NOT MATCH'}.")
    print(f"The result files, {enc_path.name} and {dec_path.name}, can be found next to the original file.")
    return 0 if matched else 1


def execute(args: argparse.Namespace, mode: tuple[bool, bool], pspr: typing.Callable) -> int:
    match args.subcommand:
        case "encrypt":
            if not confirm_overwrite([args.outfile], args, mode, pspr):
                return 1
            key = components.load_key(args.key)
            ctx = pipeline.encrypt_file(args.infile, args.outfile, key, min_pad=args.min_pad, workers=args.workers)
            pspr(f"\nEncrypted {ctx.message_size} bytes into {ctx.block_count} blocks of {ctx.block_size} bytes.")
        case "decrypt":
            if not confirm_overwrite([args.outfile], args, mode, pspr):
                return 1
            key = private_key(args)
            if key is None:
                return 1
            ctx = pipeline.decrypt_file(args.infile, args.outfile, key, min_pad=args.min_pad, workers=args.workers)
            pspr(f"\nDecrypted {ctx.block_count} blocks into {ctx.message_size} bytes.")
        case "test":
            src = args.infile
            outputs = [src.with_name(f"{src.stem}_encr.bin"), src.with_name(f"{src.stem}_decr{src.suffix}")]
            if not confirm_overwrite(outputs, args, mode, pspr):
                return 1
            key = private_key(args)
            if key is None:
                return 1
            return run_test(args, key)
        case "convert":
            if not confirm_overwrite([args.public_key, args.private_key], args, mode, pspr):
                return 1
            key = components.read_components(args.key)
            if isinstance(key, RSAPrivKey):
                key.pub.export(args.public_key)
                if args.private_key is not None:
                    key.export(args.private_key)
            else:
                if args.private_key is not None:
                    print("A public key listing cannot produce a private key file.", file=sys.stderr)
                    return 1
                key.export(args.public_key)
            pspr("\nKey files written!")
    return 0


def main(argv: typing.Sequence[str] | None = None) -> int:
    """Core Hybrid CLI/ICLI (Command Line Interface/Interactive Command Line Interface)"""
    args = corep.parse_args(argv)
    pstatus = (args.non_interactive, args.advanced)
    configure_logging(args.verbose)

    def pspr(text: str):
        """Print only if not in non-interactive mode."""
        if not pstatus[0]:
            print(text)

    pspr("Welcome to RSA Block!\n")
    try:
        if not args.subcommand:
            args.subcommand = choice_handler("subcommand", pstatus)
        for reqs in needs[args.subcommand]:
            if getattr(args, reqs, None) is None:
                if help_dict[reqs].choices is not None:
                    res = choice_handler(reqs, pstatus)
                else:
                    res = input_handler(reqs, pstatus)
                setattr(args, reqs, res)
            else:
                pspr(f"{reqs}: {getattr(args, reqs)}")
        pspr("\nInput Complete! Executing...")
        status = execute(args, pstatus, pspr)
    except (RSABlockError, OSError, NotImplementedError) as err:
        print(f"Error: {err}", file=sys.stderr)
        return 1
    pspr("Thank you for using RSA Block!")
    pspr("Goodbye!")
    return status


if __name__ == "__main__":
    sys.exit(main())
