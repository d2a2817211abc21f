"""
Padding Oracle Demonstration (padora/demo.py)

- Builds a random secret message of a given number of blocks.
- Pads and encrypts it with AES-CBC under a key the cracker never sees.
- Cracks it through the padding oracle and reports the cost.

Run with `python -m padora.demo [num_blocks]`.
"""

import argparse
import logging
import sys
import time
from typing import Optional

from padora.attack.cracker import Cracker
from padora.common import utils
from padora.common.config import (
    MAX_NUM_BLOCKS,
    MIN_NUM_BLOCKS,
    Settings,
    load_settings,
)
from padora.common.errors import CrackCancelled, InvalidInput, OracleInconsistency
from padora.common.report import CrackReport, calls_per_byte, serialize_report
from padora.crypto.aes import AesCbcCipher, generate_key
from padora.crypto.oracle import PaddingOracle

INVALID_NUM_BLOCKS = "Invalid number of blocks: {}"

def get_num_blocks(raw: Optional[str], default: int) -> int:
    """
    Interprets the num_blocks argument.

    Unparsable values fall back to the default and out-of-range values are
    clamped; both are reported on stderr.
    """
    if raw is None:
        return default

    try:
        num_blocks = int(raw)
    except ValueError:
        print(INVALID_NUM_BLOCKS.format(raw), file=sys.stderr)
        return default

    if num_blocks < MIN_NUM_BLOCKS:
        print(INVALID_NUM_BLOCKS.format(num_blocks), file=sys.stderr)
        return MIN_NUM_BLOCKS

    if num_blocks > MAX_NUM_BLOCKS:
        print(INVALID_NUM_BLOCKS.format(num_blocks), file=sys.stderr)
        return MAX_NUM_BLOCKS

    return num_blocks

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="padora",
        description="Recover an AES-CBC encrypted secret through a PKCS#7 padding oracle."
    )
    parser.add_argument(
        "num_blocks",
        nargs="?",
        help=f"Number of blocks of the secret message ({MIN_NUM_BLOCKS}..{MAX_NUM_BLOCKS})"
    )
    parser.add_argument("--workers", type=int, help="Number of blocks cracked in parallel")
    parser.add_argument("--strict", action="store_true", help="Fail on inconsistent oracle answers")
    parser.add_argument("--json", action="store_true", help="Print a JSON report instead of text")
    parser.add_argument("--quiet", action="store_true", help="Do not print progress")
    return parser

def run(settings: Settings, num_blocks: int, as_json: bool = False, quiet: bool = False) -> bool:
    """
    Runs one demonstration. Returns True if the secret was recovered.
    """
    key = settings.key or generate_key()
    oracle = PaddingOracle(AesCbcCipher(key))
    block_size = oracle.block_size

    secret_message = utils.make_secret_message(num_blocks, block_size)
    encrypted_message = oracle.pad_and_encrypt(secret_message)

    # Padded length is the encrypted length minus the IV
    padded_length = len(encrypted_message) - block_size

    if not as_json:
        print(f"Using {utils.format_int(num_blocks)} blocks")
        print(f"\nLength of secret message is {utils.format_int(len(secret_message))} bytes")
        print(f"Length of padded encrypted message is {utils.format_int(padded_length)} bytes")

    def show_progress(calls: int):
        print(f"\r[Crack] {utils.format_int(calls)} oracle calls", end="", flush=True)

    cracker = Cracker(
        oracle,
        block_size,
        progress=None if (quiet or as_json) else show_progress,
        progress_interval=settings.progress_interval,
        workers=settings.workers,
        strict=settings.strict
    )

    start_time = time.perf_counter()
    recovered_message, count = cracker.crack(encrypted_message)
    elapsed = time.perf_counter() - start_time

    success = recovered_message == secret_message

    if as_json:
        report = CrackReport(
            block_size=block_size,
            message_length=len(secret_message),
            padded_length=padded_length,
            oracle_calls=count,
            calls_per_byte=calls_per_byte(count, padded_length),
            elapsed_seconds=round(elapsed, 6),
            success=success,
            recovered_b64=utils.b64e(recovered_message)
        )
        print(serialize_report(report).decode('utf-8'))
        return success

    print("\n")
    if success:
        print(">>>> Secret message successfully retrieved! <<<<")
    else:
        print("!!!! Unable to retrieve secret message !!!!")
        for line in utils.show_diff(secret_message, recovered_message):
            print(line)
    print()
    print(
        f"{utils.format_int(count)} decryption calls needed {elapsed:.3f}s. "
        f"This means {calls_per_byte(count, padded_length)} calls per byte."
    )
    return success

def main(argv: Optional[list[str]] = None) -> int:
    """
    Parse arguments and run the demonstration.
    """
    args = build_parser().parse_args(argv)

    try:
        settings = load_settings()
    except ValueError as e:
        print(f"[Config Error] {e}", file=sys.stderr)
        return 1

    overrides = {}
    if args.workers is not None:
        overrides["workers"] = args.workers
    if args.strict:
        overrides["strict"] = True
    if overrides:
        try:
            settings = Settings.model_validate({**settings.model_dump(), **overrides})
        except ValueError as e:
            print(f"[Config Error] {e}", file=sys.stderr)
            return 1

    logging.basicConfig(level=settings.log_level, format="%(levelname)s %(name)s: %(message)s")

    num_blocks = get_num_blocks(args.num_blocks, settings.num_blocks)

    try:
        success = run(settings, num_blocks, as_json=args.json, quiet=args.quiet)
    except (InvalidInput, OracleInconsistency) as e:
        print(f"[Crack Error] {e}", file=sys.stderr)
        return 1
    except CrackCancelled as e:
        print(f"\n[Crack] {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\n[Crack] Interrupted.", file=sys.stderr)
        return 1

    return 0 if success else 1


if __name__ == "__main__":
    sys.exit(main())
