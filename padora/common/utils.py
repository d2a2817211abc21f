"""
Common Utility Helpers.

- Base64 encoding/decoding.
- Buffer wiping.
- Digit-grouped number formatting.
- Random secret message / nonce generation.
"""

import os
import base64
import random

def b64e(b: bytes) -> str:
    """Encodes bytes into a Base64 string (UTF-8)."""
    return base64.b64encode(b).decode('utf-8')

def b64d(s: str) -> bytes:
    """Decodes a Base64 string (UTF-8) into bytes."""
    try:
        return base64.b64decode(s, validate=True)
    except (TypeError, base64.binascii.Error):
        raise ValueError("Invalid Base64 string.")

def generate_nonce(length: int = 16) -> bytes:
    """Generates a secure random byte string of the specified length."""
    return os.urandom(length)

def wipe(buf: bytearray):
    """Overwrites a mutable buffer with zeros in place."""
    buf[:] = bytes(len(buf))

def format_int(number: int, separator: str = ",") -> str:
    """
    Formats an integer with its digits grouped in threes.

    Example: format_int(-1234567) == "-1,234,567"
    """
    grouped = f"{abs(number):,}"
    if separator != ",":
        grouped = grouped.replace(",", separator)
    return "-" + grouped if number < 0 else grouped

def make_secret_message(num_blocks: int, block_size: int) -> bytes:
    """
    Builds a random secret message that is between (num_blocks - 1) * block_size + 1
    and num_blocks * block_size bytes long.
    """
    length = num_blocks * block_size - random.randrange(block_size)
    return os.urandom(length)

def show_diff(expected: bytes, actual: bytes) -> list[str]:
    """
    Lists the positions where two byte strings differ as "i: aa != bb".
    A length mismatch is reported as a final line.
    """
    lines = [
        f"{i}: {x:02x} != {y:02x}"
        for i, (x, y) in enumerate(zip(expected, actual))
        if x != y
    ]
    if len(expected) != len(actual):
        lines.append(f"length: {len(expected)} != {len(actual)}")
    return lines
