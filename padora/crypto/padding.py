"""
PKCS#7 Padding Codec.

- pad: appends 1..B bytes, each equal to the number of bytes appended.
- unpad: validates and strips the padding, raising InvalidPadding on failure.

The checks are delegated to the PKCS7 padder/unpadder of the `cryptography`
package. Callers learn only pass/fail, never which check failed.
"""

from cryptography.hazmat.primitives import padding

from padora.common.errors import InvalidPadding

MAX_BLOCK_SIZE = 255

def _check_block_size(block_size: int):
    if not 1 <= block_size <= MAX_BLOCK_SIZE:
        raise ValueError(f"Block size must be between 1 and {MAX_BLOCK_SIZE} bytes, got {block_size}.")

def pad(message: bytes, block_size: int) -> bytes:
    """
    Pads a message to a multiple of block_size.

    A message that is already aligned gets a full extra block of padding.
    """
    _check_block_size(block_size)

    # PKCS7 takes the block size in bits
    padder = padding.PKCS7(block_size * 8).padder()
    return padder.update(bytes(message)) + padder.finalize()

def unpad(padded_message: bytes, block_size: int) -> bytes:
    """
    Removes the padding from a padded message.

    Raises:
        InvalidPadding: the last byte is 0 or larger than block_size, the
            padding bytes do not all carry the same value, or the buffer is
            shorter than the padding it claims.
    """
    _check_block_size(block_size)

    data = bytes(padded_message)

    # Only the last block_size bytes can hold padding. A shorter buffer is
    # filled up in front with zeros, which never equal a padding length.
    tail = data[-block_size:].rjust(block_size, b"\x00")

    unpadder = padding.PKCS7(block_size * 8).unpadder()
    try:
        unpadder.update(tail)
        unpadder.finalize()
    except ValueError:
        raise InvalidPadding() from None

    return data[:len(data) - tail[-1]]
