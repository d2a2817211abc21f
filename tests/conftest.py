import os

import pytest

from padora.crypto.aes import AesCbcCipher
from padora.crypto.oracle import PaddingOracle

# Fixed key so failures can be reproduced
TEST_KEY = bytes.fromhex("e41503ed35e04365e5bdf1362c72543f")


def xor_bytes(a: bytes, b: bytes) -> bytes:
    assert len(a) == len(b)
    return bytes(x ^ y for x, y in zip(a, b))


def split_blocks(data: bytes, block_size: int) -> list[bytes]:
    return [data[i:i + block_size] for i in range(0, len(data), block_size)]


class ToyCbcCipher:
    """
    CBC over an XOR-and-rotate block function. Insecure, but any block size
    works, which AES does not offer.
    """

    def __init__(self, key: bytes, block_size: int):
        assert len(key) == block_size
        self.key = key
        self.block_size = block_size

    def _encrypt_block(self, block: bytes) -> bytes:
        mixed = xor_bytes(block, self.key)
        return mixed[1:] + mixed[:1]

    def _decrypt_block(self, block: bytes) -> bytes:
        return xor_bytes(block[-1:] + block[:-1], self.key)

    def encrypt(self, padded_message: bytes) -> bytes:
        iv = os.urandom(self.block_size)
        out = [iv]
        prev = iv
        for block in split_blocks(padded_message, self.block_size):
            prev = self._encrypt_block(xor_bytes(block, prev))
            out.append(prev)
        return b"".join(out)

    def decrypt(self, compound_message: bytes) -> bytes:
        bs = self.block_size
        if len(compound_message) < 2 * bs or len(compound_message) % bs != 0:
            raise ValueError("Bad ciphertext length")
        blocks = split_blocks(bytes(compound_message), bs)
        return b"".join(
            xor_bytes(self._decrypt_block(block), prev)
            for prev, block in zip(blocks, blocks[1:])
        )


@pytest.fixture
def aes_oracle():
    return PaddingOracle(AesCbcCipher(TEST_KEY))


@pytest.fixture
def make_oracle(aes_oracle):
    """Returns an oracle for the requested block size."""
    def factory(block_size: int) -> PaddingOracle:
        if block_size == 16:
            return aes_oracle
        return PaddingOracle(ToyCbcCipher(TEST_KEY[:block_size].ljust(block_size, b"\x5a"), block_size))
    return factory


@pytest.fixture
def clean_env():
    """Removes PADORA_* variables and restores the environment afterwards."""
    saved = dict(os.environ)
    for name in list(os.environ):
        if name.startswith("PADORA_"):
            del os.environ[name]
    yield
    os.environ.clear()
    os.environ.update(saved)
