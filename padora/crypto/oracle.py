"""
The Padding Oracle.

Simulates a service that decrypts data with a secret key and only tells the
caller whether the result was validly padded.
"""

from typing import Optional

from padora.crypto.padding import pad, unpad


class PaddingOracle:
    """
    Wraps a cipher context (anything with block_size, encrypt and decrypt).

    The cipher context is created by the caller and handed in, so tests can
    substitute a fake.
    """

    def __init__(self, cipher):
        self._cipher = cipher

    @property
    def block_size(self) -> int:
        return self._cipher.block_size

    def pad_and_encrypt(self, message: bytes) -> bytes:
        """Pads and encrypts a clear message. Returns IV || ciphertext."""
        return self._cipher.encrypt(pad(message, self.block_size))

    def decrypt_and_unpad(self, compound_message: bytes, block_size: Optional[int] = None) -> bytes:
        """
        Decrypts IV || ciphertext and removes the padding.

        Raises:
            InvalidPadding: the decrypted data is not validly padded.
            ValueError: the ciphertext is malformed.
        """
        if block_size is None:
            block_size = self.block_size
        return unpad(self._cipher.decrypt(compound_message), block_size)

    def try_decrypt_valid(self, candidate: bytes, block_size: int) -> bool:
        """
        Answers only "valid padding" or "invalid padding".

        Every failure of the decrypt-then-unpad path is the same False.
        """
        try:
            self.decrypt_and_unpad(candidate, block_size)
        except ValueError:
            return False
        return True

    __call__ = try_decrypt_valid
