"""
AES-CBC Cipher Context.

- Owns the secret key (never visible to the cracker).
- encrypt: prepends a fresh random IV to the CBC encryption of padded data.
- decrypt: splits the IV off and returns the raw CBC decryption.

Padding is not handled here; see padora.crypto.padding.
"""

from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes
from cryptography.hazmat.backends import default_backend

from padora.common.utils import generate_nonce

AES_BLOCK_SIZE_BYTES = 128 // 8
AES_KEY_SIZES = (16, 24, 32)

def generate_key(size: int = 16) -> bytes:
    """Generates a random AES key of 16, 24 or 32 bytes."""
    if size not in AES_KEY_SIZES:
        raise ValueError("AES key must be 16, 24 or 32 bytes.")
    return generate_nonce(size)


class AesCbcCipher:
    """
    An AES-CBC cipher bound to one key.

    Every call builds its own Cipher object, so a single instance can be
    shared between threads.
    """

    block_size = AES_BLOCK_SIZE_BYTES

    def __init__(self, key: bytes):
        if len(key) not in AES_KEY_SIZES:
            raise ValueError("AES key must be 16, 24 or 32 bytes.")
        self._algorithm = algorithms.AES(bytes(key))

    def encrypt(self, padded_message: bytes) -> bytes:
        """
        Encrypts already padded data.

        Returns:
            The concatenation of the random IV and the ciphertext.
        """
        iv = generate_nonce(self.block_size)
        cipher = Cipher(self._algorithm, modes.CBC(iv), backend=default_backend())
        encryptor = cipher.encryptor()
        return iv + encryptor.update(bytes(padded_message)) + encryptor.finalize()

    def decrypt(self, compound_message: bytes) -> bytes:
        """
        Decrypts the concatenation of an IV and a ciphertext.

        Raises:
            ValueError: the input is too short or not block aligned.
        """
        if len(compound_message) < 2 * self.block_size:
            raise ValueError("Ciphertext must contain an IV and at least one block.")

        iv = bytes(compound_message[:self.block_size])
        cipher = Cipher(self._algorithm, modes.CBC(iv), backend=default_backend())
        decryptor = cipher.decryptor()

        # finalize() raises ValueError if the data is not block aligned
        return decryptor.update(bytes(compound_message[self.block_size:])) + decryptor.finalize()
