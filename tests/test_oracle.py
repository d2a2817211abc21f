import pytest

from padora.common.errors import InvalidPadding
from padora.crypto.aes import AesCbcCipher, generate_key
from padora.crypto.oracle import PaddingOracle

from conftest import TEST_KEY


def test_encrypt_decrypt_round_trip(aes_oracle):
    message = b"attack at dawn, not at dusk"
    ciphertext = aes_oracle.pad_and_encrypt(message)

    assert len(ciphertext) == 16 + 32
    assert aes_oracle.decrypt_and_unpad(ciphertext) == message


def test_encrypt_uses_a_fresh_iv():
    cipher = AesCbcCipher(TEST_KEY)
    padded = b"\x10" * 16
    first, second = cipher.encrypt(padded), cipher.encrypt(padded)

    assert first[:16] != second[:16]
    assert cipher.decrypt(first) == cipher.decrypt(second) == padded


def test_oracle_accepts_genuine_ciphertext(aes_oracle):
    ciphertext = aes_oracle.pad_and_encrypt(b"x" * 15)
    assert aes_oracle.try_decrypt_valid(ciphertext, 16) is True


def test_oracle_rejects_bad_padding(aes_oracle):
    # One byte of padding (0x01); flipping its lowest bit decrypts it to 0x00
    tampered = bytearray(aes_oracle.pad_and_encrypt(b"x" * 15))
    tampered[-17] ^= 0x01

    assert aes_oracle.try_decrypt_valid(bytes(tampered), 16) is False
    with pytest.raises(InvalidPadding):
        aes_oracle.decrypt_and_unpad(bytes(tampered))


@pytest.mark.parametrize("candidate", [b"", bytes(16), bytes(17), bytes(40)])
def test_oracle_rejects_malformed_ciphertext(aes_oracle, candidate):
    assert aes_oracle.try_decrypt_valid(candidate, 16) is False


def test_oracle_is_callable(aes_oracle):
    genuine = aes_oracle.pad_and_encrypt(b"call me")
    assert aes_oracle(genuine, 16) is True
    assert aes_oracle(bytes(32), 16) is aes_oracle.try_decrypt_valid(bytes(32), 16)


def test_oracle_reports_block_size(aes_oracle):
    assert aes_oracle.block_size == 16


@pytest.mark.parametrize("size", [16, 24, 32])
def test_generate_key_sizes(size):
    key = generate_key(size)
    assert len(key) == size
    oracle = PaddingOracle(AesCbcCipher(key))
    assert oracle.decrypt_and_unpad(oracle.pad_and_encrypt(b"abc")) == b"abc"


@pytest.mark.parametrize("size", [0, 8, 15, 33])
def test_invalid_key_sizes(size):
    with pytest.raises(ValueError):
        generate_key(size)
    with pytest.raises(ValueError):
        AesCbcCipher(bytes(size))


def test_decrypt_rejects_short_or_unaligned_input():
    cipher = AesCbcCipher(TEST_KEY)
    with pytest.raises(ValueError):
        cipher.decrypt(bytes(16))
    with pytest.raises(ValueError):
        cipher.decrypt(bytes(33))
