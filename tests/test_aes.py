import pytest

from yksoft.core.aes import aes_decrypt_block, aes_encrypt_block
from yksoft.core.errors import InvalidLength

# FIPS-197 appendix C.1
KEY = bytes.fromhex("000102030405060708090a0b0c0d0e0f")
PLAINTEXT = bytes.fromhex("00112233445566778899aabbccddeeff")
CIPHERTEXT = bytes.fromhex("69c4e0d86a7b0430d8cdb78070b4c55a")


def test_aes_encrypt_known_answer():
    assert aes_encrypt_block(KEY, PLAINTEXT) == CIPHERTEXT


def test_aes_decrypt_known_answer():
    assert aes_decrypt_block(KEY, CIPHERTEXT) == PLAINTEXT


@pytest.mark.parametrize("key", [b"", b"\x00\x01\x02", bytes(24), bytes(32)])
def test_aes_rejects_key_size(key):
    with pytest.raises(InvalidLength):
        aes_encrypt_block(key, PLAINTEXT)
    with pytest.raises(InvalidLength):
        aes_decrypt_block(key, CIPHERTEXT)


@pytest.mark.parametrize("block", [b"", bytes(15), bytes(17), bytes(32)])
def test_aes_rejects_block_size(block):
    with pytest.raises(InvalidLength):
        aes_encrypt_block(KEY, block)
    with pytest.raises(InvalidLength):
        aes_decrypt_block(KEY, block)
