"""
Single-block AES-128 adapter.

A Yubikey OTP is exactly one AES block, so there is no chaining, no IV and
no padding: 16 bytes in, 16 bytes out. The cipher itself comes from the
`cryptography` package (ECB mode over a single block is the raw AES
permutation).
"""

from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from .errors import InvalidLength

AES_KEY_LEN = 16
AES_BLOCK_LEN = 16


def _check(key: bytes, block: bytes) -> None:
    if len(key) != AES_KEY_LEN:
        raise InvalidLength(f"AES-128 requires a {AES_KEY_LEN}-byte key (got {len(key)})")
    if len(block) != AES_BLOCK_LEN:
        raise InvalidLength(f"AES block must be {AES_BLOCK_LEN} bytes (got {len(block)})")


def aes_encrypt_block(key: bytes, plaintext: bytes) -> bytes:
    """
    Encrypt one 16-byte block with a 16-byte key.

    Raises:
        InvalidLength: key or plaintext is not exactly 16 bytes
    """
    _check(key, plaintext)
    encryptor = Cipher(algorithms.AES(key), modes.ECB()).encryptor()
    return encryptor.update(plaintext) + encryptor.finalize()


def aes_decrypt_block(key: bytes, ciphertext: bytes) -> bytes:
    """Inverse of aes_encrypt_block(); same length contract."""
    _check(key, ciphertext)
    decryptor = Cipher(algorithms.AES(key), modes.ECB()).decryptor()
    return decryptor.update(ciphertext) + decryptor.finalize()
