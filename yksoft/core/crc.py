"""
Yubikey CRC16 (ISO 13239 / CRC-16/X-25 register, no final XOR).

The token stores the complement of crc16() over bytes 0..13 in bytes 14..15
of the block. Running crc16() over the whole 16 bytes then always yields
CRC_OK_RESIDUAL, which is how a validator tells a correct decryption apart
from garbage.
"""

CRC_INIT = 0xFFFF
CRC_POLY_REVERSED = 0x8408
CRC_OK_RESIDUAL = 0xF0B8


def crc16(data: bytes) -> int:
    """
    Compute the CRC16 of data, bit by bit, least significant bit first.

    Arguments:
        data: any byte sequence (empty -> 0xffff)

    Returns:
        int: 16-bit CRC register
    """
    crc = CRC_INIT
    for b in data:
        crc ^= b
        for _ in range(8):
            if crc & 1:
                crc = (crc >> 1) ^ CRC_POLY_REVERSED
            else:
                crc >>= 1
    return crc


def crc16_ok(data: bytes) -> bool:
    """True if data ends with a valid complemented CRC (residual check)."""
    return crc16(data) == CRC_OK_RESIDUAL
