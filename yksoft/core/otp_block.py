"""
The 16-byte Yubikey OTP block.

Layout (little-endian):

    offset  size  field
    0       6     uid        private ID
    6       2     counter    usage ("power-up") counter
    8       2     tstp_low   low 16 bits of the 8 Hz timestamp
    10      1     tstp_high  high 8 bits of the 8 Hz timestamp
    11      1     session    session use counter
    12      2     random     per-OTP random value
    14      2     crc        ~crc16(bytes 0..13)

emit() stamps the CRC, encrypts the block with the token's AES key and
returns the 32-character modhex ciphertext. from_bytes()/decrypt_block() are
the inverse path, used to check emitted OTPs; they do no replay checking.
"""

import struct
from dataclasses import dataclass

from .aes import aes_decrypt_block, aes_encrypt_block
from .crc import crc16, crc16_ok
from .errors import ChecksumMismatch, InvalidLength
from .modhex import modhex_decode, modhex_encode

UID_LEN = 6
OTP_BLOCK_LEN = 16
OTP_TEXT_LEN = OTP_BLOCK_LEN * 2
TIMESTAMP_MASK = 0xFFFFFF

_LAYOUT = struct.Struct("<6sHHBBHH")


@dataclass
class OTPBlock:
    uid: bytes
    counter: int
    timestamp: int
    session: int
    random: int
    crc: int = 0

    def to_bytes(self) -> bytes:
        """Serialize all 16 bytes, CRC included as currently set."""
        if len(self.uid) != UID_LEN:
            raise InvalidLength(f"uid must be {UID_LEN} bytes (got {len(self.uid)})")
        return _LAYOUT.pack(
            self.uid,
            self.counter & 0xFFFF,
            self.timestamp & 0xFFFF,
            (self.timestamp >> 16) & 0xFF,
            self.session & 0xFF,
            self.random & 0xFFFF,
            self.crc & 0xFFFF,
        )

    @classmethod
    def from_bytes(cls, data: bytes) -> "OTPBlock":
        if len(data) != OTP_BLOCK_LEN:
            raise InvalidLength(f"OTP block must be {OTP_BLOCK_LEN} bytes (got {len(data)})")
        uid, counter, tstp_low, tstp_high, session, rnd, crc = _LAYOUT.unpack(data)
        return cls(
            uid=uid,
            counter=counter,
            timestamp=tstp_low | (tstp_high << 16),
            session=session,
            random=rnd,
            crc=crc,
        )

    def stamp_checksum(self) -> None:
        """Set crc to the complement of crc16() over bytes 0..13."""
        self.crc = ~crc16(self.to_bytes()[:14]) & 0xFFFF

    def crc_ok(self) -> bool:
        """Whole-block residual check."""
        return crc16_ok(self.to_bytes())

    def emit(self, key: bytes) -> str:
        """
        Stamp the CRC, encrypt and encode the block.

        Arguments:
            key: 16-byte AES key of the token

        Returns:
            str: 32 modhex characters

        Raises:
            InvalidLength: key is not 16 bytes
        """
        self.stamp_checksum()
        return modhex_encode(aes_encrypt_block(key, self.to_bytes()))


def decrypt_block(key: bytes, text: str) -> OTPBlock:
    """
    Decode and decrypt the 32-character block part of an OTP.

    Raises:
        InvalidEncoding: text is not modhex
        InvalidLength: text does not decode to exactly 16 bytes
        ChecksumMismatch: wrong key or corrupted text
    """
    block = OTPBlock.from_bytes(aes_decrypt_block(key, modhex_decode(text)))
    if not block.crc_ok():
        raise ChecksumMismatch("CRC residual check failed")
    return block
