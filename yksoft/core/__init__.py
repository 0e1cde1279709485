"""
Yubikey OTP primitives and the soft token state machine.

Can be imported as: from yksoft.core import <name>
"""
from .crc import CRC_OK_RESIDUAL, crc16
from .errors import (
    ChecksumMismatch,
    ClockRollback,
    CounterExhausted,
    InvalidCounter,
    InvalidEncoding,
    InvalidLength,
    PersistenceIOFailure,
    RandomSourceFailure,
    YkSoftError,
)
from .modhex import hex_decode, hex_encode, modhex_decode, modhex_encode
from .otp_block import OTPBlock, decrypt_block
from .otp_core import SecretMaterial, SoftToken
