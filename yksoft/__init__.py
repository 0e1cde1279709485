"""
yksoft package
==============

Software Yubikey token: emulates a Yubikey in OTP mode and produces
44-character modhex OTPs that any Yubikey validator (yubikey-val,
FreeRADIUS rlm_yubikey, ...) accepts once the token's registration info
has been provisioned there.

Layout
- yksoft.core      : modhex / hex codecs, CRC16, AES block adapter,
                     OTP block codec, SoftToken state machine, CLI
- yksoft.database  : token record files and the named-token manager
- yksoft.backend   : Flask HTTP API over the token manager

Quick use
>>> from yksoft.database.token_manager import create_token, save_token, emit_otp
>>> handle = create_token("vpn")
>>> save_token(handle)
>>> otp, must_persist = emit_otp(handle)
>>> save_token(handle)          # persist before using the OTP
"""

__version__ = "1.0.0"
