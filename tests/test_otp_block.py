import pytest

from yksoft.core.aes import aes_decrypt_block
from yksoft.core.crc import crc16
from yksoft.core.errors import ChecksumMismatch, InvalidEncoding, InvalidLength
from yksoft.core.modhex import modhex_decode, modhex_encode
from yksoft.core.otp_block import OTP_TEXT_LEN, OTPBlock, decrypt_block

KEY = bytes.fromhex("00112233445566778899aabbccddeeff")
UID = bytes.fromhex("0a1b2c3d4e5f")


def _block(**kwargs):
    fields = dict(uid=UID, counter=0x0102, timestamp=0x030405, session=0x06, random=0x0708)
    fields.update(kwargs)
    return OTPBlock(**fields)


def test_layout_is_little_endian():
    data = _block(crc=0x090A).to_bytes()
    assert len(data) == 16
    assert data[0:6] == UID
    assert data[6:8] == b"\x02\x01"          # counter
    assert data[8:10] == b"\x05\x04"         # timestamp low
    assert data[10] == 0x03                  # timestamp high
    assert data[11] == 0x06                  # session
    assert data[12:14] == b"\x08\x07"        # random
    assert data[14:16] == b"\x0a\x09"        # crc


def test_from_bytes_inverts_to_bytes():
    block = _block(crc=0xBEEF)
    assert OTPBlock.from_bytes(block.to_bytes()) == block


@pytest.mark.parametrize("size", [0, 15, 17])
def test_from_bytes_rejects_wrong_size(size):
    with pytest.raises(InvalidLength):
        OTPBlock.from_bytes(bytes(size))


def test_to_bytes_rejects_wrong_uid():
    with pytest.raises(InvalidLength):
        _block(uid=b"\x00" * 5).to_bytes()


def test_stamp_checksum_stores_complement():
    block = _block()
    block.stamp_checksum()
    data = block.to_bytes()
    assert block.crc == ~crc16(data[:14]) & 0xFFFF
    assert int.from_bytes(data[14:16], "little") == block.crc
    assert block.crc_ok()


def test_unstamped_block_fails_residual():
    assert not _block(crc=0).crc_ok()


def test_emit_encrypts_and_encodes():
    block = _block()
    text = block.emit(KEY)
    assert len(text) == OTP_TEXT_LEN == 32
    assert set(text) <= set("cbdefghijklnrtuv")

    plaintext = aes_decrypt_block(KEY, modhex_decode(text))
    assert plaintext == block.to_bytes()


def test_emit_rejects_bad_key():
    with pytest.raises(InvalidLength):
        _block().emit(bytes(15))


def test_decrypt_block():
    block = _block(timestamp=0xFFFFFE)
    decoded = decrypt_block(KEY, block.emit(KEY))
    assert decoded.uid == UID
    assert decoded.counter == 0x0102
    assert decoded.timestamp == 0xFFFFFE
    assert decoded.session == 0x06
    assert decoded.random == 0x0708


def test_decrypt_block_with_wrong_key():
    text = _block().emit(KEY)
    with pytest.raises(ChecksumMismatch):
        decrypt_block(bytes(16), text)


def test_decrypt_block_bad_text():
    with pytest.raises(InvalidEncoding):
        decrypt_block(KEY, "x" * 32)
    with pytest.raises(InvalidLength):
        decrypt_block(KEY, modhex_encode(bytes(8)))
