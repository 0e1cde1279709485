import os
import stat

import pytest

from yksoft.core.errors import ClockRollback, InvalidEncoding, PersistenceIOFailure, TokenNotFound
from yksoft.core.otp_core import SoftToken
from yksoft.database import token_file
from yksoft.database.token_file import parse_record, read_token_file, render_record, write_token_file

RECORD = """\
public_id: ddddlnrtuvcb
private_id: 0a1b2c3d4e5f
aes_key: 00112233445566778899aabbccddeeff
counter: 42
session: 7
created: 1600000000
lastuse: 1650000000
ponrand: 305419888
"""


def test_parse_record(clock):
    tok = parse_record(RECORD.splitlines(), clock=clock)

    assert tok.public_id == bytes.fromhex("2222abcdef01")
    assert tok.private_id == bytes.fromhex("0a1b2c3d4e5f")
    assert tok.aes_key == bytes.fromhex("00112233445566778899aabbccddeeff")
    assert tok.counter == 42
    assert tok.session == 7
    assert tok.created == 1600000000
    assert tok.last_use == 1650000000
    assert tok.ponrand == 305419888
    assert tok.clock is clock


def test_render_record_round_trip(clock):
    tok = parse_record(RECORD.splitlines(), clock=clock)
    assert render_record(tok) == RECORD


def test_parse_ignores_unknown_keys_and_junk(clock):
    lines = ["# comment", "", "colour: blue", "counter : 3 ", "session:9"]
    tok = parse_record(lines, clock=clock)
    assert tok.counter == 3
    assert tok.session == 9


def test_parse_missing_keys_default_to_zero(clock):
    tok = parse_record([], clock=clock)
    assert tok.public_id == bytes(6)
    assert tok.private_id == bytes(6)
    assert tok.aes_key == bytes(16)
    assert (tok.counter, tok.session, tok.created, tok.last_use, tok.ponrand) == (0, 0, 0, 0, 0)


def test_parse_rejects_future_lastuse(clock):
    with pytest.raises(ClockRollback):
        parse_record([f"lastuse: {clock.t + 1}"], clock=clock)


def test_parse_accepts_lastuse_now(clock):
    assert parse_record([f"lastuse: {clock.t}"], clock=clock).last_use == clock.t


@pytest.mark.parametrize("line", [
    "counter: abc",
    "counter: 65536",
    "counter: -1",
    "session: 256",
    "ponrand: 4294967296",
    "created: yesterday",
    "public_id: 2222aabbccdd",
    "public_id: dddd",
    "private_id: 0a1b",
    "aes_key: zz",
])
def test_parse_rejects_malformed_values(clock, line):
    with pytest.raises(InvalidEncoding):
        parse_record([line], clock=clock)


def test_save_then_load(tmp_path, clock):
    tok = SoftToken.new(clock=clock)
    tok.session = 17
    path = str(tmp_path / "nested" / "dir" / "test-token")

    write_token_file(path, tok)
    loaded = read_token_file(path, clock=clock)

    assert loaded.public_id == tok.public_id
    assert loaded.private_id == tok.private_id
    assert loaded.aes_key == tok.aes_key
    assert loaded.counter == tok.counter
    assert loaded.session == 17
    assert loaded.created == tok.created
    assert loaded.last_use == tok.last_use
    assert loaded.ponrand == tok.ponrand


def test_save_file_permissions(tmp_path, clock):
    path = str(tmp_path / "tok")
    write_token_file(path, SoftToken.new(clock=clock))
    assert stat.S_IMODE(os.stat(path).st_mode) == 0o600


def test_save_truncates_existing_record(tmp_path, clock):
    path = tmp_path / "tok"
    path.write_text(RECORD + "extra: " + "x" * 500 + "\n")
    tok = SoftToken.new(clock=clock)

    write_token_file(str(path), tok)

    assert path.read_text() == render_record(tok)


def test_failed_save_keeps_previous_record(tmp_path, clock, monkeypatch):
    path = tmp_path / "tok"
    path.write_text(RECORD)

    def broken_replace(src, dst):
        raise OSError(28, "No space left on device")

    monkeypatch.setattr(token_file.os, "replace", broken_replace)

    with pytest.raises(PersistenceIOFailure) as exc_info:
        write_token_file(str(path), SoftToken.new(clock=clock))

    assert exc_info.value.errno == 28
    assert isinstance(exc_info.value, OSError)
    assert path.read_text() == RECORD
    assert sorted(os.listdir(tmp_path)) == ["tok"]


def test_load_missing_file(tmp_path):
    with pytest.raises(TokenNotFound):
        read_token_file(str(tmp_path / "nope"))


def test_load_directory_is_io_failure(tmp_path):
    with pytest.raises(PersistenceIOFailure):
        read_token_file(str(tmp_path))


def test_load_rejects_future_lastuse(tmp_path, clock):
    path = tmp_path / "tok"
    path.write_text(RECORD.replace("lastuse: 1650000000", f"lastuse: {clock.t + 3600}"))
    with pytest.raises(ClockRollback):
        read_token_file(str(path), clock=clock)
