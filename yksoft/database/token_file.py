"""
On-disk record of one soft token.

The record is plain text, one "key: value" per line:

    public_id: ddddcbdefghi          (modhex)
    private_id: 0a1b2c3d4e5f         (hex)
    aes_key: 00112233445566778899aabbccddeeff
    counter: 1
    session: 1
    created: 1700000000
    lastuse: 1700000000
    ponrand: 305419888

Unknown keys and lines without ':' are skipped, missing keys stay 0.
"""

import os
import tempfile
from typing import Iterable, Optional

from yksoft import config
from yksoft.common.log_handler import log
from yksoft.core.clock import SYSTEM_CLOCK, Clock
from yksoft.core.errors import ClockRollback, InvalidEncoding, PersistenceIOFailure, TokenNotFound
from yksoft.core.modhex import hex_decode, hex_encode, modhex_decode, modhex_encode
from yksoft.core.otp_core import AES_KEY_LEN, PRIVATE_ID_LEN, PUBLIC_ID_LEN, SecretMaterial, SoftToken

# Field names for persistence
PUBLIC_ID_FIELD = "public_id"
PRIVATE_ID_FIELD = "private_id"
AES_KEY_FIELD = "aes_key"
COUNTER_FIELD = "counter"
SESSION_FIELD = "session"
CREATED_FIELD = "created"
LASTUSE_FIELD = "lastuse"
PONRAND_FIELD = "ponrand"

# field -> (decoder, byte length)
_BYTE_FIELDS = {
    PUBLIC_ID_FIELD: (modhex_decode, PUBLIC_ID_LEN),
    PRIVATE_ID_FIELD: (hex_decode, PRIVATE_ID_LEN),
    AES_KEY_FIELD: (hex_decode, AES_KEY_LEN),
}

# field -> (attribute, bit width or None for a signed unix time)
_INT_FIELDS = {
    COUNTER_FIELD: ("counter", 16),
    SESSION_FIELD: ("session", 8),
    CREATED_FIELD: ("created", None),
    LASTUSE_FIELD: ("last_use", None),
    PONRAND_FIELD: ("ponrand", 32),
}


def _parse_int(key: str, value: str, bits: Optional[int]) -> int:
    try:
        number = int(value, 10)
    except ValueError as e:
        raise InvalidEncoding(f"invalid {key}: {value!r}") from e
    if bits is not None and not 0 <= number < (1 << bits):
        raise InvalidEncoding(f"invalid {key}: {number} does not fit {bits} bits")
    return number


def parse_record(lines: Iterable[str], clock: Optional[Clock] = None) -> SoftToken:
    """
    Build a SoftToken from record lines.

    Arguments:
        lines: the record, line by line
        clock: source of "now" for the time travel check

    Raises:
        InvalidEncoding: a value cannot be decoded or has the wrong size
        ClockRollback: lastuse is later than now
    """
    clock = clock or SYSTEM_CLOCK
    raw = {PUBLIC_ID_FIELD: bytes(PUBLIC_ID_LEN), PRIVATE_ID_FIELD: bytes(PRIVATE_ID_LEN),
           AES_KEY_FIELD: bytes(AES_KEY_LEN)}
    numbers = {}

    for line in lines:
        key, sep, value = line.partition(":")
        if not sep:
            continue
        key = key.strip()
        value = value.strip()

        if key in _BYTE_FIELDS:
            decode, size = _BYTE_FIELDS[key]
            try:
                decoded = decode(value)
            except InvalidEncoding as e:
                raise InvalidEncoding(f"invalid {key}: {e}") from e
            if len(decoded) != size:
                raise InvalidEncoding(f"invalid {key}: expected {size} bytes, got {len(decoded)}")
            raw[key] = decoded
        elif key in _INT_FIELDS:
            attr, bits = _INT_FIELDS[key]
            numbers[attr] = _parse_int(key, value, bits)

    now = clock.now()
    last_use = numbers.get("last_use", 0)
    if last_use > now:
        raise ClockRollback(f"lastuse time travel detected ({last_use} > now {now})")

    return SoftToken(
        secret=SecretMaterial(
            public_id=raw[PUBLIC_ID_FIELD],
            private_id=raw[PRIVATE_ID_FIELD],
            aes_key=raw[AES_KEY_FIELD],
        ),
        clock=clock,
        **numbers,
    )


def render_record(token: SoftToken) -> str:
    return "".join(
        f"{key}: {value}\n"
        for key, value in (
            (PUBLIC_ID_FIELD, modhex_encode(token.public_id)),
            (PRIVATE_ID_FIELD, hex_encode(token.private_id)),
            (AES_KEY_FIELD, hex_encode(token.aes_key)),
            (COUNTER_FIELD, token.counter),
            (SESSION_FIELD, token.session),
            (CREATED_FIELD, token.created),
            (LASTUSE_FIELD, token.last_use),
            (PONRAND_FIELD, token.ponrand),
        )
    )


def read_token_file(path: str, clock: Optional[Clock] = None) -> SoftToken:
    """
    Load a token record from path.

    Raises:
        TokenNotFound: no file at path
        PersistenceIOFailure: any other filesystem error
        InvalidEncoding / ClockRollback: see parse_record()
    """
    try:
        with open(path, "r", encoding="ascii") as f:
            token = parse_record(f, clock=clock)
    except FileNotFoundError as e:
        raise TokenNotFound.from_os_error(e, path) from e
    except UnicodeDecodeError as e:
        raise InvalidEncoding(f"{path}: record is not ASCII text") from e
    except OSError as e:
        raise PersistenceIOFailure.from_os_error(e, path) from e
    log.debug(f"Loaded token {modhex_encode(token.public_id)} from {path}")
    return token


def write_token_file(path: str, token: SoftToken) -> None:
    """
    Write the record atomically.

    The record goes to a temporary file next to path, is fsync'ed and then
    renamed over path, so the previous record survives any failure. Missing
    parent directories are created (0700), the file itself is 0600.

    Raises:
        PersistenceIOFailure: filesystem error; path is left as it was
    """
    directory = os.path.dirname(os.path.abspath(path))
    tmp_path = None
    try:
        os.makedirs(directory, mode=config.TOKEN_DIR_MODE, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(prefix=".", suffix=".tmp", dir=directory)
        with os.fdopen(fd, "w", encoding="ascii") as f:
            f.write(render_record(token))
            f.flush()
            os.fsync(f.fileno())
        os.chmod(tmp_path, config.TOKEN_FILE_MODE)
        os.replace(tmp_path, path)
        tmp_path = None
    except OSError as e:
        raise PersistenceIOFailure.from_os_error(e, path) from e
    finally:
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except FileNotFoundError:
                pass
    log.debug(f"Saved token {modhex_encode(token.public_id)} to {path}")
