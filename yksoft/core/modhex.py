"""
Text codecs used at the token boundary.

- Modhex: Yubikey's keyboard-layout-safe hex. The 16 symbols
  "cbdefghijklnrtuv" sit on the same keys on nearly every keyboard layout,
  so a token typing them as key presses is read back correctly.
- Hex: plain base16 for the secret fields of the record and the
  registration text.

Both decoders are case-insensitive and reject odd-length input or any
character outside their alphabet with InvalidEncoding.
"""

from .errors import InvalidEncoding

MODHEX_ALPHABET = "cbdefghijklnrtuv"
HEX_ALPHABET = "0123456789abcdef"

# symbol -> nibble, built once at import
_MODHEX_DECODE = {symbol: nibble for nibble, symbol in enumerate(MODHEX_ALPHABET)}
_HEX_DECODE = {symbol: nibble for nibble, symbol in enumerate(HEX_ALPHABET)}


def _encode(data: bytes, alphabet: str) -> str:
    out = []
    for b in data:
        out.append(alphabet[b >> 4])
        out.append(alphabet[b & 0x0F])
    return "".join(out)


def _decode(text: str, table: dict, name: str) -> bytes:
    text = text.lower()
    if len(text) % 2 != 0:
        raise InvalidEncoding(f"{name} string must have even length (got {len(text)})")

    out = bytearray(len(text) // 2)
    for i in range(0, len(text), 2):
        high = table.get(text[i])
        low = table.get(text[i + 1])
        if high is None or low is None:
            raise InvalidEncoding(f"invalid {name} character in {text[i:i + 2]!r}")
        out[i // 2] = (high << 4) | low
    return bytes(out)


def modhex_encode(data: bytes) -> str:
    """
    Encode bytes as modhex, high nibble first.

    Example: modhex_encode(b"\\x22\\x22") -> "dddd"
    """
    return _encode(data, MODHEX_ALPHABET)


def modhex_decode(text: str) -> bytes:
    """
    Decode modhex text back into bytes.

    Raises:
        InvalidEncoding: odd length or a character outside the modhex alphabet
    """
    return _decode(text, _MODHEX_DECODE, "modhex")


def hex_encode(data: bytes) -> str:
    """Encode bytes as lowercase hex."""
    return _encode(data, HEX_ALPHABET)


def hex_decode(text: str) -> bytes:
    """
    Decode hex text (either case) into bytes.

    Raises:
        InvalidEncoding: odd length or a non-hex character
    """
    return _decode(text, _HEX_DECODE, "hex")
