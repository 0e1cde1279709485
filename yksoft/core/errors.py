"""
Exception hierarchy for the soft token.

Every error raised by yksoft derives from YkSoftError so callers (CLI, HTTP
API) can translate them at the edge. Errors that describe bad input also
derive from ValueError; filesystem errors also derive from OSError and keep
the errno / strerror / filename of the underlying error.
"""


class YkSoftError(Exception):
    """Base class for all soft token errors."""


class InvalidEncoding(YkSoftError, ValueError):
    """Malformed modhex / hex text or a malformed record value."""


class InvalidLength(YkSoftError, ValueError):
    """A buffer handed to a block or cipher operation has the wrong size."""


class ChecksumMismatch(YkSoftError, ValueError):
    """A decrypted block failed the CRC residual check."""


class RandomSourceFailure(YkSoftError):
    """The entropy source could not provide random bytes."""


class CounterExhausted(YkSoftError):
    """The usage counter reached 0x7fff; the token must be regenerated."""


class ClockRollback(YkSoftError):
    """A persisted last-use time lies in the future."""


class InvalidCounter(YkSoftError, ValueError):
    """An imported counter value that is negative."""


class InvalidTokenName(YkSoftError, ValueError):
    """A token name that cannot be mapped to a file in the token directory."""


class TokenExists(YkSoftError):
    """A token with the requested name is already stored."""


class PersistenceIOFailure(YkSoftError, OSError):
    """Reading or writing a token record failed."""

    @classmethod
    def from_os_error(cls, exc: OSError, filename=None) -> "PersistenceIOFailure":
        return cls(exc.errno, exc.strerror or str(exc), exc.filename or filename)


class TokenNotFound(PersistenceIOFailure):
    """No record exists for the requested token name."""
