"""
otp_core.py — Soft token state machine.

A SoftToken holds the secret material of one emulated Yubikey (public ID,
private ID, AES key) and the state a real key keeps across uses (usage
counter, session counter, timestamps, power-on random). generate_otp() is
the equivalent of touching the key: it advances the counters, builds an OTP
block and returns the 44-character OTP.

Notes:
- The token performs no locking. One caller owns a SoftToken at a time and
  must persist it (see yksoft.database) before disclosing the OTP it got;
  otherwise a crash rolls the counters back and the disclosed OTP stays
  replayable.
- Time and randomness come from injectable sources (clock / entropy).
"""

from dataclasses import dataclass, field
from typing import Optional

from yksoft.common.log_handler import log

from .clock import SYSTEM_CLOCK, Clock
from .entropy import SYSTEM_ENTROPY, EntropySource
from .errors import CounterExhausted, InvalidCounter, InvalidLength
from .modhex import hex_encode, modhex_encode
from .otp_block import TIMESTAMP_MASK, UID_LEN, OTPBlock

# --- Config / constants ----------------------------------------------------
PUBLIC_ID_LEN = 6
PRIVATE_ID_LEN = UID_LEN
AES_KEY_LEN = 16
PUBLIC_ID_PREFIX = b"\x22\x22"      # "dddd" in modhex
COUNTER_MAX = 0x7FFF
SESSION_MAX = 0xFF
PONRAND_MASK = 0xFFFFFFF0           # low nibble is the same-second disambiguator
PONRAND_NIBBLE_LIMIT = 6
TICKS_PER_SECOND = 8


@dataclass(frozen=True)
class SecretMaterial:
    """Identity of a token. Immutable; replace the token to change it."""

    public_id: bytes
    private_id: bytes = field(repr=False)
    aes_key: bytes = field(repr=False)

    def __post_init__(self):
        for name, value, size in (
            ("public_id", self.public_id, PUBLIC_ID_LEN),
            ("private_id", self.private_id, PRIVATE_ID_LEN),
            ("aes_key", self.aes_key, AES_KEY_LEN),
        ):
            if len(value) != size:
                raise InvalidLength(f"{name} must be {size} bytes (got {len(value)})")


def _new_ponrand(entropy: EntropySource) -> int:
    return entropy.random_uint(4) & PONRAND_MASK


@dataclass
class SoftToken:
    secret: SecretMaterial
    counter: int = 0
    session: int = 0
    created: int = 0
    last_use: int = 0
    ponrand: int = 0
    clock: Clock = field(default=SYSTEM_CLOCK, repr=False, compare=False)
    entropy: EntropySource = field(default=SYSTEM_ENTROPY, repr=False, compare=False)

    @property
    def public_id(self) -> bytes:
        return self.secret.public_id

    @property
    def private_id(self) -> bytes:
        return self.secret.private_id

    @property
    def aes_key(self) -> bytes:
        return self.secret.aes_key

    # --- Creation ----------------------------------------------------------
    @classmethod
    def _fresh(cls, clock: Optional[Clock], entropy: Optional[EntropySource]) -> "SoftToken":
        clock = clock or SYSTEM_CLOCK
        entropy = entropy or SYSTEM_ENTROPY

        secret = SecretMaterial(
            public_id=PUBLIC_ID_PREFIX + entropy.random_bytes(PUBLIC_ID_LEN - len(PUBLIC_ID_PREFIX)),
            private_id=entropy.random_bytes(PRIVATE_ID_LEN),
            aes_key=entropy.random_bytes(AES_KEY_LEN),
        )
        ponrand = _new_ponrand(entropy)
        now = clock.now()
        return cls(
            secret=secret,
            counter=1,
            session=1,
            created=now,
            last_use=now,
            ponrand=ponrand,
            clock=clock,
            entropy=entropy,
        )

    @classmethod
    def new(cls, clock: Optional[Clock] = None, entropy: Optional[EntropySource] = None) -> "SoftToken":
        """
        Create a token with fresh random identity.

        - public ID: "dddd" prefix + 4 random bytes
        - private ID (6 bytes) and AES key (16 bytes): random
        - counter = session = 1 (first "power up", first use)
        - created = last_use = now, ponrand random with low nibble cleared

        Raises:
            RandomSourceFailure: entropy unavailable
        """
        token = cls._fresh(clock, entropy)
        log.info(f"Created token {modhex_encode(token.public_id)}")
        return token

    @classmethod
    def new_with_options(
        cls,
        public_id: Optional[bytes] = None,
        private_id: Optional[bytes] = None,
        aes_key: Optional[bytes] = None,
        counter: int = 0,
        clock: Optional[Clock] = None,
        entropy: Optional[EntropySource] = None,
    ) -> "SoftToken":
        """
        Create a token, substituting any identity field that is supplied.

        Used to import an existing key: counter is the last counter value the
        validator has seen, so the token continues at counter + 1.

        Arguments:
            public_id: 6 bytes, or None for a random "dddd..." ID
            private_id: 6 bytes, or None for random
            aes_key: 16 bytes, or None for random
            counter: last used counter (0..0x7ffe)

        Raises:
            InvalidLength: a supplied field has the wrong size
            CounterExhausted: counter + 1 would exceed 0x7fff
            InvalidCounter: negative counter
        """
        if counter < 0:
            raise InvalidCounter(f"counter must not be negative (got {counter})")
        if counter + 1 > COUNTER_MAX:
            raise CounterExhausted(f"counter {counter} leaves no usable value below {COUNTER_MAX:#x}")

        token = cls._fresh(clock, entropy)
        token.secret = SecretMaterial(
            public_id=token.public_id if public_id is None else bytes(public_id),
            private_id=token.private_id if private_id is None else bytes(private_id),
            aes_key=token.aes_key if aes_key is None else bytes(aes_key),
        )
        token.counter = counter + 1
        log.info(f"Imported token {modhex_encode(token.public_id)} at counter {token.counter}")
        return token

    # --- OTP ---------------------------------------------------------------
    def generate_otp(self) -> str:
        """
        Emit the next OTP and advance the token state.

        Steps:
        1. session += 1; when session is at 0xff it wraps to 1 and counter
           += 1 with a fresh ponrand (CounterExhausted at 0x7fff)
        2. now = clock.now()
        3. same second as last_use: bump ponrand's low nibble, or once it is
           past 6 wait for the next second and clear it.
           Otherwise last_use = now and clear the nibble.
        4. timestamp = ((now - created) * 8 + ponrand) mod 0xffffff
        5. random = 16 fresh random bits
        6. encrypt the block with the AES key
        7. return modhex(public_id) + block text (44 characters)

        The new state is only committed once the OTP text exists, so a
        failure leaves the token untouched.

        Raises:
            CounterExhausted: the token must be regenerated
            RandomSourceFailure: entropy unavailable
        """
        counter = self.counter
        session = self.session
        last_use = self.last_use
        ponrand = self.ponrand

        if session == SESSION_MAX:
            if counter >= COUNTER_MAX:
                raise CounterExhausted("token counter at max, token must be regenerated")
            counter += 1
            ponrand = _new_ponrand(self.entropy)
            session = 1
        else:
            session += 1

        now = self.clock.now()
        if now == last_use:
            if (ponrand & 0x0F) > PONRAND_NIBBLE_LIMIT:
                log.debug("Same-second OTP limit reached, waiting for the next second")
                now = self.clock.sleep_until_next_second()
                ponrand &= PONRAND_MASK
            else:
                ponrand += 1
        else:
            last_use = now
            ponrand &= PONRAND_MASK

        timestamp = ((now - self.created) * TICKS_PER_SECOND + ponrand) % TIMESTAMP_MASK

        block = OTPBlock(
            uid=self.private_id,
            counter=counter,
            timestamp=timestamp,
            session=session,
            random=self.entropy.random_uint(2),
        )
        otp = modhex_encode(self.public_id) + block.emit(self.aes_key)

        self.counter = counter
        self.session = session
        self.last_use = last_use
        self.ponrand = ponrand
        log.debug(f"OTP emitted for {modhex_encode(self.public_id)}: counter={counter} session={session}")
        return otp

    # --- Export ------------------------------------------------------------
    def registration_info(self) -> str:
        """
        "<modhex public ID>, <hex private ID>, <hex AES key>" for provisioning
        a validator. The only place secret material leaves the token in clear.
        """
        return (
            f"{modhex_encode(self.public_id)}, "
            f"{hex_encode(self.private_id)}, "
            f"{hex_encode(self.aes_key)}"
        )

    def status(self) -> dict:
        """Non-secret view of the token."""
        return {
            "public_id": modhex_encode(self.public_id),
            "counter": self.counter,
            "session": self.session,
            "created": self.created,
            "lastuse": self.last_use,
        }
