"""
Random bytes for secret material, PonRand and per-OTP randoms.

Backed by os.urandom (CSPRNG). A failure of the OS source surfaces as
RandomSourceFailure so the operation in progress can abort without
committing any state.
"""

import os

from .errors import RandomSourceFailure


class EntropySource:
    def random_bytes(self, n: int) -> bytes:
        raise NotImplementedError

    def random_uint(self, nbytes: int) -> int:
        """Little-endian unsigned integer built from nbytes random bytes."""
        return int.from_bytes(self.random_bytes(nbytes), "little")


class SystemEntropy(EntropySource):
    def random_bytes(self, n: int) -> bytes:
        try:
            return os.urandom(n)
        except (OSError, NotImplementedError) as e:
            raise RandomSourceFailure(f"entropy source unavailable: {e}") from e


SYSTEM_ENTROPY = SystemEntropy()
