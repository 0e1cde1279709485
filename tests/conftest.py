import pytest

from yksoft.core.clock import Clock
from yksoft.core.entropy import EntropySource
from yksoft.core.errors import RandomSourceFailure


class FakeClock(Clock):
    """Manually advanced clock; waiting for the next second just ticks it."""

    def __init__(self, t: int = 1_700_000_000):
        self.t = t
        self.waits = 0

    def now(self) -> int:
        return self.t

    def sleep_until_next_second(self) -> int:
        self.waits += 1
        self.t += 1
        return self.t


class FakeEntropy(EntropySource):
    """Deterministic byte stream 0x01, 0x02, ... ; can be told to fail."""

    def __init__(self):
        self._next = 1
        self.fail = False

    def random_bytes(self, n: int) -> bytes:
        if self.fail:
            raise RandomSourceFailure("entropy source unavailable: test")
        out = bytes((self._next + i) & 0xFF for i in range(n))
        self._next += n
        return out


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def entropy():
    return FakeEntropy()


@pytest.fixture
def token_dir(tmp_path):
    return str(tmp_path / "tokens")
