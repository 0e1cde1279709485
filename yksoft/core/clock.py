"""
Wall-clock source for the token.

OTP emission reads the current unix second twice (embedded timestamp and
same-second detection) and may have to wait for the next second. Both go
through a Clock so tests can drive emissions without real waits.
"""

import time


class Clock:
    """Interface: whole unix seconds plus a wait for the next second."""

    def now(self) -> int:
        raise NotImplementedError

    def sleep_until_next_second(self) -> int:
        """Block until the second changes; return the new second."""
        raise NotImplementedError


class SystemClock(Clock):
    def now(self) -> int:
        return int(time.time())

    def sleep_until_next_second(self) -> int:
        start = self.now()
        while True:
            t = time.time()
            if int(t) != start:
                return int(t)
            time.sleep(1.0 - (t % 1.0))


SYSTEM_CLOCK = SystemClock()
