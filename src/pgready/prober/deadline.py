import time
from typing import Callable

Clock = Callable[[], float]


class Deadline:
    """
    Absolute expiry on a monotonic clock. Attempt deadlines are derived
    from the overall one with limit(), so they can never outlive it.
    """

    def __init__(self, expires_at: float, clock: Clock = time.monotonic):
        self.expires_at = expires_at
        self._clock = clock

    @classmethod
    def after(cls, seconds: float, clock: Clock = time.monotonic) -> "Deadline":
        return cls(clock() + seconds, clock)

    def remaining(self) -> float:
        return max(0.0, self.expires_at - self._clock())

    def expired(self) -> bool:
        return self._clock() >= self.expires_at

    def limit(self, seconds: float) -> "Deadline":
        return Deadline(min(self.expires_at, self._clock() + seconds), self._clock)

    def __repr__(self) -> str:
        return f"Deadline(remaining={self.remaining():.3f}s)"
