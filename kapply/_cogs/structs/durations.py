"""
Time amounts and retry intervals used in waiting for the resources.

Most of the code works with seconds as floats. The amount-and-unit pairs
are only preserved where they are shown back to the users: e.g. in the
timeout errors, so that they see the same numbers as they have provided.
"""
import dataclasses
import enum
from typing import Iterator, Optional


class TimeUnit(enum.Enum):
    NANOSECONDS = 1e-9
    MICROSECONDS = 1e-6
    MILLISECONDS = 1e-3
    SECONDS = 1.0
    MINUTES = 60.0
    HOURS = 3600.0
    DAYS = 86400.0

    def to_seconds(self, amount: float) -> float:
        return amount * self.value

    def from_seconds(self, seconds: float) -> float:
        return seconds / self.value


@dataclasses.dataclass(frozen=True)
class Backoff:
    """
    An exponential backoff of the re-checks while waiting for a condition.

    The first interval is ``initial``, and every next one is multiplied
    by ``multiplier``, but never exceeds ``maximum`` (if it is set).
    """
    initial: float
    multiplier: float = 2.0
    maximum: Optional[float] = None

    def delays(self) -> Iterator[float]:
        delay = self.initial
        while True:
            yield delay if self.maximum is None else min(delay, self.maximum)
            delay *= self.multiplier  # floats overflow to inf, never fail
