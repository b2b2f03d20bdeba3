from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime


class ClockPort(ABC):
    """Port for time-related operations.

    Cache expiry and request timing read time through this port so tests can
    freeze or advance it.
    """

    @abstractmethod
    def now(self) -> datetime:
        """Return current UTC datetime."""
        ...

    def timestamp(self) -> float:
        """Seconds since the epoch for ``now()``."""
        return self.now().timestamp()
