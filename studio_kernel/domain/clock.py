"""
Time source for studio services (``studio_kernel.domain.clock``).

Budget history entries, ``created_at`` stamps and the default start date
of a spawned project all read the injected clock.  Engines never see
one: the schedule engine gets its start date as an argument.
"""

from abc import ABC, abstractmethod
from datetime import date, datetime, timezone

STUDIO_EPOCH = datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


class Clock(ABC):
    """Injected into every service that stamps or dates a record."""

    @abstractmethod
    def now(self) -> datetime:
        """Timezone-aware current instant."""
        ...

    def today(self) -> date:
        """Calendar date used as a project's default start."""
        return self.now().date()


class SystemClock(Clock):
    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class DeterministicClock(Clock):
    """Always reports ``fixed_time``, so history stamps and start dates repeat across runs."""

    def __init__(self, fixed_time: datetime | None = None):
        self._fixed_time = fixed_time or STUDIO_EPOCH

    def now(self) -> datetime:
        return self._fixed_time
