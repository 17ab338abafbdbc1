"""Injectable wall clock.

Services never call ``datetime.now()`` directly; they receive a ``Clock``
so tests can pin time.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo


class Clock:
    """System wall clock returning timezone-aware UTC datetimes."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)

    def today(self, tz_name: str) -> date:
        """Calendar day at *tz_name*."""
        return self.now().astimezone(ZoneInfo(tz_name)).date()


_system_clock = Clock()


def get_clock() -> Clock:
    """FastAPI dependency: the process clock (overridden in tests)."""
    return _system_clock


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes read back from stores without tz support."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
