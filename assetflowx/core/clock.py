"""Wall-clock access and the wire format for timestamps.

Services take a ``Clock`` so tests can move time forward (order expiry,
idempotency window) without sleeping.
"""

from __future__ import annotations

import datetime
from collections.abc import Callable

Clock = Callable[[], datetime.datetime]


def utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.UTC)


def epoch_ms(moment: datetime.datetime) -> int:
    return int(moment.timestamp() * 1000)


def isoformat_z(moment: datetime.datetime) -> str:
    """2025-10-19T08:15:00.123Z: millisecond precision, UTC, Z suffix."""
    utc = moment.astimezone(datetime.UTC)
    return utc.strftime("%Y-%m-%dT%H:%M:%S.") + f"{utc.microsecond // 1000:03d}Z"


class FrozenClock:
    """A clock that only moves when told to."""

    def __init__(self, start: datetime.datetime | None = None) -> None:
        self._now = start or utcnow()

    def __call__(self) -> datetime.datetime:
        return self._now

    def advance(self, **delta: float) -> datetime.datetime:
        self._now += datetime.timedelta(**delta)
        return self._now

    def set(self, moment: datetime.datetime) -> None:
        self._now = moment
