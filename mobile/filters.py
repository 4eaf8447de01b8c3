"""
Derived appointment views.

Pure functions over a list of :class:`~mobile.records.Appointment`.
They return new lists in source order and never touch the input.  A
record whose timestamp did not parse is left out of every time-based
view.

Both ``today`` and ``upcoming`` only count scheduled appointments, so
the two numbers on a dashboard are computed with the same rule.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, List

from mobile.records import Appointment
from mobile.status import ALL, TERMINAL, AppointmentStatus, StatusLike


def _local(now: datetime) -> datetime:
    if now.tzinfo is not None:
        return now.astimezone().replace(tzinfo=None)
    return now


def _scheduled(a: Appointment) -> bool:
    return a.status == AppointmentStatus.SCHEDULED.value


def today(items: Iterable[Appointment], now: datetime) -> List[Appointment]:
    day = _local(now).date()
    return [a for a in items if _scheduled(a) and a.scheduled_at is not None and a.scheduled_at.date() == day]


def upcoming(items: Iterable[Appointment], now: datetime) -> List[Appointment]:
    ref = _local(now)
    return [a for a in items if _scheduled(a) and a.scheduled_at is not None and a.scheduled_at > ref]


def past(items: Iterable[Appointment]) -> List[Appointment]:
    """Completed, missed and cancelled appointments, whatever their date."""
    terminal = {s.value for s in TERMINAL}
    return [a for a in items if a.status in terminal]


def by_status(items: Iterable[Appointment], status: StatusLike) -> List[Appointment]:
    wanted = status.value if isinstance(status, AppointmentStatus) else str(status).lower()
    if wanted == ALL:
        return list(items)
    return [a for a in items if a.status == wanted]


@dataclass(frozen=True)
class AppointmentStats:
    total: int
    today: int
    upcoming: int
    completed: int
    missed: int
    cancelled: int


def appointment_stats(items: Iterable[Appointment], now: datetime) -> AppointmentStats:
    items = list(items)
    return AppointmentStats(
        total=len(items),
        today=len(today(items, now)),
        upcoming=len(upcoming(items, now)),
        completed=len(by_status(items, AppointmentStatus.COMPLETED)),
        missed=len(by_status(items, AppointmentStatus.MISSED)),
        cancelled=len(by_status(items, AppointmentStatus.CANCELLED)),
    )
