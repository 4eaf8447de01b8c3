"""
Appointment status model.

``scheduled`` is the only state with outgoing transitions; the three
others are terminal.  The backend applies the same table and has the
final word, the client uses it to decide which controls to show.
"""
from __future__ import annotations

from enum import Enum
from typing import List, Union


class AppointmentStatus(str, Enum):
    SCHEDULED = 'scheduled'
    COMPLETED = 'completed'
    MISSED = 'missed'
    CANCELLED = 'cancelled'


# Filter sentinel meaning "no status filter"
ALL = 'all'

TERMINAL = frozenset({AppointmentStatus.COMPLETED, AppointmentStatus.MISSED, AppointmentStatus.CANCELLED})

TRANSITIONS = {
    AppointmentStatus.SCHEDULED: (
        AppointmentStatus.COMPLETED,
        AppointmentStatus.MISSED,
        AppointmentStatus.CANCELLED,
    ),
    AppointmentStatus.COMPLETED: (),
    AppointmentStatus.MISSED: (),
    AppointmentStatus.CANCELLED: (),
}

StatusLike = Union[AppointmentStatus, str]


def parse_status(value: StatusLike) -> AppointmentStatus:
    """Coerce a wire value; raises ``ValueError`` for unknown statuses."""
    if isinstance(value, AppointmentStatus):
        return value
    return AppointmentStatus(str(value).strip().lower())


def _safe(value: StatusLike):
    try:
        return parse_status(value)
    except ValueError:
        return None


def can_transition(current: StatusLike, new: StatusLike) -> bool:
    cur, nxt = _safe(current), _safe(new)
    if cur is None or nxt is None:
        return False
    return nxt in TRANSITIONS[cur]


def available_transitions(current: StatusLike) -> List[AppointmentStatus]:
    cur = _safe(current)
    return list(TRANSITIONS[cur]) if cur is not None else []


def is_terminal(status: StatusLike) -> bool:
    return _safe(status) in TERMINAL
