from datetime import datetime, timedelta

import pytest

from mobile import filters
from mobile.records import Appointment

NOW = datetime(2024, 3, 14, 10, 30)


def appt(appointment_id, when, status='scheduled'):
    raw = when.strftime('%Y-%m-%d %H:%M:%S') if isinstance(when, datetime) else when
    return Appointment.from_json({'appointment_id': appointment_id, 'appointment_date': raw, 'status': status})


@pytest.fixture
def book():
    return [
        appt(1, NOW - timedelta(hours=2)),
        appt(2, NOW + timedelta(hours=3)),
        appt(3, NOW + timedelta(days=1)),
        appt(4, NOW - timedelta(days=2), 'completed'),
        appt(5, NOW + timedelta(hours=1), 'cancelled'),
        appt(6, NOW - timedelta(days=1), 'missed'),
        appt(7, 'not a date'),
    ]


def ids(items):
    return [a.appointment_id for a in items]


def test_today_only_scheduled(book):
    assert ids(filters.today(book, NOW)) == [1, 2]


def test_upcoming_strictly_after_now(book):
    assert ids(filters.upcoming(book, NOW)) == [2, 3]


def test_past_is_every_terminal_status(book):
    assert ids(filters.past(book)) == [4, 5, 6]


def test_by_status(book):
    assert ids(filters.by_status(book, 'all')) == [1, 2, 3, 4, 5, 6, 7]
    assert ids(filters.by_status(book, 'missed')) == [6]
    assert filters.by_status(book, 'all') is not book


def test_tomorrow_is_upcoming_not_today():
    item = appt(1, NOW + timedelta(days=1))
    assert filters.today([item], NOW) == []
    assert ids(filters.upcoming([item], NOW)) == [1]


def test_filters_are_idempotent_and_ordered(book):
    once = filters.upcoming(book, NOW)
    assert filters.upcoming(once, NOW) == once
    assert filters.by_status(filters.by_status(book, 'scheduled'), 'scheduled') == filters.by_status(book, 'scheduled')


def test_upcoming_shrinks_as_time_passes(book):
    later = NOW + timedelta(hours=5)
    assert set(ids(filters.upcoming(book, later))) <= set(ids(filters.upcoming(book, NOW)))


def test_malformed_dates_do_not_disturb_others(book):
    clean = [a for a in book if a.appointment_id != 7]
    assert filters.today(book, NOW) == filters.today(clean, NOW)
    assert filters.upcoming(book, NOW) == filters.upcoming(clean, NOW)


def test_input_left_untouched(book):
    before = list(book)
    filters.upcoming(book, NOW)
    filters.past(book)
    assert book == before


def test_aware_now_is_compared_in_local_time():
    local_now = NOW.astimezone()
    item = appt(1, NOW + timedelta(minutes=1))
    assert ids(filters.upcoming([item], local_now)) == [1]


def test_stats(book):
    stats = filters.appointment_stats(book, NOW)
    assert stats == filters.AppointmentStats(total=7, today=2, upcoming=2, completed=1, missed=1, cancelled=1)


def test_empty_input():
    assert filters.appointment_stats([], NOW).total == 0
    assert filters.today([], NOW) == []
