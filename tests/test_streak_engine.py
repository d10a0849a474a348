"""
Unit tests for streak rules (no database)
"""

from datetime import datetime, timedelta, UTC

import pytest

from astra.core.exceptions import DuplicateCheckInError
from astra.services.streak_engine import (
    StreakState,
    check_streak_on_app_open,
    record_check_in,
)


def at(day: int, hour: int = 12, minute: int = 0) -> datetime:
    return datetime(2026, 3, day, hour, minute, tzinfo=UTC)


def test_first_check_in_starts_streak():
    state = record_check_in(StreakState(), at(1))

    assert state.check_ins == 1
    assert state.points == 1
    assert state.current_streak == 1
    assert state.longest_streak == 1
    assert state.streak_history == ("2026-03-01",)
    assert state.last_check_in == at(1)


def test_consecutive_days_increment_streak():
    state = StreakState()
    for day in (1, 2, 3):
        state = record_check_in(state, at(day))

    assert state.current_streak == 3
    assert state.longest_streak == 3
    assert state.check_ins == 3


def test_same_utc_day_is_duplicate():
    state = record_check_in(StreakState(), at(1, 0, 5))

    with pytest.raises(DuplicateCheckInError):
        record_check_in(state, at(1, 23, 55))


def test_midnight_boundary_counts_as_consecutive():
    """23:59 then 00:01 the next day is two minutes apart but a new day"""
    state = record_check_in(StreakState(), at(1, 23, 59))
    state = record_check_in(state, at(2, 0, 1))

    assert state.current_streak == 2


def test_calendar_days_not_elapsed_hours():
    # 25.5 hours later but two calendar days on: streak breaks
    state = record_check_in(StreakState(), at(1, 23, 0))
    state = record_check_in(state, at(1, 23, 0) + timedelta(hours=25, minutes=30))
    assert state.current_streak == 1

    # 35 hours later but only one calendar day on: streak continues
    state = record_check_in(StreakState(), at(5, 0, 30))
    state = record_check_in(state, at(5, 0, 30) + timedelta(hours=35))
    assert state.current_streak == 2


def test_gap_resets_streak_but_keeps_longest():
    state = StreakState()
    for day in (1, 2, 3, 4):
        state = record_check_in(state, at(day))

    state = record_check_in(state, at(7))

    assert state.current_streak == 1
    assert state.longest_streak == 4
    assert state.check_ins == 5


def test_history_keeps_last_seven_dates():
    state = StreakState()
    for day in range(1, 11):
        state = record_check_in(state, at(day))

    assert len(state.streak_history) == 7
    assert state.streak_history[0] == "2026-03-04"
    assert state.streak_history[-1] == "2026-03-10"
    assert state.current_streak == 10


def test_naive_datetimes_are_treated_as_utc():
    state = record_check_in(StreakState(), datetime(2026, 3, 1, 23, 0))
    state = record_check_in(state, datetime(2026, 3, 2, 1, 0))

    assert state.current_streak == 2
    assert state.last_check_in.tzinfo is not None


def test_stats_shape():
    stats = record_check_in(StreakState(), at(1)).stats()

    assert stats == {
        "totalCheckIns": 1,
        "currentStreak": 1,
        "longestStreak": 1,
        "streakHistory": ["2026-03-01"],
    }


def test_custom_points_per_check_in():
    state = record_check_in(StreakState(points=10), at(1), points_per_check_in=5)
    assert state.points == 15


class TestStreakDecay:
    """Passive decay applied when a user is read"""

    def test_no_check_in_keeps_value(self):
        assert check_streak_on_app_open(None, 0, at(10)) == 0

    def test_same_day_and_next_day_keep_streak(self):
        assert check_streak_on_app_open(at(1, 8), 5, at(1, 22)) == 5
        assert check_streak_on_app_open(at(1, 23, 59), 5, at(2, 23, 59)) == 5

    def test_two_days_later_resets(self):
        assert check_streak_on_app_open(at(1, 23, 59), 5, at(3, 0, 1)) == 0
