# coding: utf-8
"""
Streak Engine

Pure check-in/streak rules, no database access.

Rules (all comparisons use the UTC calendar date, not elapsed hours):
- second check-in on the same UTC day -> DuplicateCheckInError
- last check-in yesterday -> streak + 1
- no previous check-in, or a gap of 2+ days -> streak = 1
- longest_streak = max(longest_streak, current_streak)
- today appended to streak_history, only the last 7 dates kept
- check_ins + 1, points + POINTS_PER_CHECK_IN

23:59 UTC followed by 00:01 UTC the next day counts as consecutive.
"""

from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from typing import Any, Dict, Optional, Tuple

from config.config import STREAK_HISTORY_SIZE, POINTS_PER_CHECK_IN
from astra.core.exceptions import DuplicateCheckInError
from astra.utils.dt import as_utc, date_key, utc_date


@dataclass(frozen=True)
class StreakState:
    """Gamification sub-state of a user"""

    check_ins: int = 0
    points: int = 0
    last_check_in: Optional[datetime] = None
    current_streak: int = 0
    longest_streak: int = 0
    streak_history: Tuple[str, ...] = ()

    @classmethod
    def from_user(cls, user) -> "StreakState":
        return cls(
            check_ins=user.check_ins or 0,
            points=user.points or 0,
            last_check_in=as_utc(user.last_check_in),
            current_streak=user.current_streak or 0,
            longest_streak=user.longest_streak or 0,
            streak_history=tuple(user.streak_history or ()),
        )

    def as_values(self) -> Dict[str, Any]:
        """Column values for an UPDATE on users"""
        return {
            "check_ins": self.check_ins,
            "points": self.points,
            "last_check_in": self.last_check_in,
            "current_streak": self.current_streak,
            "longest_streak": self.longest_streak,
            "streak_history": list(self.streak_history),
        }

    def stats(self) -> Dict[str, Any]:
        return {
            "totalCheckIns": self.check_ins,
            "currentStreak": self.current_streak,
            "longestStreak": self.longest_streak,
            "streakHistory": list(self.streak_history),
        }


def record_check_in(
    state: StreakState,
    now: datetime,
    history_size: int = STREAK_HISTORY_SIZE,
    points_per_check_in: int = POINTS_PER_CHECK_IN,
) -> StreakState:
    """
    Apply one check-in at instant `now` to the streak state

    Args:
        state: Current state
        now: Check-in instant (naive values are treated as UTC)
        history_size: How many dates streak_history keeps
        points_per_check_in: Points awarded per check-in

    Returns:
        New StreakState

    Raises:
        DuplicateCheckInError: last check-in is on the same UTC date
    """
    now = as_utc(now)
    today = utc_date(now)

    if state.last_check_in is not None:
        last_day = utc_date(state.last_check_in)

        if last_day == today:
            raise DuplicateCheckInError(last_check_in=state.last_check_in.isoformat())

        if last_day == today - timedelta(days=1):
            current_streak = state.current_streak + 1
        else:
            current_streak = 1  # gap of 2+ days breaks the streak
    else:
        current_streak = 1

    history = (state.streak_history + (date_key(today),))[-history_size:]

    return replace(
        state,
        check_ins=state.check_ins + 1,
        points=state.points + points_per_check_in,
        last_check_in=now,
        current_streak=current_streak,
        longest_streak=max(state.longest_streak, current_streak),
        streak_history=history,
    )


def check_streak_on_app_open(
    last_check_in: Optional[datetime], current_streak: int, now: datetime
) -> int:
    """
    Passive streak decay, applied on reads

    Returns:
        0 if more than one calendar day has passed since the last check-in,
        otherwise current_streak unchanged
    """
    if last_check_in is None:
        return current_streak

    gap_days = (utc_date(now) - utc_date(last_check_in)).days
    if gap_days > 1:
        return 0
    return current_streak
