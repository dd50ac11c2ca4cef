"""
Streak and daily-challenge helpers. Dates are ISO `YYYY-MM-DD` strings
supplied by the caller; nothing here reads the wall clock.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from typing import AbstractSet, Iterable, List, Optional

from progress_engine.models import DailyChallengeSet, UserProgress


@dataclass(frozen=True)
class StreakDay:
    date: str
    completed: bool
    is_today: bool


def parse_day(value: str) -> date:
    return date.fromisoformat(value)


def previous_day(value: str) -> str:
    return (parse_day(value) - timedelta(days=1)).isoformat()


def is_daily_set_complete(daily_set: Optional[DailyChallengeSet], solved_ids: AbstractSet[str]) -> bool:
    """A missing or empty set is never complete."""
    if daily_set is None or not daily_set.problems:
        return False
    return all(p.id in solved_ids for p in daily_set.problems)


def continued_streak(current_streak: int, last_challenge_date: Optional[str], today: str) -> int:
    """
    Streak value after crediting `today`.

    A run continues from the day before; any gap restarts it at 1. A snapshot
    that was never credited starts from its stored value.
    """
    if not last_challenge_date:
        return current_streak + 1
    if last_challenge_date == previous_day(today):
        return current_streak + 1
    return 1


def streak_run(completed_dates: Iterable[str], end: Optional[str]) -> int:
    """Number of consecutive completed days ending at `end` (inclusive)."""
    if not end:
        return 0
    dates = set(completed_dates)
    run = 0
    cursor = end
    while cursor in dates:
        run += 1
        cursor = previous_day(cursor)
    return run


def effective_streak(progress: UserProgress, today: str) -> int:
    """Streak to display today: a run whose last credit is older than yesterday is broken."""
    last = progress.last_challenge_date
    if not last:
        return 0
    if last == today or last == previous_day(today):
        return progress.current_streak
    return 0


def streak_calendar(completed_dates: Iterable[str], today: str, days: int = 5) -> List[StreakDay]:
    """The last `days` calendar days ending today, oldest first."""
    done = set(completed_dates)
    end = parse_day(today)
    out: List[StreakDay] = []
    for offset in range(days - 1, -1, -1):
        ds = (end - timedelta(days=offset)).isoformat()
        out.append(StreakDay(date=ds, completed=ds in done, is_today=ds == today))
    return out
