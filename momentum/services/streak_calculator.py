"""
Streak Calculator: current and longest consecutive-day streaks for a habit.
Runs synchronously after every check-in; the only writer of the Habit streak fields.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Dict, Iterable, Optional

from momentum.models import HabitEntry, utcnow

logger = logging.getLogger("momentum")


@dataclass(frozen=True)
class StreakResult:
    current_streak: int
    longest_streak: int


def satisfied_days(entries: Iterable[HabitEntry], reference_date: date) -> Dict[date, bool]:
    """
    Collapse entries to one flag per day (logical OR of `completed`).
    Days after `reference_date` are dropped.
    """
    days: Dict[date, bool] = {}
    for entry in entries:
        day = entry.date.date() if isinstance(entry.date, datetime) else entry.date
        if day > reference_date:
            continue
        days[day] = days.get(day, False) or bool(entry.completed)
    return days


def compute_streaks(entries: Iterable[HabitEntry], reference_date: date) -> StreakResult:
    days = satisfied_days(entries, reference_date)
    if not days:
        return StreakResult(0, 0)

    current = 0
    expected = reference_date
    while days.get(expected, False):
        current += 1
        expected -= timedelta(days=1)

    longest = 0
    run = 0
    previous: Optional[date] = None
    for day in sorted(days):
        if not days[day]:
            run = 0
        elif previous is not None and day - previous == timedelta(days=1) and run > 0:
            run += 1
        else:
            run = 1
        longest = max(longest, run)
        previous = day

    return _clamp(StreakResult(current, max(longest, current)))


def _clamp(result: StreakResult) -> StreakResult:
    current, longest = result.current_streak, result.longest_streak
    if current < 0 or longest < 0 or current > longest:
        logger.warning(
            "streak_invariant_violation",
            extra={"current_streak": current, "longest_streak": longest},
        )
        current = max(0, current)
        longest = max(0, longest, current)
    return StreakResult(current, longest)


async def recompute_streak(store, habit_id: int, reference_date: Optional[date] = None) -> StreakResult:
    """
    Recompute from the habit's full entry history and write both fields back.
    Idempotent: the result depends only on the entry set and the reference date.
    """
    reference_date = reference_date or utcnow().date()
    entries = await store.get_habit_entries_by_habit(habit_id)
    result = compute_streaks(entries, reference_date)
    await store.update_habit_streaks(habit_id, result.current_streak, result.longest_streak)
    logger.debug(
        "streak_recomputed",
        extra={"habit_id": habit_id, "current_streak": result.current_streak,
               "longest_streak": result.longest_streak},
    )
    return result
