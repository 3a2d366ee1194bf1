import logging
from datetime import date as dt_date
from typing import Optional, Tuple

from momentum.models import EventType, Habit, HabitEntry
from momentum.services.store import DataStore, StoreError
from momentum.services.streak_calculator import StreakResult, recompute_streak

logger = logging.getLogger("momentum")


class HabitNotFoundError(LookupError):
    pass


async def record_habit_entry(
    store: DataStore,
    ledger,
    habit_id: int,
    day: dt_date,
    completed: bool,
    value: Optional[int] = None,
    reference_date: Optional[dt_date] = None,
) -> Tuple[HabitEntry, Habit, StreakResult]:
    """
    Store a check-in, recompute the habit's streaks in the same transaction,
    then record the activity event once the write is committed.
    """
    habit = await store.get_habit(habit_id)
    if habit is None:
        raise HabitNotFoundError(habit_id)

    try:
        entry = await store.create_habit_entry(
            HabitEntry(habit_id=habit_id, date=day, completed=completed, value=value)
        )
        streaks = await recompute_streak(store, habit_id, reference_date)
        await store.commit()
    except StoreError:
        await store.rollback()
        raise

    await ledger.track_event(
        habit.user_id,
        EventType.habit_completed.value if completed else EventType.habit_missed.value,
        entity_id=habit_id,
        entity_type="habit",
        metadata={
            "date": day.isoformat(),
            "value": value,
            "current_streak": streaks.current_streak,
        },
    )
    return entry, habit, streaks


async def recompute_habit(store: DataStore, habit_id: int, reference_date: Optional[dt_date] = None) -> StreakResult:
    """Full replay of a habit's history, e.g. after backfilling old entries."""
    habit = await store.get_habit(habit_id)
    if habit is None:
        raise HabitNotFoundError(habit_id)
    try:
        streaks = await recompute_streak(store, habit_id, reference_date)
        await store.commit()
    except StoreError:
        await store.rollback()
        raise
    return streaks
