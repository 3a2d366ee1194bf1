from datetime import datetime
from typing import Optional

from momentum.models import EventType, ProgressEntry, utcnow
from momentum.services.store import DataStore, StoreError


class GoalNotFoundError(LookupError):
    pass


async def record_progress(
    store: DataStore,
    ledger,
    user_id: str,
    goal_id: int,
    progress_percent: int,
    date: Optional[datetime] = None,
    mood: Optional[int] = None,
    notes: Optional[str] = None,
    hours_worked: Optional[int] = None,
    tasks_completed: int = 0,
) -> ProgressEntry:
    goal = await store.get_goal(goal_id)
    if goal is None or goal.user_id != user_id:
        raise GoalNotFoundError(goal_id)

    entry = ProgressEntry(
        user_id=user_id,
        goal_id=goal_id,
        date=date or utcnow(),
        progress_percent=max(0, min(100, progress_percent)),
        mood=mood,
        notes=notes,
        hours_worked=hours_worked,
        tasks_completed=tasks_completed,
    )
    try:
        await store.create_progress_entry(entry)
        await store.commit()
    except StoreError:
        await store.rollback()
        raise

    await ledger.track_event(
        user_id,
        EventType.progress_updated.value,
        entity_id=goal_id,
        entity_type="goal",
        metadata={"progress_percent": entry.progress_percent, "tasks_completed": tasks_completed},
    )
    return entry
