"""
Habit check-ins and streak maintenance.
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException

from momentum.api.deps import get_ledger, get_store
from momentum.models import utcnow
from momentum.schema.request import HabitEntryRequest
from momentum.schema.response import HabitCheckInResponse, HabitEntryRead, StreakRead
from momentum.services.event_ledger import EventLedger
from momentum.services.habit_service import HabitNotFoundError, record_habit_entry, recompute_habit
from momentum.services.store import DataStore, StoreError

router = APIRouter(prefix="/habits", tags=["habits"])
logger = logging.getLogger("momentum")


@router.post("/{habit_id}/entries", response_model=HabitCheckInResponse, status_code=201)
async def log_habit_entry(
    habit_id: int,
    body: HabitEntryRequest,
    store: DataStore = Depends(get_store),
    ledger: EventLedger = Depends(get_ledger),
):
    """Record a check-in and return the refreshed streaks."""
    day = body.date or utcnow().date()
    try:
        entry, habit, streaks = await record_habit_entry(
            store, ledger, habit_id, day, body.completed, value=body.value
        )
    except HabitNotFoundError:
        raise HTTPException(status_code=404, detail="Habit not found")
    except StoreError:
        logger.exception("habit_entry_failed", extra={"habit_id": habit_id})
        raise HTTPException(status_code=503, detail="Could not save habit entry")

    return HabitCheckInResponse(
        entry=HabitEntryRead.model_validate(entry),
        streak=StreakRead(
            habit_id=habit.id,
            current_streak=streaks.current_streak,
            longest_streak=streaks.longest_streak,
        ),
    )


@router.get("/{habit_id}/entries", response_model=List[HabitEntryRead])
async def list_habit_entries(habit_id: int, store: DataStore = Depends(get_store)):
    try:
        if await store.get_habit(habit_id) is None:
            raise HTTPException(status_code=404, detail="Habit not found")
        return await store.get_habit_entries_by_habit(habit_id)
    except StoreError:
        logger.exception("habit_entries_failed", extra={"habit_id": habit_id})
        raise HTTPException(status_code=503, detail="Habit entries are temporarily unavailable")


@router.post("/{habit_id}/streak/recompute", response_model=StreakRead)
async def recompute_habit_streak(habit_id: int, store: DataStore = Depends(get_store)):
    """Replay the full entry history, e.g. after backfilling old check-ins."""
    try:
        streaks = await recompute_habit(store, habit_id)
    except HabitNotFoundError:
        raise HTTPException(status_code=404, detail="Habit not found")
    except StoreError:
        logger.exception("streak_recompute_failed", extra={"habit_id": habit_id})
        raise HTTPException(status_code=503, detail="Could not recompute streak")
    return StreakRead(
        habit_id=habit_id,
        current_streak=streaks.current_streak,
        longest_streak=streaks.longest_streak,
    )
