"""
Progress logging against a goal.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException

from momentum.api.deps import get_ledger, get_store
from momentum.schema.request import ProgressEntryRequest
from momentum.schema.response import ProgressEntryRead
from momentum.services.event_ledger import EventLedger
from momentum.services.progress_service import GoalNotFoundError, record_progress
from momentum.services.store import DataStore, StoreError

router = APIRouter(prefix="/progress", tags=["progress"])
logger = logging.getLogger("momentum")


@router.post("", response_model=ProgressEntryRead, status_code=201)
async def log_progress(
    body: ProgressEntryRequest,
    store: DataStore = Depends(get_store),
    ledger: EventLedger = Depends(get_ledger),
):
    try:
        return await record_progress(
            store,
            ledger,
            body.user_id,
            body.goal_id,
            body.progress_percent,
            date=body.date,
            mood=body.mood,
            notes=body.notes,
            hours_worked=body.hours_worked,
            tasks_completed=body.tasks_completed,
        )
    except GoalNotFoundError:
        raise HTTPException(status_code=404, detail="Goal not found")
    except StoreError:
        logger.exception("progress_entry_failed", extra={"goal_id": body.goal_id})
        raise HTTPException(status_code=503, detail="Could not save progress")
