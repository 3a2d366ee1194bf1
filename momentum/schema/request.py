"""
Request schemas for the Momentum API.
"""

from datetime import date as dt_date, datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class TrackEventRequest(BaseModel):
    """Any client action worth analysing later: goal_created, task_completed, ..."""
    user_id: str = Field(..., min_length=1)
    event_type: str = Field(..., min_length=1, max_length=64)
    entity_id: Optional[int] = None
    entity_type: Optional[str] = Field(None, max_length=32)
    metadata: Optional[Dict[str, Any]] = None


class HabitEntryRequest(BaseModel):
    date: Optional[dt_date] = Field(None, description="Defaults to today.")
    completed: bool
    value: Optional[int] = Field(None, ge=0, description="For quantifiable habits.")


class ProgressEntryRequest(BaseModel):
    user_id: str = Field(..., min_length=1)
    goal_id: int
    progress_percent: int = Field(..., ge=0, le=100)
    date: Optional[datetime] = None
    mood: Optional[int] = Field(None, ge=1, le=10)
    notes: Optional[str] = Field(None, max_length=2000)
    hours_worked: Optional[int] = Field(None, ge=0)
    tasks_completed: int = Field(0, ge=0)
