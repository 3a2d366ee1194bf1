"""
Response schemas for the Momentum API.
"""

from datetime import date as dt_date, datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel

from momentum.models import InsightPriority
from momentum.schemas.patterns import InsightData


class InsightRead(BaseModel):
    id: int
    user_id: str
    insight_type: str
    title: str
    description: str
    confidence: int
    priority: InsightPriority
    action_items: List[str]
    data: InsightData
    is_active: bool
    created_at: datetime
    expires_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class GenerateInsightsResponse(BaseModel):
    insights: List[InsightRead]
    message: str


class RecommendationsResponse(BaseModel):
    recommendations: List[str]


class UserPatternRead(BaseModel):
    pattern_type: str
    pattern_data: Dict[str, Any]
    confidence: int
    last_updated: datetime

    class Config:
        from_attributes = True


class TrackEventResponse(BaseModel):
    success: bool
    event_id: Optional[int] = None


class StreakRead(BaseModel):
    habit_id: int
    current_streak: int
    longest_streak: int


class HabitEntryRead(BaseModel):
    id: int
    habit_id: int
    date: dt_date
    completed: bool
    value: Optional[int] = None

    class Config:
        from_attributes = True


class HabitCheckInResponse(BaseModel):
    entry: HabitEntryRead
    streak: StreakRead


class ProgressEntryRead(BaseModel):
    id: int
    user_id: str
    goal_id: int
    date: datetime
    progress_percent: int
    mood: Optional[int] = None
    notes: Optional[str] = None
    hours_worked: Optional[int] = None
    tasks_completed: int

    class Config:
        from_attributes = True
