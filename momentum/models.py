from datetime import date as dt_date, datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from sqlalchemy import JSON, Column, DateTime
from sqlmodel import Field, SQLModel


def utcnow() -> datetime:
    """Current time as naive UTC, the form every timestamp column stores."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _timestamp(index: bool = False, nullable: bool = False) -> Column:
    # plain SQLAlchemy DateTime: naive UTC values bind as-is
    return Column(DateTime(timezone=False), index=index, nullable=nullable)


class GoalStatus(str, Enum):
    active = "active"
    completed = "completed"
    paused = "paused"


class TaskStatus(str, Enum):
    pending = "pending"
    in_progress = "in_progress"
    completed = "completed"


class HabitFrequency(str, Enum):
    daily = "daily"
    weekly = "weekly"
    monthly = "monthly"


class InsightPriority(str, Enum):
    high = "high"
    medium = "medium"
    low = "low"


class InsightType(str, Enum):
    completion_prediction = "completion_prediction"
    productivity_pattern = "productivity_pattern"
    task_velocity = "task_velocity"
    habit_consistency = "habit_consistency"
    success_factors = "success_factors"


class EventType(str, Enum):
    """Well-known event types. The column itself accepts any string."""
    goal_created = "goal_created"
    goal_completed = "goal_completed"
    task_created = "task_created"
    task_completed = "task_completed"
    progress_updated = "progress_updated"
    habit_completed = "habit_completed"
    habit_missed = "habit_missed"


# ==========================================
# ENTITY TABLES (owned by the CRUD layer, read here)
# ==========================================

class Goal(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: str = Field(index=True)
    title: str
    category_id: Optional[int] = None
    status: GoalStatus = GoalStatus.active
    progress: int = 0  # 0-100, mirrors the newest progress entry
    created_at: datetime = Field(default_factory=utcnow, sa_column=_timestamp())
    completed_at: Optional[datetime] = Field(default=None, sa_column=_timestamp(nullable=True))


class Task(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    goal_id: int = Field(foreign_key="goal.id", index=True)
    title: str
    status: TaskStatus = TaskStatus.pending
    created_at: datetime = Field(default_factory=utcnow, sa_column=_timestamp())
    completed_at: Optional[datetime] = Field(default=None, sa_column=_timestamp(nullable=True))

    @property
    def completed(self) -> bool:
        return self.status == TaskStatus.completed


class Habit(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: str = Field(index=True)
    goal_id: int = Field(foreign_key="goal.id")
    name: str
    frequency: HabitFrequency = HabitFrequency.daily
    target: int = 1
    # derived, written only by the streak calculator
    current_streak: int = 0
    longest_streak: int = 0
    is_active: bool = True


class HabitEntry(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    habit_id: int = Field(foreign_key="habit.id", index=True)
    date: dt_date = Field(index=True)  # day granularity, duplicates allowed
    completed: bool
    value: Optional[int] = None  # for quantifiable habits


class ProgressEntry(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: str = Field(index=True)
    goal_id: int = Field(foreign_key="goal.id", index=True)
    date: datetime = Field(default_factory=utcnow, sa_column=_timestamp())
    progress_percent: int = Field(ge=0, le=100)
    mood: Optional[int] = Field(default=None, ge=1, le=10)
    notes: Optional[str] = None
    hours_worked: Optional[int] = None
    tasks_completed: int = 0


# ==========================================
# ANALYTICS TABLES
# ==========================================

class AnalyticsEvent(SQLModel, table=True):
    """Append-only. Rows are never updated or deleted."""
    __tablename__ = "analytics_event"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: str = Field(index=True)
    event_type: str = Field(index=True)
    entity_id: Optional[int] = None
    entity_type: Optional[str] = None
    # "metadata" is reserved on SQLModel classes
    event_metadata: Dict[str, Any] = Field(default_factory=dict, sa_column=Column("metadata", JSON))
    timestamp: datetime = Field(default_factory=utcnow, sa_column=_timestamp(index=True))


class UserPattern(SQLModel, table=True):
    __tablename__ = "user_pattern"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: str = Field(index=True)
    pattern_type: str
    pattern_data: Dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON))
    confidence: int = 0
    last_updated: datetime = Field(default_factory=utcnow, sa_column=_timestamp())


class MlInsight(SQLModel, table=True):
    __tablename__ = "ml_insight"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: str = Field(index=True)
    insight_type: str = Field(index=True)
    title: str
    description: str
    confidence: int
    priority: InsightPriority = InsightPriority.medium
    action_items: List[str] = Field(default_factory=list, sa_column=Column(JSON))
    data: Dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON))
    is_active: bool = True
    created_at: datetime = Field(default_factory=utcnow, sa_column=_timestamp())
    expires_at: Optional[datetime] = Field(default=None, sa_column=_timestamp(nullable=True))


class PredictionModel(SQLModel, table=True):
    """Scalar statistics snapshot, overwritten per (user_id, model_type)."""
    __tablename__ = "prediction_model"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: str = Field(index=True)
    model_type: str
    model_data: Dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON))
    accuracy: int = 0
    last_trained: datetime = Field(default_factory=utcnow, sa_column=_timestamp())
    predictions: List[Any] = Field(default_factory=list, sa_column=Column(JSON))
