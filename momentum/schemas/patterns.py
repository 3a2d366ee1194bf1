"""
Structured pattern records produced by the pattern analyzer and the
per-type insight payloads built from them.

Every insight `data` blob is one member of the `InsightData` union, keyed
by `kind`, so narrative output can never change a payload's shape.
"""

from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter

TrendDirection = Literal["increasing", "decreasing", "stable"]
HabitStrength = Literal["strong", "steady", "weak"]


class ProductivityPattern(BaseModel):
    kind: Literal["productivity_pattern"] = "productivity_pattern"
    event_count: int
    peak_hour: int = Field(..., ge=0, le=23)
    peak_day: int = Field(..., ge=0, le=6, description="0 = Sunday")
    peak_day_name: str
    hourly_activity: List[int]
    daily_activity: List[int]
    weekly_labels: List[str] = Field(..., description="ISO weeks, oldest first")
    weekly_trend: List[int]
    trend_direction: TrendDirection
    average_mood: Optional[float] = None
    hours_worked: int = 0


class TaskVelocity(BaseModel):
    kind: Literal["task_velocity"] = "task_velocity"
    velocity_per_week: float
    recent_completions: int
    total_completed_tasks: int
    open_tasks: int
    estimated_weeks_to_clear: Optional[float] = Field(
        None, description="None when velocity is zero (undetermined)."
    )


class HabitScore(BaseModel):
    habit_id: int
    habit: str
    completion_rate: float
    streak: int
    strength: HabitStrength


class HabitConsistency(BaseModel):
    kind: Literal["habit_consistency"] = "habit_consistency"
    average_consistency: float
    habit_scores: List[HabitScore]
    strong_habits: int
    weak_habits: int


class SuccessMetrics(BaseModel):
    completed_goals: int
    total_goals: int
    goal_completion_rate: float
    task_completion_rate: float
    top_categories: List[str]
    avg_days_to_complete: float
    active_habits: int


class CompletionOutlook(BaseModel):
    total_goals: int
    active_goals: int
    completed_goals: int
    avg_progress: float
    total_tasks: int
    completed_tasks: int
    recent_progress_entries: int


class SuccessFactorsData(BaseModel):
    kind: Literal["success_factors"] = "success_factors"
    metrics: SuccessMetrics
    success_factors: List[str] = Field(default_factory=list)
    strengths: List[str] = Field(default_factory=list)
    optimization_areas: List[str] = Field(default_factory=list)


class CompletionPredictionData(BaseModel):
    kind: Literal["completion_prediction"] = "completion_prediction"
    prediction: int = Field(..., ge=0, le=100)
    key_factors: List[str] = Field(default_factory=list)
    risk_areas: List[str] = Field(default_factory=list)
    analysis: CompletionOutlook


InsightData = Annotated[
    Union[
        ProductivityPattern,
        TaskVelocity,
        HabitConsistency,
        SuccessFactorsData,
        CompletionPredictionData,
    ],
    Field(discriminator="kind"),
]

insight_data_adapter = TypeAdapter(InsightData)
