"""
Data Store: typed accessors over the relational schema.
The analytics core never issues raw queries; it goes through this class.
Writes only flush; the caller owns the transaction and decides when to commit.
"""

import functools
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import or_, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from momentum.models import (
    AnalyticsEvent,
    Goal,
    Habit,
    HabitEntry,
    MlInsight,
    PredictionModel,
    ProgressEntry,
    Task,
    UserPattern,
    utcnow,
)


class StoreError(Exception):
    """Raised when a Data Store read or write fails."""
    pass


def _store_op(fn):
    @functools.wraps(fn)
    async def wrapper(self, *args, **kwargs):
        try:
            return await fn(self, *args, **kwargs)
        except SQLAlchemyError as e:
            raise StoreError(f"{fn.__name__} failed: {e}") from e
    return wrapper


class DataStore:
    def __init__(self, db: AsyncSession):
        self.db = db

    # ==========================================
    # READS
    # ==========================================

    @_store_op
    async def get_goal(self, goal_id: int) -> Optional[Goal]:
        return await self.db.get(Goal, goal_id)

    @_store_op
    async def get_goals_by_user(self, user_id: str) -> List[Goal]:
        res = await self.db.execute(select(Goal).where(Goal.user_id == user_id).order_by(Goal.id))
        return list(res.scalars().all())

    @_store_op
    async def get_tasks_by_user(self, user_id: str) -> List[Task]:
        res = await self.db.execute(
            select(Task)
            .join(Goal, Task.goal_id == Goal.id)
            .where(Goal.user_id == user_id)
            .order_by(Task.id)
        )
        return list(res.scalars().all())

    @_store_op
    async def get_progress_entries_by_user(self, user_id: str) -> List[ProgressEntry]:
        res = await self.db.execute(
            select(ProgressEntry)
            .where(ProgressEntry.user_id == user_id)
            .order_by(ProgressEntry.date, ProgressEntry.id)
        )
        return list(res.scalars().all())

    @_store_op
    async def get_habit(self, habit_id: int) -> Optional[Habit]:
        return await self.db.get(Habit, habit_id)

    @_store_op
    async def get_habits_by_user(self, user_id: str) -> List[Habit]:
        res = await self.db.execute(select(Habit).where(Habit.user_id == user_id).order_by(Habit.id))
        return list(res.scalars().all())

    @_store_op
    async def get_habit_entries_by_habit(self, habit_id: int) -> List[HabitEntry]:
        res = await self.db.execute(
            select(HabitEntry)
            .where(HabitEntry.habit_id == habit_id)
            .order_by(HabitEntry.date.desc(), HabitEntry.id)
        )
        return list(res.scalars().all())

    @_store_op
    async def get_habit_entries_by_user(self, user_id: str) -> List[HabitEntry]:
        res = await self.db.execute(
            select(HabitEntry)
            .join(Habit, HabitEntry.habit_id == Habit.id)
            .where(Habit.user_id == user_id)
            .order_by(HabitEntry.habit_id, HabitEntry.date, HabitEntry.id)
        )
        return list(res.scalars().all())

    @_store_op
    async def get_analytics_events_by_user(self, user_id: str) -> List[AnalyticsEvent]:
        res = await self.db.execute(
            select(AnalyticsEvent)
            .where(AnalyticsEvent.user_id == user_id)
            .order_by(AnalyticsEvent.timestamp, AnalyticsEvent.id)
        )
        return list(res.scalars().all())

    @_store_op
    async def get_active_insights(self, user_id: str, now: Optional[datetime] = None) -> List[MlInsight]:
        now = now or utcnow()
        res = await self.db.execute(
            select(MlInsight)
            .where(MlInsight.user_id == user_id)
            .where(MlInsight.is_active == True)  # noqa: E712
            .where(or_(MlInsight.expires_at.is_(None), MlInsight.expires_at > now))
            .order_by(MlInsight.created_at.desc(), MlInsight.id.desc())
        )
        return list(res.scalars().all())

    @_store_op
    async def get_user_patterns(self, user_id: str) -> List[UserPattern]:
        res = await self.db.execute(
            select(UserPattern).where(UserPattern.user_id == user_id).order_by(UserPattern.pattern_type)
        )
        return list(res.scalars().all())

    @_store_op
    async def get_prediction_models(self, user_id: str) -> List[PredictionModel]:
        res = await self.db.execute(
            select(PredictionModel).where(PredictionModel.user_id == user_id).order_by(PredictionModel.model_type)
        )
        return list(res.scalars().all())

    # ==========================================
    # WRITES
    # ==========================================

    @_store_op
    async def create_analytics_event(self, event: AnalyticsEvent) -> AnalyticsEvent:
        self.db.add(event)
        await self.db.flush()
        return event

    @_store_op
    async def create_habit_entry(self, entry: HabitEntry) -> HabitEntry:
        self.db.add(entry)
        await self.db.flush()
        return entry

    @_store_op
    async def create_progress_entry(self, entry: ProgressEntry) -> ProgressEntry:
        """Insert and make the entry's percent the goal's current progress (last write wins)."""
        self.db.add(entry)
        goal = await self.db.get(Goal, entry.goal_id)
        if goal is not None:
            goal.progress = entry.progress_percent
        await self.db.flush()
        return entry

    @_store_op
    async def update_habit_streaks(self, habit_id: int, current_streak: int, longest_streak: int) -> Optional[Habit]:
        habit = await self.db.get(Habit, habit_id)
        if habit is None:
            return None
        habit.current_streak = current_streak
        habit.longest_streak = longest_streak
        await self.db.flush()
        return habit

    @_store_op
    async def insert_insight(self, insight: MlInsight) -> MlInsight:
        self.db.add(insight)
        await self.db.flush()
        return insight

    @_store_op
    async def deactivate_insights(self, user_id: str, insight_type: str) -> int:
        res = await self.db.execute(
            update(MlInsight)
            .where(MlInsight.user_id == user_id)
            .where(MlInsight.insight_type == insight_type)
            .where(MlInsight.is_active == True)  # noqa: E712
            .values(is_active=False)
            .execution_options(synchronize_session="fetch")
        )
        return res.rowcount or 0

    @_store_op
    async def upsert_user_pattern(
        self,
        user_id: str,
        pattern_type: str,
        pattern_data: Dict[str, Any],
        confidence: int,
        computed_at: datetime,
    ) -> UserPattern:
        """
        Replace-if-newer keyed by (user_id, pattern_type).
        A stored pattern computed later than `computed_at` is left untouched.
        """
        res = await self.db.execute(
            select(UserPattern)
            .where(UserPattern.user_id == user_id)
            .where(UserPattern.pattern_type == pattern_type)
        )
        pattern = res.scalars().first()
        if pattern is None:
            pattern = UserPattern(user_id=user_id, pattern_type=pattern_type)
            self.db.add(pattern)
        elif pattern.last_updated and pattern.last_updated > computed_at:
            return pattern
        pattern.pattern_data = pattern_data
        pattern.confidence = confidence
        pattern.last_updated = computed_at
        await self.db.flush()
        return pattern

    @_store_op
    async def upsert_prediction_model(
        self,
        user_id: str,
        model_type: str,
        model_data: Dict[str, Any],
        accuracy: int,
        predictions: List[Any],
        trained_at: datetime,
    ) -> PredictionModel:
        """Replace-if-newer keyed by (user_id, model_type)."""
        res = await self.db.execute(
            select(PredictionModel)
            .where(PredictionModel.user_id == user_id)
            .where(PredictionModel.model_type == model_type)
        )
        model = res.scalars().first()
        if model is None:
            model = PredictionModel(user_id=user_id, model_type=model_type)
            self.db.add(model)
        elif model.last_trained and model.last_trained > trained_at:
            return model
        model.model_data = model_data
        model.accuracy = accuracy
        model.predictions = predictions
        model.last_trained = trained_at
        await self.db.flush()
        return model

    # ==========================================
    # TRANSACTION
    # ==========================================

    @_store_op
    async def commit(self):
        await self.db.commit()

    async def rollback(self):
        await self.db.rollback()
