"""
Insight Synthesizer: the orchestration hub of the analytics engine.

One run = load a snapshot of the user's data, run every pattern analysis,
enrich the narrative insight types, assign confidence and priority, then
persist everything in a single transaction.

Failure isolation:
- a pattern whose precondition is unmet is skipped
- a Narrative Generator failure skips only the insight that needed it
- a Data Store failure aborts the run and nothing is persisted
"""

import asyncio
import logging
import weakref
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Sequence

from momentum.config import settings
from momentum.models import (
    AnalyticsEvent,
    Goal,
    Habit,
    HabitEntry,
    InsightPriority,
    InsightType,
    MlInsight,
    ProgressEntry,
    Task,
    utcnow,
)
from momentum.schemas.narrative import NarrativeAnalysis
from momentum.schemas.patterns import (
    CompletionOutlook,
    CompletionPredictionData,
    HabitConsistency,
    ProductivityPattern,
    SuccessFactorsData,
    SuccessMetrics,
    TaskVelocity,
)
from momentum.services import pattern_analyzer
from momentum.services.store import DataStore, StoreError

logger = logging.getLogger("momentum")

# Statistically derived types carry fixed confidence calibrated to their data floor
STATISTICAL_CONFIDENCE = {
    InsightType.productivity_pattern: 85,
    InsightType.task_velocity: 80,
    InsightType.habit_consistency: 90,
}

# Narrative types fall back to these when the model omits or garbles confidence
NARRATIVE_DEFAULT_CONFIDENCE = {
    InsightType.completion_prediction: 75,
    InsightType.success_factors: 85,
}

# Entries vanish once no run holds or awaits the lock
_user_locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = weakref.WeakValueDictionary()


def _user_lock(user_id: str) -> asyncio.Lock:
    lock = _user_locks.get(user_id)
    if lock is None:
        lock = asyncio.Lock()
        _user_locks[user_id] = lock
    return lock


def clamp_score(value) -> int:
    """Clamp a confidence/accuracy/likelihood value into [0, 100]."""
    try:
        value = float(value)
    except (TypeError, ValueError):
        return 0
    return int(round(max(0.0, min(100.0, value))))


def assign_priority(insight_type: InsightType, metric: Optional[float] = None) -> InsightPriority:
    """
    Deterministic priority per insight type:
    - completion_prediction: high < 60 likelihood, medium < 80, else low
    - task_velocity: high < 2/week, low > 5/week, else medium
    - habit_consistency: high when the average is under 50%, else medium
    - everything else: medium
    """
    insight_type = InsightType(insight_type)
    if insight_type == InsightType.completion_prediction:
        if metric < 60:
            return InsightPriority.high
        if metric < 80:
            return InsightPriority.medium
        return InsightPriority.low
    if insight_type == InsightType.task_velocity:
        if metric < 2:
            return InsightPriority.high
        if metric > 5:
            return InsightPriority.low
        return InsightPriority.medium
    if insight_type == InsightType.habit_consistency:
        return InsightPriority.high if metric < 50 else InsightPriority.medium
    return InsightPriority.medium


@dataclass(frozen=True)
class UserSnapshot:
    goals: Sequence[Goal]
    tasks: Sequence[Task]
    progress_entries: Sequence[ProgressEntry]
    habits: Sequence[Habit]
    habit_entries: Sequence[HabitEntry]
    events: Sequence[AnalyticsEvent]


@dataclass
class PatternSet:
    productivity: Optional[ProductivityPattern] = None
    velocity: Optional[TaskVelocity] = None
    consistency: Optional[HabitConsistency] = None
    success: Optional[SuccessMetrics] = None
    outlook: Optional[CompletionOutlook] = None


# ==========================================
# INSIGHT BUILDERS
# ==========================================

def productivity_insight(user_id: str, pattern: ProductivityPattern) -> MlInsight:
    hour, day = pattern.peak_hour, pattern.peak_day_name
    closing = (
        "Consider adjusting your schedule to boost productivity"
        if pattern.trend_direction == "decreasing"
        else "Keep up the great momentum!"
    )
    return MlInsight(
        user_id=user_id,
        insight_type=InsightType.productivity_pattern.value,
        title=f"Peak Productivity: {hour}:00 on {day}s",
        description=(
            f"Your most productive time is {hour}:00 on {day}s. "
            f"Your activity trend is {pattern.trend_direction} over the past month."
        ),
        confidence=STATISTICAL_CONFIDENCE[InsightType.productivity_pattern],
        priority=assign_priority(InsightType.productivity_pattern),
        action_items=[
            f"Schedule important tasks around {hour}:00 when you're most active",
            f"Block {day} mornings for high-priority goal work",
            closing,
        ],
        data=pattern.model_dump(mode="json"),
    )


def velocity_insight(user_id: str, pattern: TaskVelocity) -> MlInsight:
    velocity = pattern.velocity_per_week
    priority = assign_priority(InsightType.task_velocity, velocity)
    if priority == InsightPriority.high:
        recommendations = [
            "Your task completion rate is below optimal. Consider breaking larger tasks into smaller ones.",
            "Set daily task completion goals to improve velocity.",
            "Review and remove any blocked or unnecessary tasks.",
        ]
    elif priority == InsightPriority.low:
        recommendations = [
            "Excellent task completion velocity! Consider taking on more challenging goals.",
            "Maintain your momentum by celebrating small wins.",
            "Share your productivity techniques with others.",
        ]
    else:
        recommendations = [
            "Good task completion pace. Consider optimizing your workflow.",
            "Track time spent on tasks to identify efficiency improvements.",
            "Batch similar tasks together for better focus.",
        ]

    if pattern.estimated_weeks_to_clear is None:
        outlook = "The time to clear your open tasks is undetermined until you complete more of them."
    else:
        outlook = (
            f"At this pace, you'll finish your current tasks in "
            f"{pattern.estimated_weeks_to_clear:.1f} weeks."
        )
    return MlInsight(
        user_id=user_id,
        insight_type=InsightType.task_velocity.value,
        title=f"Task Velocity: {velocity:.1f} tasks/week",
        description=f"You complete an average of {velocity:.1f} tasks per week. {outlook}",
        confidence=STATISTICAL_CONFIDENCE[InsightType.task_velocity],
        priority=priority,
        action_items=recommendations,
        data=pattern.model_dump(mode="json"),
    )


def consistency_insight(user_id: str, pattern: HabitConsistency) -> MlInsight:
    average = pattern.average_consistency
    description = f"Your overall habit consistency is {average:.0f}%. "
    if average > 80:
        description += "Excellent consistency across your habits!"
        recommendations = [
            "Outstanding habit consistency! Consider adding new challenging habits.",
            "Share your success strategies with others.",
            "Use your strong habits as anchors for new ones.",
        ]
    elif average < 50:
        description += "There's room for improvement in your habit consistency."
        recommendations = [
            "Focus on building one habit at a time to improve consistency.",
            "Set up environmental cues to trigger habit execution.",
            "Start with smaller, easier versions of your habits.",
            "Track your habits daily to maintain awareness.",
        ]
    else:
        description += "A solid base, with room to strengthen your weaker habits."
        recommendations = [
            "Good habit consistency overall. Focus on strengthening weaker habits.",
            "Consider habit stacking - linking new habits to existing strong ones.",
            "Review and adjust habits that consistently fall below 70%.",
        ]
    return MlInsight(
        user_id=user_id,
        insight_type=InsightType.habit_consistency.value,
        title=f"Habit Consistency: {average:.0f}% Average",
        description=description,
        confidence=STATISTICAL_CONFIDENCE[InsightType.habit_consistency],
        priority=assign_priority(InsightType.habit_consistency, average),
        action_items=recommendations,
        data=pattern.model_dump(mode="json"),
    )


def completion_insight(user_id: str, outlook: CompletionOutlook, narrative: NarrativeAnalysis) -> MlInsight:
    # Without a model estimate, average progress on active goals stands in
    likelihood = narrative.likelihood if narrative.likelihood is not None else clamp_score(outlook.avg_progress)
    confidence = narrative.confidence
    if confidence is None:
        confidence = NARRATIVE_DEFAULT_CONFIDENCE[InsightType.completion_prediction]
    data = CompletionPredictionData(
        prediction=likelihood,
        key_factors=narrative.factors,
        risk_areas=narrative.risks,
        analysis=outlook,
    )
    return MlInsight(
        user_id=user_id,
        insight_type=InsightType.completion_prediction.value,
        title=f"Goal Completion Forecast: {likelihood}% Success Rate",
        description=(
            f"Based on your current progress patterns, you have a {likelihood}% likelihood "
            f"of completing your active goals on time."
        ),
        confidence=clamp_score(confidence),
        priority=assign_priority(InsightType.completion_prediction, likelihood),
        action_items=narrative.recommendations,
        data=data.model_dump(mode="json"),
    )


def success_insight(user_id: str, metrics: SuccessMetrics, narrative: NarrativeAnalysis) -> MlInsight:
    confidence = narrative.confidence
    if confidence is None:
        confidence = NARRATIVE_DEFAULT_CONFIDENCE[InsightType.success_factors]
    data = SuccessFactorsData(
        metrics=metrics,
        success_factors=narrative.factors,
        strengths=narrative.strengths,
        optimization_areas=narrative.risks,
    )
    return MlInsight(
        user_id=user_id,
        insight_type=InsightType.success_factors.value,
        title=f"Success Analysis: {metrics.goal_completion_rate:.1f}% Goal Completion Rate",
        description=(
            f"Analysis of your {metrics.completed_goals} completed goals reveals key patterns "
            f"for continued success."
        ),
        confidence=clamp_score(confidence),
        priority=assign_priority(InsightType.success_factors),
        action_items=narrative.recommendations,
        data=data.model_dump(mode="json"),
    )


# ==========================================
# ORCHESTRATION
# ==========================================

class InsightSynthesizer:
    def __init__(self, store: DataStore, narrator, now: Optional[datetime] = None):
        self.store = store
        self.narrator = narrator
        self.now = now

    async def load_snapshot(self, user_id: str) -> UserSnapshot:
        return UserSnapshot(
            goals=await self.store.get_goals_by_user(user_id),
            tasks=await self.store.get_tasks_by_user(user_id),
            progress_entries=await self.store.get_progress_entries_by_user(user_id),
            habits=await self.store.get_habits_by_user(user_id),
            habit_entries=await self.store.get_habit_entries_by_user(user_id),
            events=await self.store.get_analytics_events_by_user(user_id),
        )

    @staticmethod
    def analyze(snapshot: UserSnapshot, now: datetime) -> PatternSet:
        return PatternSet(
            productivity=pattern_analyzer.productivity_pattern(snapshot.events, snapshot.progress_entries, now),
            velocity=pattern_analyzer.task_velocity(snapshot.tasks, snapshot.events, now),
            consistency=pattern_analyzer.habit_consistency(snapshot.habits, snapshot.habit_entries, now.date()),
            success=pattern_analyzer.success_factors(snapshot.goals, snapshot.tasks, snapshot.habits),
            outlook=pattern_analyzer.completion_outlook(
                snapshot.goals, snapshot.tasks, snapshot.progress_entries, now
            ),
        )

    async def _narrate(self, analysis: InsightType, data) -> Optional[NarrativeAnalysis]:
        if data is None:
            return None
        return await self.narrator.analyze({"analysis": analysis.value, "data": data.model_dump(mode="json")})

    async def enrich(self, user_id: str, patterns: PatternSet) -> Dict[InsightType, NarrativeAnalysis]:
        """Run both narrative calls concurrently; a failure drops only its own type."""
        requests = {
            InsightType.completion_prediction: patterns.outlook,
            InsightType.success_factors: patterns.success,
        }
        results = await asyncio.gather(
            *(self._narrate(kind, data) for kind, data in requests.items()),
            return_exceptions=True,
        )
        narratives = {}
        for kind, result in zip(requests, results):
            if isinstance(result, Exception):
                logger.warning(
                    "narrative_enrichment_failed",
                    extra={"user_id": user_id, "insight_type": kind.value, "error": str(result)},
                )
                continue
            if result is not None:
                narratives[kind] = result
        return narratives

    def build_insights(
        self,
        user_id: str,
        patterns: PatternSet,
        narratives: Dict[InsightType, NarrativeAnalysis],
        now: datetime,
    ) -> List[MlInsight]:
        insights = []
        if InsightType.completion_prediction in narratives:
            insights.append(completion_insight(user_id, patterns.outlook, narratives[InsightType.completion_prediction]))
        if patterns.productivity:
            insights.append(productivity_insight(user_id, patterns.productivity))
        if patterns.velocity:
            insights.append(velocity_insight(user_id, patterns.velocity))
        if patterns.consistency:
            insights.append(consistency_insight(user_id, patterns.consistency))
        if InsightType.success_factors in narratives:
            insights.append(success_insight(user_id, patterns.success, narratives[InsightType.success_factors]))

        expires_at = now + timedelta(days=settings.insight_ttl_days)
        for insight in insights:
            insight.created_at = now
            insight.expires_at = expires_at
        return insights

    async def persist(
        self,
        user_id: str,
        insights: List[MlInsight],
        patterns: PatternSet,
        narratives: Dict[InsightType, NarrativeAnalysis],
        now: datetime,
    ) -> None:
        """Deactivate-then-insert per type plus pattern/model upserts, as one transaction."""
        store = self.store
        lock = _user_lock(user_id)
        async with lock:
            try:
                # types whose input dropped out; a failed narrative call keeps its old insight
                inputs = {
                    InsightType.completion_prediction: patterns.outlook,
                    InsightType.productivity_pattern: patterns.productivity,
                    InsightType.task_velocity: patterns.velocity,
                    InsightType.habit_consistency: patterns.consistency,
                    InsightType.success_factors: patterns.success,
                }
                for kind, data in inputs.items():
                    if data is None:
                        await store.deactivate_insights(user_id, kind.value)

                for insight in insights:
                    await store.deactivate_insights(user_id, insight.insight_type)
                    await store.insert_insight(insight)

                statistical = [
                    (InsightType.productivity_pattern, patterns.productivity),
                    (InsightType.task_velocity, patterns.velocity),
                    (InsightType.habit_consistency, patterns.consistency),
                ]
                for kind, pattern in statistical:
                    if pattern is not None:
                        await store.upsert_user_pattern(
                            user_id, kind.value, pattern.model_dump(mode="json"),
                            STATISTICAL_CONFIDENCE[kind], now,
                        )
                if patterns.success is not None:
                    narrative = narratives.get(InsightType.success_factors)
                    confidence = narrative.confidence if narrative and narrative.confidence is not None \
                        else NARRATIVE_DEFAULT_CONFIDENCE[InsightType.success_factors]
                    await store.upsert_user_pattern(
                        user_id, InsightType.success_factors.value,
                        patterns.success.model_dump(mode="json"), clamp_score(confidence), now,
                    )

                for insight in insights:
                    if insight.insight_type == InsightType.completion_prediction.value:
                        await store.upsert_prediction_model(
                            user_id, "goal_completion", patterns.outlook.model_dump(mode="json"),
                            clamp_score(insight.confidence), [insight.data["prediction"]], now,
                        )
                if patterns.velocity is not None:
                    await store.upsert_prediction_model(
                        user_id, "task_velocity", patterns.velocity.model_dump(mode="json"),
                        STATISTICAL_CONFIDENCE[InsightType.task_velocity],
                        [patterns.velocity.estimated_weeks_to_clear], now,
                    )
                await store.commit()
            except StoreError:
                await store.rollback()
                logger.error("insight_persist_failed", extra={"user_id": user_id}, exc_info=True)
                raise

    async def generate(self, user_id: str) -> List[MlInsight]:
        """Full recompute for one user. Raises StoreError if the Data Store fails."""
        now = self.now or utcnow()
        snapshot = await self.load_snapshot(user_id)
        patterns = self.analyze(snapshot, now)
        narratives = await self.enrich(user_id, patterns)
        insights = self.build_insights(user_id, patterns, narratives, now)
        await self.persist(user_id, insights, patterns, narratives, now)

        logger.info(
            "insights_generated",
            extra={"user_id": user_id, "insight_types": [i.insight_type for i in insights]},
        )
        return insights
