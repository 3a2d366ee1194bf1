"""
Pattern Analyzer: statistical summaries over a user's events and entities.

Every function is a pure read-in, record-out computation with an explicit
reference time, so two runs over the same snapshot produce identical
pattern data. A function returns None when its minimum-data precondition
is unmet; callers skip that pattern rather than treat it as an error.
"""

import statistics
from collections import Counter
from datetime import date, datetime, timedelta
from typing import List, Optional, Sequence

from momentum.models import (
    AnalyticsEvent,
    EventType,
    Goal,
    GoalStatus,
    Habit,
    HabitEntry,
    ProgressEntry,
    Task,
    utcnow,
)
from momentum.schemas.patterns import (
    CompletionOutlook,
    HabitConsistency,
    HabitScore,
    ProductivityPattern,
    SuccessMetrics,
    TaskVelocity,
)
from momentum.services.streak_calculator import satisfied_days

MIN_PRODUCTIVITY_EVENTS = 10
MIN_COMPLETED_TASKS = 5
MIN_COMPLETED_GOALS = 2

VELOCITY_WINDOW_DAYS = 30
VELOCITY_WEEKS = 4
CONSISTENCY_WINDOW_DAYS = 30
TREND_WEEKS = 4
RECENT_PROGRESS_DAYS = 7

STRONG_HABIT_RATE = 80.0
WEAK_HABIT_RATE = 50.0

DAY_NAMES = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]


def _week_label(moment: date) -> str:
    iso = moment.isocalendar()
    return f"{iso[0]}-W{iso[1]:02d}"


def _day_of_week(moment: datetime) -> int:
    """Sunday = 0 ... Saturday = 6."""
    return (moment.weekday() + 1) % 7


def productivity_pattern(
    events: Sequence[AnalyticsEvent],
    progress_entries: Sequence[ProgressEntry],
    now: Optional[datetime] = None,
) -> Optional[ProductivityPattern]:
    if len(events) < MIN_PRODUCTIVITY_EVENTS:
        return None
    now = now or utcnow()

    hourly = [0] * 24
    daily = [0] * 7
    for event in events:
        hourly[event.timestamp.hour] += 1
        daily[_day_of_week(event.timestamp)] += 1

    # max() keeps the first maximum, so ties resolve to the lowest index
    peak_hour = hourly.index(max(hourly))
    peak_day = daily.index(max(daily))

    labels = [_week_label(now - timedelta(weeks=offset)) for offset in range(TREND_WEEKS - 1, -1, -1)]
    per_week = Counter(_week_label(e.timestamp) for e in events if e.timestamp <= now)
    weekly_trend = [per_week.get(label, 0) for label in labels]
    if weekly_trend[-1] > weekly_trend[0]:
        trend = "increasing"
    elif weekly_trend[-1] < weekly_trend[0]:
        trend = "decreasing"
    else:
        trend = "stable"

    window_start = now - timedelta(weeks=TREND_WEEKS)
    recent = [p for p in progress_entries if window_start < p.date <= now]
    moods = [p.mood for p in recent if p.mood is not None]

    return ProductivityPattern(
        event_count=len(events),
        peak_hour=peak_hour,
        peak_day=peak_day,
        peak_day_name=DAY_NAMES[peak_day],
        hourly_activity=hourly,
        daily_activity=daily,
        weekly_labels=labels,
        weekly_trend=weekly_trend,
        trend_direction=trend,
        average_mood=round(statistics.mean(moods), 2) if moods else None,
        hours_worked=sum(p.hours_worked or 0 for p in recent),
    )


def task_velocity(
    tasks: Sequence[Task],
    events: Sequence[AnalyticsEvent],
    now: Optional[datetime] = None,
) -> Optional[TaskVelocity]:
    completed = [t for t in tasks if t.completed]
    if len(completed) < MIN_COMPLETED_TASKS:
        return None
    now = now or utcnow()

    window_start = now - timedelta(days=VELOCITY_WINDOW_DAYS)
    recent = [
        e for e in events
        if e.event_type == EventType.task_completed.value and window_start < e.timestamp <= now
    ]
    velocity = len(recent) / VELOCITY_WEEKS
    open_tasks = len(tasks) - len(completed)

    return TaskVelocity(
        velocity_per_week=velocity,
        recent_completions=len(recent),
        total_completed_tasks=len(completed),
        open_tasks=open_tasks,
        estimated_weeks_to_clear=round(open_tasks / velocity, 1) if velocity > 0 else None,
    )


def _habit_strength(rate: float) -> str:
    if rate > STRONG_HABIT_RATE:
        return "strong"
    if rate < WEAK_HABIT_RATE:
        return "weak"
    return "steady"


def habit_consistency(
    habits: Sequence[Habit],
    habit_entries: Sequence[HabitEntry],
    today: Optional[date] = None,
) -> Optional[HabitConsistency]:
    active = [h for h in habits if h.is_active]
    if not active:
        return None
    today = today or utcnow().date()
    window_start = today - timedelta(days=CONSISTENCY_WINDOW_DAYS)

    scores: List[HabitScore] = []
    for habit in active:
        days = satisfied_days((e for e in habit_entries if e.habit_id == habit.id), today)
        in_window = [done for day, done in days.items() if day > window_start]
        rate = 100.0 * sum(in_window) / len(in_window) if in_window else 0.0
        scores.append(HabitScore(
            habit_id=habit.id,
            habit=habit.name,
            completion_rate=round(rate, 2),
            streak=max(0, habit.current_streak or 0),
            strength=_habit_strength(rate),
        ))

    average = statistics.mean(s.completion_rate for s in scores)
    return HabitConsistency(
        average_consistency=round(average, 2),
        habit_scores=scores,
        strong_habits=sum(1 for s in scores if s.strength == "strong"),
        weak_habits=sum(1 for s in scores if s.strength == "weak"),
    )


def _top_categories(goals: Sequence[Goal], limit: int = 3) -> List[str]:
    counts = Counter(
        str(g.category_id) if g.category_id is not None else "Uncategorized" for g in goals
    )
    # stable sort keeps first-seen order among equal counts
    ranked = sorted(counts.items(), key=lambda item: -item[1])
    return [category for category, _ in ranked[:limit]]


def _avg_days_to_complete(goals: Sequence[Goal]) -> float:
    durations = [
        (g.completed_at - g.created_at).total_seconds() / 86400
        for g in goals
        if g.completed_at and g.created_at
    ]
    return round(statistics.mean(durations), 1) if durations else 0.0


def success_factors(
    goals: Sequence[Goal],
    tasks: Sequence[Task],
    habits: Sequence[Habit],
) -> Optional[SuccessMetrics]:
    completed_goals = [g for g in goals if g.status == GoalStatus.completed]
    if len(completed_goals) < MIN_COMPLETED_GOALS:
        return None

    done_tasks = sum(1 for t in tasks if t.completed)
    return SuccessMetrics(
        completed_goals=len(completed_goals),
        total_goals=len(goals),
        goal_completion_rate=round(100.0 * len(completed_goals) / len(goals), 1),
        task_completion_rate=round(100.0 * done_tasks / len(tasks), 1) if tasks else 0.0,
        top_categories=_top_categories(completed_goals),
        avg_days_to_complete=_avg_days_to_complete(completed_goals),
        active_habits=sum(1 for h in habits if h.is_active),
    )


def completion_outlook(
    goals: Sequence[Goal],
    tasks: Sequence[Task],
    progress_entries: Sequence[ProgressEntry],
    now: Optional[datetime] = None,
) -> Optional[CompletionOutlook]:
    """Statistics the completion prediction is asked to reason about."""
    active_goals = [g for g in goals if g.status == GoalStatus.active]
    if not active_goals:
        return None
    now = now or utcnow()
    since = now - timedelta(days=RECENT_PROGRESS_DAYS)

    return CompletionOutlook(
        total_goals=len(goals),
        active_goals=len(active_goals),
        completed_goals=sum(1 for g in goals if g.status == GoalStatus.completed),
        avg_progress=round(statistics.mean(g.progress for g in active_goals), 1),
        total_tasks=len(tasks),
        completed_tasks=sum(1 for t in tasks if t.completed),
        recent_progress_entries=sum(1 for p in progress_entries if since < p.date <= now),
    )
