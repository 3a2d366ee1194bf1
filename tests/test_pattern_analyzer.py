from datetime import date, datetime, timedelta

from momentum.models import (
    AnalyticsEvent,
    EventType,
    Goal,
    GoalStatus,
    Habit,
    HabitEntry,
    ProgressEntry,
    Task,
    TaskStatus,
)
from momentum.services import pattern_analyzer

from fixtures import NOW, USER_ID


def _event(moment, event_type=EventType.task_completed.value):
    return AnalyticsEvent(user_id=USER_ID, event_type=event_type, timestamp=moment)


def _tasks(completed, open_):
    return (
        [Task(goal_id=1, title="done", status=TaskStatus.completed) for _ in range(completed)]
        + [Task(goal_id=1, title="todo") for _ in range(open_)]
    )


# ==========================================
# PRODUCTIVITY
# ==========================================

def test_productivity_needs_ten_events():
    events = [_event(NOW - timedelta(hours=i)) for i in range(9)]
    assert pattern_analyzer.productivity_pattern(events, [], NOW) is None


def test_productivity_peak_hour_and_day():
    events = [_event(NOW - timedelta(weeks=i)) for i in range(8)]
    events += [_event(NOW.replace(hour=9) - timedelta(days=1)) for _ in range(3)]
    pattern = pattern_analyzer.productivity_pattern(events, [], NOW)

    assert pattern.event_count == 11
    assert pattern.peak_hour == 12
    assert pattern.peak_day == 5
    assert pattern.peak_day_name == "Friday"
    assert sum(pattern.hourly_activity) == 11
    assert sum(pattern.daily_activity) == 11


def test_productivity_ties_resolve_to_lowest_index():
    events = [_event(NOW.replace(hour=15)) for _ in range(5)]
    events += [_event(NOW.replace(hour=8)) for _ in range(5)]
    pattern = pattern_analyzer.productivity_pattern(events, [], NOW)
    assert pattern.peak_hour == 8


def test_productivity_trend_increasing():
    events = [_event(NOW - timedelta(weeks=3))]
    events += [_event(NOW - timedelta(hours=i)) for i in range(10)]
    pattern = pattern_analyzer.productivity_pattern(events, [], NOW)

    assert len(pattern.weekly_labels) == 4
    assert pattern.weekly_labels[-1] == "2024-W11"
    assert pattern.weekly_trend == [1, 0, 0, 10]
    assert pattern.trend_direction == "increasing"


def test_productivity_mood_and_hours_from_recent_progress():
    events = [_event(NOW - timedelta(hours=i)) for i in range(10)]
    progress = [
        ProgressEntry(user_id=USER_ID, goal_id=1, progress_percent=20, mood=6, hours_worked=2,
                      date=NOW - timedelta(days=1)),
        ProgressEntry(user_id=USER_ID, goal_id=1, progress_percent=30, mood=8, hours_worked=3,
                      date=NOW - timedelta(days=2)),
        ProgressEntry(user_id=USER_ID, goal_id=1, progress_percent=10, mood=1, hours_worked=9,
                      date=NOW - timedelta(days=60)),
    ]
    pattern = pattern_analyzer.productivity_pattern(events, progress, NOW)
    assert pattern.average_mood == 7.0
    assert pattern.hours_worked == 5


def test_productivity_is_reproducible():
    events = [_event(NOW - timedelta(hours=7 * i)) for i in range(30)]
    first = pattern_analyzer.productivity_pattern(events, [], NOW)
    second = pattern_analyzer.productivity_pattern(list(events), [], NOW)
    assert first.model_dump() == second.model_dump()


# ==========================================
# VELOCITY
# ==========================================

def test_velocity_needs_five_completed_tasks():
    assert pattern_analyzer.task_velocity(_tasks(4, 10), [], NOW) is None


def test_velocity_from_last_thirty_days():
    events = [_event(NOW - timedelta(days=2 * i)) for i in range(12)]
    events.append(_event(NOW - timedelta(days=45)))
    events.append(_event(NOW - timedelta(days=1), EventType.goal_created.value))
    pattern = pattern_analyzer.task_velocity(_tasks(5, 20), events, NOW)

    assert pattern.velocity_per_week == 3.0
    assert pattern.recent_completions == 12
    assert pattern.open_tasks == 20
    assert pattern.estimated_weeks_to_clear == 6.7


def test_velocity_zero_leaves_estimate_undetermined():
    pattern = pattern_analyzer.task_velocity(_tasks(5, 3), [], NOW)
    assert pattern.velocity_per_week == 0
    assert pattern.estimated_weeks_to_clear is None


# ==========================================
# HABIT CONSISTENCY
# ==========================================

def test_consistency_needs_an_active_habit():
    habit = Habit(id=1, user_id=USER_ID, goal_id=1, name="Read", is_active=False)
    assert pattern_analyzer.habit_consistency([habit], [], NOW.date()) is None


def test_consistency_rate_over_logged_days():
    today = NOW.date()
    habit = Habit(id=1, user_id=USER_ID, goal_id=1, name="Read", current_streak=2)
    entries = [HabitEntry(habit_id=1, date=today - timedelta(days=d), completed=d not in (3, 6)) for d in range(8)]
    # a duplicate completion on a missed day turns it satisfied
    entries.append(HabitEntry(habit_id=1, date=today - timedelta(days=3), completed=True))
    # outside the 30 day window
    entries.append(HabitEntry(habit_id=1, date=today - timedelta(days=40), completed=False))

    pattern = pattern_analyzer.habit_consistency([habit], entries, today)
    score = pattern.habit_scores[0]
    assert score.completion_rate == 87.5
    assert score.strength == "strong"
    assert score.streak == 2
    assert pattern.average_consistency == 87.5
    assert pattern.strong_habits == 1
    assert pattern.weak_habits == 0


def test_consistency_habit_without_entries_scores_zero():
    habits = [
        Habit(id=1, user_id=USER_ID, goal_id=1, name="Read"),
        Habit(id=2, user_id=USER_ID, goal_id=1, name="Stretch"),
    ]
    entries = [HabitEntry(habit_id=1, date=NOW.date(), completed=True)]
    pattern = pattern_analyzer.habit_consistency(habits, entries, NOW.date())
    assert [s.completion_rate for s in pattern.habit_scores] == [100.0, 0.0]
    assert pattern.average_consistency == 50.0
    assert pattern.weak_habits == 1


# ==========================================
# SUCCESS FACTORS / OUTLOOK
# ==========================================

def _goal(status, **kw):
    return Goal(user_id=USER_ID, title="g", status=status, **kw)


def test_success_factors_need_two_completed_goals():
    goals = [_goal(GoalStatus.completed), _goal(GoalStatus.active)]
    assert pattern_analyzer.success_factors(goals, [], []) is None


def test_success_factors_metrics():
    created = datetime(2024, 1, 1)
    goals = [
        _goal(GoalStatus.completed, category_id=2, created_at=created, completed_at=created + timedelta(days=10)),
        _goal(GoalStatus.completed, category_id=2, created_at=created, completed_at=created + timedelta(days=20)),
        _goal(GoalStatus.active),
        _goal(GoalStatus.paused),
    ]
    habits = [Habit(id=1, user_id=USER_ID, goal_id=1, name="Read")]
    metrics = pattern_analyzer.success_factors(goals, _tasks(3, 1), habits)

    assert metrics.completed_goals == 2
    assert metrics.goal_completion_rate == 50.0
    assert metrics.task_completion_rate == 75.0
    assert metrics.avg_days_to_complete == 15.0
    assert metrics.top_categories == ["2"]
    assert metrics.active_habits == 1


def test_completion_outlook():
    goals = [_goal(GoalStatus.active, progress=30), _goal(GoalStatus.active, progress=50), _goal(GoalStatus.completed)]
    progress = [
        ProgressEntry(user_id=USER_ID, goal_id=1, progress_percent=30, date=NOW - timedelta(days=1)),
        ProgressEntry(user_id=USER_ID, goal_id=1, progress_percent=20, date=NOW - timedelta(days=9)),
    ]
    outlook = pattern_analyzer.completion_outlook(goals, _tasks(2, 2), progress, NOW)

    assert outlook.active_goals == 2
    assert outlook.avg_progress == 40.0
    assert outlook.completed_tasks == 2
    assert outlook.recent_progress_entries == 1


def test_completion_outlook_without_active_goals():
    assert pattern_analyzer.completion_outlook([_goal(GoalStatus.completed)], [], [], NOW) is None


def test_day_of_week_starts_on_sunday():
    assert pattern_analyzer._day_of_week(datetime(2024, 3, 17)) == 0
    assert pattern_analyzer._day_of_week(datetime(2024, 3, 16)) == 6
    assert date(2024, 3, 17).weekday() == 6
