from datetime import datetime, timedelta
from typing import Dict, Iterable, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from momentum.models import (
    AnalyticsEvent,
    EventType,
    Goal,
    GoalStatus,
    Habit,
    HabitEntry,
    Task,
    TaskStatus,
)
from momentum.schemas.narrative import NarrativeAnalysis
from momentum.services.openai_client import NarrativeUnavailableError

USER_ID = "user-1"
NOW = datetime(2024, 3, 15, 12, 0)  # a Friday


class FakeNarrator:
    """Deterministic stand-in for the OpenAI-backed NarrativeGenerator."""

    def __init__(self, responses: Optional[Dict[str, NarrativeAnalysis]] = None, failures: Iterable[str] = ()):
        self.responses = responses or {}
        self.failures = set(failures)
        self.calls = []

    async def analyze(self, prompt_context):
        analysis = prompt_context["analysis"]
        self.calls.append(prompt_context)
        if analysis in self.failures:
            raise NarrativeUnavailableError(f"{analysis}: timed out")
        if analysis in self.responses:
            return self.responses[analysis]
        return NarrativeAnalysis(
            confidence=70,
            likelihood=55,
            factors=["Consistent weekly check-ins"],
            strengths=["Breaks goals into small tasks"],
            risks=["Progress stalls mid-goal"],
            recommendations=["Log progress every Friday", "Pick one goal to finish first"],
        )


async def seed_user(db: AsyncSession, now: datetime = NOW, user_id: str = USER_ID) -> Dict[str, object]:
    """
    Enough data for every insight type:
    3 goals (2 completed), 5 completed + 20 open tasks, 12 task_completed
    events in the last 30 days and one habit logged on 8 days (6 done).
    """
    active = Goal(user_id=user_id, title="Learn Spanish", status=GoalStatus.active, progress=40,
                  created_at=now - timedelta(days=20))
    done = [
        Goal(user_id=user_id, title=f"Finished goal {i}", status=GoalStatus.completed, progress=100,
             category_id=1, created_at=now - timedelta(days=60), completed_at=now - timedelta(days=50 - i * 10))
        for i in range(2)
    ]
    db.add_all([active, *done])
    await db.commit()

    tasks = [Task(goal_id=active.id, title=f"Lesson {i}", status=TaskStatus.completed,
                  completed_at=now - timedelta(days=i)) for i in range(5)]
    tasks += [Task(goal_id=active.id, title=f"Open lesson {i}") for i in range(20)]

    habit = Habit(user_id=user_id, goal_id=active.id, name="Flashcards")
    db.add_all(tasks + [habit])
    await db.commit()

    today = now.date()
    entries = [
        HabitEntry(habit_id=habit.id, date=today - timedelta(days=offset), completed=offset not in (3, 6))
        for offset in range(8)
    ]
    events = [
        AnalyticsEvent(user_id=user_id, event_type=EventType.task_completed.value, entity_type="task",
                       timestamp=now - timedelta(days=2 * i))
        for i in range(12)
    ]
    db.add_all(entries + events)
    await db.commit()
    return {"active_goal": active, "habit": habit, "tasks": tasks}
