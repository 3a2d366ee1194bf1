"""
Recommendation Aggregator: a short ranked list of actions from active insights.
"""

from datetime import datetime
from typing import List, Optional, Sequence

from momentum.models import InsightPriority, MlInsight

MAX_RECOMMENDATIONS = 5
ITEMS_PER_INSIGHT = 2

FALLBACK_RECOMMENDATIONS = [
    "Keep up the great work on your goals!",
    "Consider setting a new challenging goal to maintain momentum.",
    "Review your completed goals to identify successful patterns.",
]


def rank_recommendations(insights: Sequence[MlInsight]) -> List[str]:
    """
    High-priority insights by confidence, newest first on ties; up to two
    action items from each, five in total. Falls back to generic
    encouragement when nothing is high priority.
    """
    high = [i for i in insights if i.is_active and i.priority == InsightPriority.high]
    if not high:
        return list(FALLBACK_RECOMMENDATIONS)

    # two stable passes: tie-break key first, primary key last
    ranked = sorted(high, key=lambda i: (i.created_at or datetime.min, i.id or 0), reverse=True)
    ranked = sorted(ranked, key=lambda i: i.confidence, reverse=True)

    recommendations: List[str] = []
    for insight in ranked:
        items = insight.action_items if isinstance(insight.action_items, list) else []
        recommendations.extend(str(item) for item in items[:ITEMS_PER_INSIGHT])
    return recommendations[:MAX_RECOMMENDATIONS]


async def recommendations(store, user_id: str, now: Optional[datetime] = None) -> List[str]:
    insights = await store.get_active_insights(user_id, now)
    return rank_recommendations(insights)
