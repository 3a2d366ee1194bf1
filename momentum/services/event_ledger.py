"""
Event Ledger: append-only record of user actions.
Tracking is fire-and-forget. It runs in its own session so a failed insert
can never poison the caller's transaction, and errors are logged, not raised.
"""

import logging
from datetime import datetime
from typing import Any, Dict, Optional

from momentum.db import async_session
from momentum.models import AnalyticsEvent, utcnow

logger = logging.getLogger("momentum")


class EventLedger:
    def __init__(self, session_factory=None):
        self.session_factory = session_factory or async_session

    async def track_event(
        self,
        user_id: str,
        event_type: str,
        entity_id: Optional[int] = None,
        entity_type: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
        timestamp: Optional[datetime] = None,
    ) -> Optional[AnalyticsEvent]:
        """Record one event. Returns the stored row, or None if recording failed."""
        event = AnalyticsEvent(
            user_id=user_id,
            event_type=str(getattr(event_type, "value", event_type)),
            entity_id=entity_id,
            entity_type=entity_type,
            event_metadata=dict(metadata or {}),
            timestamp=timestamp or utcnow(),
        )
        try:
            async with self.session_factory() as session:
                session.add(event)
                await session.commit()
        except Exception:
            logger.exception(
                "track_event_failed",
                extra={"user_id": user_id, "event_type": event.event_type},
            )
            return None
        return event
