"""
Analytics API: insights, recommendations, patterns and event tracking.
The only contracts the UI layer needs from the insight engine.
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException

from momentum.api.deps import get_ledger, get_narrator, get_store
from momentum.schema.request import TrackEventRequest
from momentum.schema.response import (
    GenerateInsightsResponse,
    InsightRead,
    RecommendationsResponse,
    TrackEventResponse,
    UserPatternRead,
)
from momentum.services.event_ledger import EventLedger
from momentum.services.insight_synthesizer import InsightSynthesizer
from momentum.services.recommendations import recommendations as build_recommendations
from momentum.services.store import DataStore, StoreError

router = APIRouter(prefix="/analytics", tags=["analytics"])
logger = logging.getLogger("momentum")


@router.get("/users/{user_id}/insights", response_model=List[InsightRead])
async def list_insights(user_id: str, store: DataStore = Depends(get_store)):
    """Active, unexpired insights, newest first."""
    try:
        return await store.get_active_insights(user_id)
    except StoreError:
        logger.exception("list_insights_failed", extra={"user_id": user_id})
        raise HTTPException(status_code=503, detail="Insights are temporarily unavailable")


@router.post("/users/{user_id}/insights/generate", response_model=GenerateInsightsResponse)
async def generate_insights(
    user_id: str,
    store: DataStore = Depends(get_store),
    narrator=Depends(get_narrator),
):
    """
    Recompute every insight for the user.
    Always answers with a result; internal failures become an empty list.
    """
    synthesizer = InsightSynthesizer(store, narrator)
    try:
        insights = await synthesizer.generate(user_id)
    except StoreError:
        logger.exception("generate_insights_failed", extra={"user_id": user_id})
        return GenerateInsightsResponse(
            insights=[],
            message="We couldn't analyze your data right now. Please try again in a little while.",
        )

    if not insights:
        message = "Not enough activity yet to generate insights. Keep logging your progress and check back soon!"
    else:
        message = f"Generated {len(insights)} insight{'s' if len(insights) != 1 else ''}."
    return GenerateInsightsResponse(
        insights=[InsightRead.model_validate(i) for i in insights],
        message=message,
    )


@router.get("/users/{user_id}/recommendations", response_model=RecommendationsResponse)
async def get_recommendations(user_id: str, store: DataStore = Depends(get_store)):
    try:
        return RecommendationsResponse(recommendations=await build_recommendations(store, user_id))
    except StoreError:
        logger.exception("recommendations_failed", extra={"user_id": user_id})
        raise HTTPException(status_code=503, detail="Recommendations are temporarily unavailable")


@router.get("/users/{user_id}/patterns", response_model=List[UserPatternRead])
async def list_patterns(user_id: str, store: DataStore = Depends(get_store)):
    try:
        return await store.get_user_patterns(user_id)
    except StoreError:
        logger.exception("list_patterns_failed", extra={"user_id": user_id})
        raise HTTPException(status_code=503, detail="Patterns are temporarily unavailable")


@router.post("/events", response_model=TrackEventResponse)
async def track_event(body: TrackEventRequest, ledger: EventLedger = Depends(get_ledger)):
    event = await ledger.track_event(
        body.user_id,
        body.event_type,
        entity_id=body.entity_id,
        entity_type=body.entity_type,
        metadata=body.metadata,
    )
    return TrackEventResponse(success=event is not None, event_id=event.id if event else None)
