# routes/recommend.py
from datetime import datetime
from fastapi import APIRouter, Depends, Query

from dhunx.core.config import settings
from dhunx.models.schemas import DiscoveryPreferences, RecommendationResponse
from dhunx.recommend.engine import RecommendationEngine
from .deps import get_engine

router = APIRouter(prefix="/recommendations/{user_id}")

@router.get("", response_model=RecommendationResponse)
async def get_recommendations(
    limit: int = Query(settings.recommendation_limit, ge=1, le=100),
    scored: bool = False,
    engine: RecommendationEngine = Depends(get_engine)
):
    """Personalized mix, different on every refresh"""
    tracks = await engine.get_personalized_recommendations(limit)
    if scored:
        tracks = engine.score_recommendations(tracks, engine.history.get_user_preferences())

    return RecommendationResponse(
        tracks=tracks,
        context={"strategy": "personalized", "scored": scored},
        generated_at=datetime.utcnow().isoformat()
    )

@router.get("/context/{context}", response_model=RecommendationResponse)
async def get_context_recommendations(
    context: str,
    limit: int = Query(settings.contextual_limit, ge=1, le=100),
    engine: RecommendationEngine = Depends(get_engine)
):
    tracks = await engine.get_contextual_recommendations(context, limit)
    return RecommendationResponse(
        tracks=tracks,
        context={"strategy": "contextual", "context": context},
        generated_at=datetime.utcnow().isoformat()
    )

@router.get("/discovery", response_model=DiscoveryPreferences)
async def get_discovery(engine: RecommendationEngine = Depends(get_engine)):
    return engine.get_discovery_preferences()
