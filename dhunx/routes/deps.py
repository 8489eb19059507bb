# routes/deps.py
import random

from fastapi import Depends, Path, Request

from dhunx.core.ytmusic_client import YTMusicCatalog
from dhunx.history.tracker import HistoryTracker, TrackerRegistry
from dhunx.recommend.engine import RecommendationEngine

def get_registry(request: Request) -> TrackerRegistry:
    return request.app.state.registry

def get_catalog(request: Request) -> YTMusicCatalog:
    return request.app.state.catalog

async def get_tracker(
    user_id: str = Path(..., min_length=1, max_length=128),
    registry: TrackerRegistry = Depends(get_registry)
) -> HistoryTracker:
    return await registry.get(user_id)

def get_engine(
    request: Request,
    tracker: HistoryTracker = Depends(get_tracker),
    catalog: YTMusicCatalog = Depends(get_catalog)
) -> RecommendationEngine:
    rng: random.Random = request.app.state.rng
    return RecommendationEngine(tracker, catalog, catalog, rng=rng, clock=request.app.state.clock)
