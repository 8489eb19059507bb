# routes/search.py
from fastapi import APIRouter, Depends, HTTPException, Query
from typing import List, Optional
import logging

from dhunx.core.ytmusic_client import CatalogError, YTMusicCatalog
from dhunx.history.tracker import TrackerRegistry
from dhunx.models.schemas import CandidateTrack
from .deps import get_catalog, get_registry

log = logging.getLogger(__name__)
router = APIRouter()

@router.get("/search", response_model=List[CandidateTrack])
async def search(
    q: str = Query("", max_length=200),
    limit: int = Query(20, ge=1, le=50),
    user_id: Optional[str] = Query(None, min_length=1, max_length=128),
    catalog: YTMusicCatalog = Depends(get_catalog),
    registry: TrackerRegistry = Depends(get_registry)
):
    """Explicit user search, tracked when a user id is given"""
    query = q.strip()
    if not query:
        raise HTTPException(status_code=400, detail="Query parameter 'q' is required")

    try:
        tracks = await catalog.search(query, limit=limit)
    except CatalogError as e:
        log.error(f"Search failed: {e}")
        raise HTTPException(
            status_code=502,
            detail="Search is temporarily unavailable, please retry",
            headers={"Retry-After": "5"}
        )

    if user_id:
        tracker = await registry.get(user_id)
        await tracker.track_search(query, tracks)

    return tracks

@router.get("/trending", response_model=List[CandidateTrack])
async def trending(
    limit: int = Query(20, ge=1, le=50),
    catalog: YTMusicCatalog = Depends(get_catalog)
):
    """Currently popular songs, empty on upstream failure"""
    try:
        return await catalog.trending(limit=limit)
    except CatalogError as e:
        log.error(f"Trending failed: {e}")
        return []
