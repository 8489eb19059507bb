# routes/history.py
from fastapi import APIRouter, Depends

from dhunx.history.tracker import HistoryTracker
from dhunx.models.history import HistorySummary, UserPreferences
from dhunx.models.schemas import LikeRequest, PlayRequest, SearchEventRequest, SkipRequest
from .deps import get_tracker

router = APIRouter(prefix="/history/{user_id}")

@router.post("/play", response_model=HistorySummary)
async def track_play(request: PlayRequest, tracker: HistoryTracker = Depends(get_tracker)):
    await tracker.track_play(request.track, duration=request.duration)
    return tracker.get_history_summary()

@router.post("/like", response_model=HistorySummary)
async def track_like(request: LikeRequest, tracker: HistoryTracker = Depends(get_tracker)):
    await tracker.track_like(request.track)
    return tracker.get_history_summary()

@router.post("/skip", response_model=HistorySummary)
async def track_skip(request: SkipRequest, tracker: HistoryTracker = Depends(get_tracker)):
    await tracker.track_skip(request.track, play_duration=request.play_duration)
    return tracker.get_history_summary()

@router.post("/search", response_model=HistorySummary)
async def track_search(request: SearchEventRequest, tracker: HistoryTracker = Depends(get_tracker)):
    await tracker.track_search(request.query, request.results)
    return tracker.get_history_summary()

@router.get("/preferences", response_model=UserPreferences)
async def get_preferences(tracker: HistoryTracker = Depends(get_tracker)):
    return tracker.get_user_preferences()

@router.get("/summary", response_model=HistorySummary)
async def get_summary(tracker: HistoryTracker = Depends(get_tracker)):
    return tracker.get_history_summary()

@router.delete("", response_model=HistorySummary)
async def clear_history(tracker: HistoryTracker = Depends(get_tracker)):
    """Privacy reset"""
    await tracker.clear_history()
    return tracker.get_history_summary()
