# models/schemas.py
from pydantic import BaseModel, Field
from typing import Optional, List, Dict, Any

# Track models
class TrackRef(BaseModel):
    """Track as handed to the history tracker by the player"""
    id: str
    title: str = ""
    artist: str = ""
    thumbnail: str = ""

class CandidateTrack(BaseModel):
    """Track descriptor returned by the search / trending catalog"""
    id: str
    title: str = ""
    artist: str = ""
    thumbnail: str = ""
    duration: Optional[str] = None
    duration_seconds: Optional[int] = None
    description: Optional[str] = None
    published_at: Optional[str] = None
    score: Optional[float] = None

# History request models
class PlayRequest(BaseModel):
    track: TrackRef
    duration: int = Field(0, ge=0, description="Milliseconds listened")

class LikeRequest(BaseModel):
    track: TrackRef

class SkipRequest(BaseModel):
    track: TrackRef
    play_duration: int = Field(0, ge=0, description="Milliseconds played before the skip")

class SearchEventRequest(BaseModel):
    query: str = Field(..., min_length=1)
    results: List[CandidateTrack] = []

# Recommendation models
class RecommendationResponse(BaseModel):
    tracks: List[CandidateTrack]
    context: Dict[str, Any]
    generated_at: str

class DiscoveryPreferences(BaseModel):
    exploration_level: float
    preferred_genres: List[str]
    artist_diversity: float
    time_preferences: Dict[str, int]

# Health check model
class HealthResponse(BaseModel):
    status: str
    ytmusic_ready: bool
    store_backend: str
    version: str
