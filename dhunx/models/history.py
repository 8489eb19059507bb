# models/history.py
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List, Dict, Literal

EventKind = Literal["play", "like", "skip", "search"]

class TrackSummary(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    title: str = ""
    artist: str = ""

class Event(BaseModel):
    """One observed user action. Never mutated after it is recorded."""
    model_config = ConfigDict(frozen=True)

    kind: EventKind
    timestamp: int  # epoch milliseconds
    hour: int = Field(..., ge=0, le=23)  # local wall-clock hour at tracking time
    weekday: str

    id: Optional[str] = None
    title: Optional[str] = None
    artist: Optional[str] = None
    thumbnail: Optional[str] = None

    # play / skip
    duration: Optional[int] = None
    play_duration: Optional[int] = None
    source: Optional[str] = None

    # search
    query: Optional[str] = None
    result_count: Optional[int] = None
    top_results: List[TrackSummary] = []

class EventLog(BaseModel):
    plays: List[Event] = []
    likes: List[Event] = []
    skips: List[Event] = []
    searches: List[Event] = []
    session_start: int

# Preference snapshot
class ArtistCount(BaseModel):
    artist: str
    count: int

class RecentTrack(BaseModel):
    id: Optional[str]
    title: Optional[str]
    artist: Optional[str]
    thumbnail: Optional[str]
    timestamp: int

class ListeningPatterns(BaseModel):
    time_of_day: Dict[str, int] = {}
    day_of_week: Dict[str, int] = {}
    average_session_length: int = 0

class SkipPatterns(BaseModel):
    quick_skips: int = 0  # under 10 seconds
    mid_skips: int = 0    # 10 to 60 seconds
    late_skips: int = 0

class UserPreferences(BaseModel):
    favorite_artists: List[ArtistCount] = []
    favorite_genres: List[str] = []  # no genre source yet, always empty
    listening_patterns: ListeningPatterns = ListeningPatterns()
    recently_played: List[RecentTrack] = []
    skip_patterns: SkipPatterns = SkipPatterns()

class HistorySummary(BaseModel):
    total_plays: int
    total_likes: int
    total_skips: int
    total_searches: int
    session_start: int
    favorite_artists: List[ArtistCount]
