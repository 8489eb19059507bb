# recommend/heuristics.py
import random
from typing import List, Optional, Sequence, Tuple, TypeVar

from dhunx.models.schemas import CandidateTrack

T = TypeVar("T")

# Mood search per time slot
TIME_MOOD_QUERIES = {
    "morning": "morning energy music",
    "afternoon": "afternoon focus music",
    "evening": "evening relaxing music",
    "night": "late night chill music"
}

CONTEXT_QUERIES = {
    "workout": ["workout music", "gym songs", "high energy music"],
    "study": ["study music", "focus music", "concentration songs"],
    "party": ["party music", "dance songs", "upbeat music"],
    "relax": ["relaxing music", "chill songs", "calm music"],
    "sleep": ["sleep music", "peaceful songs", "ambient music"]
}

DEFAULT_CONTEXT = "relax"

FALLBACK_QUERIES = [
    "popular songs",
    "trending music",
    "top hits",
    "viral songs",
    "best music"
]

def time_of_day_bucket(hour: int) -> str:
    """Map a local hour (0-23) to night / morning / afternoon / evening"""
    if hour < 6:
        return "night"
    if hour < 12:
        return "morning"
    if hour < 18:
        return "afternoon"
    return "evening"

def get_mood_query(hour: int) -> str:
    return TIME_MOOD_QUERIES[time_of_day_bucket(hour)]

def get_context_queries(context: Optional[str]) -> List[str]:
    """Canned queries for a listening context, unknown contexts fall back to relax"""
    key = (context or "").strip().lower()
    return CONTEXT_QUERIES.get(key, CONTEXT_QUERIES[DEFAULT_CONTEXT])

def dedup_key(track: CandidateTrack) -> Tuple[str, str, str]:
    return (track.id, track.title, track.artist)

def remove_duplicates(tracks: Sequence[CandidateTrack]) -> List[CandidateTrack]:
    """Drop repeated (id, title, artist) tracks, first occurrence wins"""
    seen = set()
    unique = []
    for track in tracks:
        key = dedup_key(track)
        if key in seen:
            continue
        seen.add(key)
        unique.append(track)
    return unique

def shuffle_tracks(items: Sequence[T], rng: random.Random) -> List[T]:
    """Fisher-Yates shuffle into a new list"""
    shuffled = list(items)
    for i in range(len(shuffled) - 1, 0, -1):
        j = rng.randint(0, i)
        shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
    return shuffled
