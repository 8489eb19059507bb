# recommend/engine.py
import asyncio
import logging
import math
import random
from datetime import datetime
from typing import Callable, List, Optional, Protocol, Sequence

from dhunx.models.history import ArtistCount, RecentTrack, UserPreferences
from dhunx.models.schemas import CandidateTrack, DiscoveryPreferences
from .heuristics import (
    FALLBACK_QUERIES,
    get_context_queries,
    get_mood_query,
    remove_duplicates,
    shuffle_tracks
)

log = logging.getLogger(__name__)

class PreferencesSource(Protocol):
    def get_user_preferences(self) -> UserPreferences:
        ...

class SearchClient(Protocol):
    async def search(self, query: str, limit: int) -> List[CandidateTrack]:
        ...

class TrendingClient(Protocol):
    async def trending(self, limit: int) -> List[CandidateTrack]:
        ...

class RecommendationEngine:
    """Blends artist, similarity, time-of-day and trending searches into one list"""

    weights = {
        "recent_plays": 0.3,
        "favorite_artists": 0.2
    }

    def __init__(
        self,
        history: PreferencesSource,
        search_client: SearchClient,
        trending_client: TrendingClient,
        rng: Optional[random.Random] = None,
        clock: Callable[[], datetime] = datetime.now
    ):
        self.history = history
        self.search_client = search_client
        self.trending_client = trending_client
        self.rng = rng or random.Random()
        self.clock = clock

    async def get_personalized_recommendations(self, limit: int = 12) -> List[CandidateTrack]:
        """Never raises: an empty list is a valid answer"""
        if limit <= 0:
            return []

        try:
            preferences = self.history.get_user_preferences()

            artist_tracks, similar_tracks, mood_tracks = await asyncio.gather(
                self._artist_based(preferences.favorite_artists, math.ceil(limit * 0.4)),
                self._similar_songs(preferences.recently_played, math.ceil(limit * 0.3)),
                self._time_based(math.ceil(limit * 0.2))
            )
            recommendations = artist_tracks + similar_tracks + mood_tracks

            if len(recommendations) < limit:
                recommendations.extend(await self._trending(limit - len(recommendations)))

            unique = remove_duplicates(recommendations)
            tracks = shuffle_tracks(unique, self.rng)[:limit]
        except Exception as e:
            log.error(f"Personalized recommendations failed: {e}")
            return await self.get_fallback_recommendations(limit)

        if not tracks:
            log.warning("Every strategy came back empty, using generic fallback")
            return await self.get_fallback_recommendations(limit)

        return tracks

    async def get_fallback_recommendations(self, limit: int) -> List[CandidateTrack]:
        """Generic popular searches, no personalization"""
        per_query = math.ceil(limit / len(FALLBACK_QUERIES))
        results = await asyncio.gather(
            *(self._safe_search(query, per_query) for query in FALLBACK_QUERIES)
        )
        tracks = [track for batch in results for track in batch]
        return remove_duplicates(tracks)[:limit]

    async def get_contextual_recommendations(self, context: str, limit: int = 8) -> List[CandidateTrack]:
        if limit <= 0:
            return []

        queries = get_context_queries(context)
        per_query = math.ceil(limit / len(queries))
        results = await asyncio.gather(
            *(self._safe_search(query, per_query) for query in queries)
        )
        tracks = remove_duplicates([track for batch in results for track in batch])
        return shuffle_tracks(tracks, self.rng)[:limit]

    def score_recommendations(
        self,
        recommendations: Sequence[CandidateTrack],
        preferences: UserPreferences
    ) -> List[CandidateTrack]:
        """Re-rank already fetched tracks, no network calls"""
        favorite_artists = {fav.artist for fav in preferences.favorite_artists}
        recent_artists = {recent.artist for recent in preferences.recently_played}

        scored = []
        for track in recommendations:
            score = 0.0
            if track.artist in favorite_artists:
                score += self.weights["favorite_artists"] * 100
            if track.artist in recent_artists:
                score += self.weights["recent_plays"] * 50
            # jitter keeps refreshes from looking identical
            score += self.rng.random() * 20
            scored.append(track.model_copy(update={"score": score}))

        scored.sort(key=lambda t: t.score, reverse=True)
        return scored

    def get_discovery_preferences(self) -> DiscoveryPreferences:
        preferences = self.history.get_user_preferences()
        return DiscoveryPreferences(
            exploration_level=self.calculate_exploration_level(preferences),
            preferred_genres=preferences.favorite_genres,
            artist_diversity=self.calculate_artist_diversity(preferences),
            time_preferences=preferences.listening_patterns.time_of_day
        )

    @staticmethod
    def calculate_exploration_level(preferences: UserPreferences) -> float:
        """Share of distinct artists among recent plays, scaled to 0-1"""
        total_plays = len(preferences.recently_played)
        if total_plays == 0:
            return 0.5

        unique_artists = len({p.artist for p in preferences.recently_played})
        return min(unique_artists / total_plays * 2, 1.0)

    @staticmethod
    def calculate_artist_diversity(preferences: UserPreferences) -> float:
        """Normalized entropy of listening across favorite artists"""
        artist_counts = preferences.favorite_artists
        if not artist_counts:
            return 0.5
        if len(artist_counts) == 1:
            return 0.0

        total = sum(a.count for a in artist_counts)
        entropy = 0.0
        for artist in artist_counts:
            p = artist.count / total
            entropy -= p * math.log2(p)

        return min(entropy / math.log2(len(artist_counts)), 1.0)

    # Strategies

    async def _artist_based(self, favorite_artists: List[ArtistCount], limit: int) -> List[CandidateTrack]:
        if not favorite_artists:
            return []

        per_artist = math.ceil(limit / 3)
        results = await asyncio.gather(
            *(self._safe_search(f"{fav.artist} songs", per_artist) for fav in favorite_artists[:3])
        )
        return [track for batch in results for track in batch]

    async def _similar_songs(self, recently_played: List[RecentTrack], limit: int) -> List[CandidateTrack]:
        if not recently_played:
            return []

        # Six shares across nine queries leaves room for the trending top-up
        per_query = math.ceil(limit / 6)
        queries = []
        for song in recently_played[:3]:
            queries.extend([
                f"{song.artist} similar songs",
                f"songs like {song.title}",
                f"{song.artist} best tracks"
            ])

        results = await asyncio.gather(
            *(self._safe_search(query, per_query) for query in queries)
        )
        return [track for batch in results for track in batch]

    async def _time_based(self, limit: int) -> List[CandidateTrack]:
        query = get_mood_query(self.clock().hour)
        return await self._safe_search(query, limit)

    async def _trending(self, limit: int) -> List[CandidateTrack]:
        try:
            return list(await self.trending_client.trending(limit))
        except Exception as e:
            log.warning(f"Trending lookup failed: {e}")
            return []

    async def _safe_search(self, query: str, limit: int) -> List[CandidateTrack]:
        if limit <= 0:
            return []
        try:
            return list(await self.search_client.search(query, limit))
        except Exception as e:
            log.warning(f"Search '{query}' failed: {e}")
            return []
