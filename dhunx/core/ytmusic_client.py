# core/ytmusic_client.py
import asyncio
import os
import logging
from typing import List, Dict, Any, Optional
from ytmusicapi import YTMusic

from dhunx.core.config import Settings
from dhunx.models.schemas import CandidateTrack

log = logging.getLogger(__name__)

MOCK_THUMBNAIL = "https://i.ytimg.com/vi/dQw4w9WgXcQ/mqdefault.jpg"

# Served when YTMusic cannot be initialized at all
MOCK_TRENDING = [
    ("mock1", "Blinding Lights", "The Weeknd"),
    ("mock2", "Shape of You", "Ed Sheeran"),
    ("mock3", "Bad Habits", "Ed Sheeran"),
    ("mock4", "Stay", "The Kid LAROI & Justin Bieber"),
    ("mock5", "Good 4 U", "Olivia Rodrigo"),
    ("mock6", "Levitating", "Dua Lipa"),
    ("mock7", "Watermelon Sugar", "Harry Styles"),
    ("mock8", "Peaches", "Justin Bieber ft. Daniel Caesar & Giveon"),
    ("mock9", "Deja Vu", "Olivia Rodrigo"),
    ("mock10", "Montero", "Lil Nas X"),
    ("mock11", "Industry Baby", "Lil Nas X & Jack Harlow"),
    ("mock12", "Heat Waves", "Glass Animals"),
]

class CatalogError(Exception):
    """Upstream search / chart lookup failed"""

def parse_duration(dur: Optional[str]) -> int:
    """'3:45' or '1:02:03' to seconds, 0 when unparseable"""
    if not dur or ":" not in dur:
        return 0
    try:
        parts = list(map(int, dur.split(":")))
    except (ValueError, TypeError):
        return 0
    if len(parts) == 2:
        return parts[0] * 60 + parts[1]
    if len(parts) == 3:
        return parts[0] * 3600 + parts[1] * 60 + parts[2]
    return 0

def format_track(item: Dict[str, Any]) -> CandidateTrack:
    dur = item.get("duration") or None
    thumbs = item.get("thumbnails") or []
    artists = item.get("artists") or []

    return CandidateTrack(
        id=item["videoId"],
        title=item.get("title") or "",
        artist=", ".join(a.get("name", "") for a in artists),
        thumbnail=thumbs[-1].get("url", "") if thumbs else "",
        duration=dur,
        duration_seconds=item.get("duration_seconds") or parse_duration(dur)
    )

def mock_search_results(query: str, limit: int) -> List[CandidateTrack]:
    tracks = [
        CandidateTrack(
            id=f"mock{i}",
            title=f"{query} - Sample Track {i}",
            artist=f"Sample Artist {i}",
            thumbnail=MOCK_THUMBNAIL,
            description="Mock result - catalog unavailable"
        )
        for i in (1, 2)
    ]
    return tracks[:limit]

def mock_trending(limit: int) -> List[CandidateTrack]:
    return [
        CandidateTrack(
            id=video_id,
            title=title,
            artist=artist,
            thumbnail=MOCK_THUMBNAIL,
            description="Mock trending song - catalog unavailable"
        )
        for video_id, title, artist in MOCK_TRENDING[:limit]
    ]

class YTMusicCatalog:
    """Search and trending lookups against YouTube Music"""

    def __init__(self, settings: Settings, client: Optional[YTMusic] = None):
        self.settings = settings
        self.client = client

    @property
    def ready(self) -> bool:
        return self.client is not None

    def init(self) -> Optional[YTMusic]:
        """Initialize YTMusic, authenticated when an auth file is configured"""
        auth_path = self.settings.ytmusic_auth_path
        language = self.settings.ytmusic_language

        if auth_path and os.path.exists(auth_path):
            try:
                self.client = YTMusic(auth=auth_path, language=language)
                log.info("YTMusic authenticated with auth file (OK)")
                return self.client
            except Exception as e:
                log.error(f"YTMusic auth failed: {e}")

        # Fallback: unauthenticated
        try:
            self.client = YTMusic(language=language)
            log.info("YTMusic initialized without auth (Fallback)")
        except Exception as e:
            log.error(f"YTMusic initialization failed completely: {e}")
            self.client = None
        return self.client

    async def search(self, query: str, limit: int = 20) -> List[CandidateTrack]:
        if not self.client:
            log.warning("YTMusic not initialized - returning mock results")
            return mock_search_results(query, limit)

        try:
            results = await asyncio.to_thread(self.client.search, query, filter="songs", limit=limit)
        except Exception as e:
            raise CatalogError(f"Search failed for '{query}': {e}") from e

        return [format_track(r) for r in results if r.get("videoId")][:limit]

    async def trending(self, limit: int = 20) -> List[CandidateTrack]:
        """Currently popular songs from the charts, or a trending search when charts are empty"""
        if not self.client:
            log.warning("YTMusic not initialized - returning mock trending")
            return mock_trending(limit)

        try:
            tracks = await asyncio.to_thread(self._chart_tracks, limit)
        except Exception as e:
            log.warning(f"Charts lookup failed for {self.settings.chart_country}: {e}")
            tracks = []

        if tracks:
            return tracks[:limit]
        return await self.search("trending music", limit=limit)

    def _chart_tracks(self, limit: int) -> List[CandidateTrack]:
        charts = self.client.get_charts(country=self.settings.chart_country)

        for section in ("songs", "videos", "trending"):
            chart = charts.get(section)
            if not chart:
                continue

            # Older chart payloads carry the items inline
            if isinstance(chart, dict):
                items = chart.get("items", [])
                return [format_track(i) for i in items if i.get("videoId")]

            playlist_id = next((p.get("playlistId") for p in chart if p.get("playlistId")), None)
            if playlist_id:
                playlist = self.client.get_playlist(playlist_id, limit=limit)
                return [format_track(t) for t in playlist.get("tracks", []) if t.get("videoId")]

        return []
