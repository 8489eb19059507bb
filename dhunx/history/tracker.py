# history/tracker.py
import asyncio
import logging
from collections import Counter, OrderedDict
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Dict, List, Optional, Sequence

from pydantic import ValidationError

from dhunx.core.config import Settings
from dhunx.core.scheduler import DebouncedTask
from dhunx.history.collector import HistoryCollector
from dhunx.models.history import (
    ArtistCount,
    Event,
    EventLog,
    HistorySummary,
    ListeningPatterns,
    RecentTrack,
    SkipPatterns,
    TrackSummary,
    UserPreferences
)
from dhunx.models.schemas import CandidateTrack, TrackRef
from dhunx.recommend.heuristics import time_of_day_bucket
from dhunx.store.client import KeyValueStore

log = logging.getLogger(__name__)

WEEKDAYS = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]

QUICK_SKIP_MS = 10_000
MID_SKIP_MS = 60_000

@dataclass(frozen=True)
class HistoryCaps:
    plays: int = 100
    likes: int = 50
    skips: int = 50
    searches: int = 20

class HistoryTracker:
    """
    Bounded per-user log of play / like / skip / search events.

    Every tracking call writes the whole log to the store before returning and
    re-arms a debounced sync to the remote collector. Store and collector
    failures are logged and never reach the caller.
    """

    def __init__(
        self,
        user_id: str,
        store: KeyValueStore,
        collector: HistoryCollector,
        storage_key: str,
        caps: Optional[HistoryCaps] = None,
        sync_delay: float = 5.0,
        clock: Callable[[], datetime] = datetime.now,
        favorite_limit: int = 10,
        recent_limit: int = 10
    ):
        self.user_id = user_id
        self.store = store
        self.collector = collector
        self.storage_key = storage_key
        self.caps = caps or HistoryCaps()
        self.favorite_limit = favorite_limit
        self.recent_limit = recent_limit
        self._clock = clock
        self._log = self._empty_log()
        self.sync_task = DebouncedTask(self._sync, delay=sync_delay)

    @property
    def event_log(self) -> EventLog:
        return self._log

    async def load(self) -> None:
        """Hydrate the log from the store, starting fresh when nothing usable is stored"""
        try:
            raw = await self.store.get(self.storage_key)
        except Exception as e:
            log.error(f"Failed to load history for {self.user_id}: {e}")
            return

        if not raw:
            return

        try:
            stored = EventLog.model_validate_json(raw)
        except ValidationError as e:
            log.error(f"Discarding unreadable history for {self.user_id}: {e}")
            return

        for name in ("plays", "likes", "skips", "searches"):
            self._trim(getattr(stored, name), getattr(self.caps, name))
        self._log = stored
        log.info(f"Loaded history for {self.user_id}: {len(stored.plays)} plays, {len(stored.likes)} likes")

    async def close(self) -> None:
        """Flush a pending sync"""
        await self.sync_task.fire_now()
        await self.sync_task.drain()

    # Tracking

    async def track_play(self, track: TrackRef, duration: int = 0, source: Optional[str] = None) -> None:
        event = self._track_event("play", track, duration=duration, source=source)
        await self._record("plays", event)

    async def track_like(self, track: TrackRef) -> None:
        await self._record("likes", self._track_event("like", track))

    async def track_skip(self, track: TrackRef, play_duration: int = 0) -> None:
        event = self._track_event("skip", track, play_duration=play_duration)
        await self._record("skips", event)

    async def track_search(self, query: str, results: Sequence[CandidateTrack] = ()) -> None:
        now = self._clock()
        event = Event(
            kind="search",
            timestamp=self._epoch_ms(now),
            hour=now.hour,
            weekday=WEEKDAYS[now.weekday()],
            query=query.lower(),
            result_count=len(results),
            top_results=[
                TrackSummary(id=r.id, title=r.title, artist=r.artist)
                for r in results[:3]
            ]
        )
        await self._record("searches", event)

    async def clear_history(self) -> None:
        """Privacy reset: forget every event and drop the stored copy"""
        self._log = self._empty_log()
        try:
            await self.store.delete(self.storage_key)
        except Exception as e:
            log.error(f"Failed to delete stored history for {self.user_id}: {e}")
        log.info(f"Cleared history for {self.user_id}")

    # Derived views

    def get_user_preferences(self) -> UserPreferences:
        return UserPreferences(
            favorite_artists=self.get_favorite_artists(),
            favorite_genres=[],
            listening_patterns=self.get_listening_patterns(),
            recently_played=self.get_recently_played(),
            skip_patterns=self.get_skip_patterns()
        )

    def get_favorite_artists(self, limit: Optional[int] = None) -> List[ArtistCount]:
        """Artists ranked by plays + likes, ties keep first-seen order"""
        counts = Counter(
            event.artist
            for event in self._log.plays + self._log.likes
            if event.artist
        )
        return [
            ArtistCount(artist=artist, count=count)
            for artist, count in counts.most_common(self.favorite_limit if limit is None else limit)
        ]

    def get_listening_patterns(self) -> ListeningPatterns:
        time_of_day: Dict[str, int] = {}
        day_of_week: Dict[str, int] = {}
        for play in self._log.plays:
            slot = time_of_day_bucket(play.hour)
            time_of_day[slot] = time_of_day.get(slot, 0) + 1
            day_of_week[play.weekday] = day_of_week.get(play.weekday, 0) + 1
        return ListeningPatterns(time_of_day=time_of_day, day_of_week=day_of_week)

    def get_recently_played(self) -> List[RecentTrack]:
        recent = self._log.plays[-self.recent_limit:]
        return [
            RecentTrack(
                id=play.id,
                title=play.title,
                artist=play.artist,
                thumbnail=play.thumbnail,
                timestamp=play.timestamp
            )
            for play in reversed(recent)
        ]

    def get_skip_patterns(self) -> SkipPatterns:
        patterns = SkipPatterns()
        for skip in self._log.skips:
            played = skip.play_duration or 0
            if played < QUICK_SKIP_MS:
                patterns.quick_skips += 1
            elif played < MID_SKIP_MS:
                patterns.mid_skips += 1
            else:
                patterns.late_skips += 1
        return patterns

    def get_history_summary(self) -> HistorySummary:
        return HistorySummary(
            total_plays=len(self._log.plays),
            total_likes=len(self._log.likes),
            total_skips=len(self._log.skips),
            total_searches=len(self._log.searches),
            session_start=self._log.session_start,
            favorite_artists=self.get_favorite_artists(limit=5)
        )

    # Internals

    def _empty_log(self) -> EventLog:
        return EventLog(session_start=self._epoch_ms(self._clock()))

    @staticmethod
    def _epoch_ms(moment: datetime) -> int:
        return int(moment.timestamp() * 1000)

    @staticmethod
    def _trim(sequence: List[Event], cap: int) -> None:
        # FIFO: oldest events sit at the front
        if len(sequence) > cap:
            del sequence[:len(sequence) - cap]

    def _track_event(self, kind: str, track: TrackRef, **payload) -> Event:
        now = self._clock()
        return Event(
            kind=kind,
            timestamp=self._epoch_ms(now),
            hour=now.hour,
            weekday=WEEKDAYS[now.weekday()],
            id=track.id,
            title=track.title,
            artist=track.artist,
            thumbnail=track.thumbnail,
            **payload
        )

    async def _record(self, sequence_name: str, event: Event) -> None:
        sequence = getattr(self._log, sequence_name)
        sequence.append(event)
        self._trim(sequence, getattr(self.caps, sequence_name))
        await self._save()
        self.sync_task.schedule()

    async def _save(self) -> None:
        try:
            await self.store.set(self.storage_key, self._log.model_dump_json())
        except Exception as e:
            log.error(f"Failed to save history for {self.user_id}: {e}")

    async def _sync(self) -> None:
        # Serialized when the timer fires, not when the event was tracked
        history = self._log.model_dump(mode="json")
        try:
            await self.collector.sync(self.user_id, history)
            log.debug(f"History synced for {self.user_id}")
        except Exception as e:
            log.warning(f"History sync failed for {self.user_id}: {e}")

class TrackerRegistry:
    """One hydrated tracker per user id, least recently used evicted past the cap"""

    def __init__(
        self,
        store: KeyValueStore,
        collector: HistoryCollector,
        settings: Settings,
        clock: Callable[[], datetime] = datetime.now
    ):
        self.store = store
        self.collector = collector
        self.settings = settings
        self.clock = clock
        self.max_users = max(1, settings.max_tracked_users)
        self.caps = HistoryCaps(
            plays=settings.max_plays,
            likes=settings.max_likes,
            skips=settings.max_skips,
            searches=settings.max_searches
        )
        self._trackers: "OrderedDict[str, HistoryTracker]" = OrderedDict()
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._trackers)

    def __contains__(self, user_id: str) -> bool:
        return user_id in self._trackers

    def storage_key(self, user_id: str) -> str:
        return f"{self.settings.history_key_prefix}:{user_id}"

    async def get(self, user_id: str) -> HistoryTracker:
        tracker = self._trackers.get(user_id)
        if tracker is not None:
            self._trackers.move_to_end(user_id)
            return tracker

        async with self._lock:
            tracker = self._trackers.get(user_id)
            if tracker is None:
                tracker = HistoryTracker(
                    user_id,
                    self.store,
                    self.collector,
                    self.storage_key(user_id),
                    caps=self.caps,
                    sync_delay=self.settings.sync_delay_seconds,
                    clock=self.clock,
                    favorite_limit=self.settings.favorite_artist_limit,
                    recent_limit=self.settings.recently_played_limit
                )
                await tracker.load()
                self._trackers[user_id] = tracker
                await self._evict()
            else:
                self._trackers.move_to_end(user_id)
        return tracker

    async def _evict(self) -> None:
        # Evicted trackers flush their pending sync; the stored log stays for the next load
        while len(self._trackers) > self.max_users:
            user_id, tracker = self._trackers.popitem(last=False)
            log.debug(f"Evicting history tracker for {user_id}")
            await tracker.close()

    async def close(self) -> None:
        for tracker in list(self._trackers.values()):
            await tracker.close()
        self._trackers.clear()
