# tests/conftest.py
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, Tuple

import pytest

from dhunx.core.ytmusic_client import CatalogError
from dhunx.history.tracker import HistoryCaps, HistoryTracker
from dhunx.models.schemas import CandidateTrack, TrackRef
from dhunx.store.client import MemoryStore


def make_track(track_id: str, artist: str = "Artist", title: Optional[str] = None) -> TrackRef:
    return TrackRef(id=track_id, title=title or f"Song {track_id}", artist=artist, thumbnail="")


def make_candidate(track_id: str, artist: str = "Artist", title: Optional[str] = None) -> CandidateTrack:
    return CandidateTrack(id=track_id, title=title or f"Song {track_id}", artist=artist)


class FixedClock:
    """Callable clock the tests can move around"""

    def __init__(self, moment: datetime):
        self.moment = moment

    def __call__(self) -> datetime:
        return self.moment


class FakeCatalog:
    """Scripted search / trending collaborator that records every call"""

    ready = True

    def __init__(
        self,
        fail_all: bool = False,
        fail_queries: Sequence[str] = (),
        fail_trending: bool = False,
        fixed_results: Optional[List[CandidateTrack]] = None,
        per_query_cap: Optional[int] = None
    ):
        self.fail_all = fail_all
        self.fail_queries = set(fail_queries)
        self.fail_trending = fail_trending
        self.fixed_results = fixed_results
        self.per_query_cap = per_query_cap
        self.calls: List[Tuple[str, int]] = []
        self.trending_calls: List[int] = []

    async def search(self, query: str, limit: int = 20) -> List[CandidateTrack]:
        self.calls.append((query, limit))
        if self.fail_all or query in self.fail_queries:
            raise CatalogError(f"upstream down for {query}")
        if self.fixed_results is not None:
            return list(self.fixed_results)
        count = limit if self.per_query_cap is None else min(limit, self.per_query_cap)
        return [make_candidate(f"{query}-{i}", artist=query) for i in range(count)]

    async def trending(self, limit: int = 20) -> List[CandidateTrack]:
        self.trending_calls.append(limit)
        if self.fail_all or self.fail_trending:
            raise CatalogError("charts down")
        return [make_candidate(f"trend-{i}", artist="Trending") for i in range(limit)]

    @property
    def queries(self) -> List[str]:
        return [query for query, _ in self.calls]


class RecordingCollector:
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.calls: List[Tuple[str, Dict[str, Any]]] = []
        self.closed = False

    async def sync(self, user_id: str, history: Dict[str, Any]) -> None:
        self.calls.append((user_id, history))
        if self.fail:
            raise RuntimeError("collector unreachable")

    async def close(self) -> None:
        self.closed = True


class FailingStore(MemoryStore):
    async def set(self, key: str, value: str) -> bool:
        raise OSError("quota exceeded")


@pytest.fixture
def clock():
    # Wednesday afternoon
    return FixedClock(datetime(2024, 5, 15, 14, 30))


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def collector():
    return RecordingCollector()


@pytest.fixture
def tracker(store, collector, clock):
    return HistoryTracker(
        "user-1",
        store,
        collector,
        "dhunx_user_history:user-1",
        caps=HistoryCaps(),
        sync_delay=60.0,
        clock=clock
    )
