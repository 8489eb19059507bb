# history/collector.py
"""
Remote history collectors.

The tracker hands the serialized event log to a collector after each
debounce window. Collectors may raise; the tracker logs and drops the
failure and the next window sends the latest state again.
"""
import json
import logging
from typing import Any, Dict, Optional, Protocol

import httpx

from dhunx.core.config import Settings
from dhunx.store.client import KeyValueStore

log = logging.getLogger(__name__)

class HistoryCollector(Protocol):
    async def sync(self, user_id: str, history: Dict[str, Any]) -> None:
        ...

    async def close(self) -> None:
        ...

class HttpHistoryCollector:
    """POST the event log to a remote collector endpoint"""

    def __init__(
        self,
        url: str,
        token: Optional[str] = None,
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None
    ):
        self.url = url
        self.token = token
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def sync(self, user_id: str, history: Dict[str, Any]) -> None:
        if not self.token:
            log.debug(f"No sync token configured, skipping history sync for {user_id}")
            return

        response = await self._client.post(
            self.url,
            json={"user_id": user_id, "history": history},
            headers={"Authorization": f"Bearer {self.token}"}
        )
        response.raise_for_status()
        log.debug(f"Synced history for {user_id} ({response.status_code})")

    async def close(self) -> None:
        await self._client.aclose()

class StoreHistoryCollector:
    """Keep the last synced log in the key-value store"""

    def __init__(self, store: KeyValueStore, prefix: str = "history_sync"):
        self.store = store
        self.prefix = prefix

    def key_for(self, user_id: str) -> str:
        return f"{self.prefix}:{user_id}"

    async def sync(self, user_id: str, history: Dict[str, Any]) -> None:
        await self.store.set(self.key_for(user_id), json.dumps(history))

    async def close(self) -> None:
        pass

def build_collector(settings: Settings, store: KeyValueStore) -> HistoryCollector:
    if settings.history_sync_url:
        log.info(f"History sync to {settings.history_sync_url}")
        return HttpHistoryCollector(
            settings.history_sync_url,
            token=settings.history_sync_token,
            timeout=settings.history_sync_timeout
        )
    log.info("No history sync URL configured, keeping synced history in the store")
    return StoreHistoryCollector(store)
