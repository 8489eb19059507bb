# store/client.py
import logging
from typing import Optional, Dict, Protocol

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from dhunx.core.config import Settings

log = logging.getLogger(__name__)

class KeyValueStore(Protocol):
    """String key-value store holding serialized history logs"""

    backend: str

    async def get(self, key: str) -> Optional[str]:
        ...

    async def set(self, key: str, value: str) -> bool:
        ...

    async def delete(self, key: str) -> bool:
        ...

    async def close(self) -> None:
        ...

class MemoryStore:
    """In-memory fallback when Redis is not available"""

    backend = "memory"

    def __init__(self):
        self.data: Dict[str, str] = {}

    async def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    async def set(self, key: str, value: str) -> bool:
        self.data[key] = value
        return True

    async def delete(self, key: str) -> bool:
        if key in self.data:
            del self.data[key]
            return True
        return False

    async def close(self) -> None:
        self.data.clear()

class RedisStore:
    """Redis-backed store"""

    backend = "redis"

    def __init__(self, client: aioredis.Redis):
        self.client = client

    async def get(self, key: str) -> Optional[str]:
        return await self.client.get(key)

    async def set(self, key: str, value: str) -> bool:
        return bool(await self.client.set(key, value))

    async def delete(self, key: str) -> bool:
        return bool(await self.client.delete(key))

    async def close(self) -> None:
        await self.client.aclose()

def build_redis_client(settings: Settings) -> aioredis.Redis:
    if settings.redis_url:
        log.info(f"Connecting to Redis via URL: {settings.redis_url[:50]}...")
        return aioredis.from_url(settings.redis_url, decode_responses=True)

    log.info(f"Connecting to Redis at {settings.redis_host}:{settings.redis_port}")
    return aioredis.Redis(
        host=settings.redis_host,
        port=settings.redis_port,
        password=settings.redis_password,
        db=settings.redis_db,
        decode_responses=True
    )

async def connect_store(settings: Settings) -> KeyValueStore:
    """Get a store that never crashes: Redis when reachable, memory otherwise"""
    client = build_redis_client(settings)
    try:
        await client.ping()
    except (RedisError, OSError) as e:
        log.error(f"Redis connection failed: {e}")
        await client.aclose()
        log.info("Fell back to in-memory store")
        return MemoryStore()

    log.info("Redis store initialized successfully")
    return RedisStore(client)
