# deskillz/infrastructure/storage.py

"""
Pluggable key/value persistence for session data

Every adapter is best-effort: a backend that is unreachable or misbehaving
reads as empty and swallows writes, so callers degrade to an
unauthenticated state instead of crashing.
"""

import logging
from typing import Dict, Optional, Protocol, runtime_checkable
from redis.asyncio import Redis
from redis.exceptions import RedisError

logger = logging.getLogger(__name__)


@runtime_checkable
class StorageAdapter(Protocol):
    """Async get/set/remove capability backing the credential store"""
    
    async def get_item(self, key: str) -> Optional[str]: ...
    
    async def set_item(self, key: str, value: str) -> None: ...
    
    async def remove_item(self, key: str) -> None: ...


class MemoryStorageAdapter:
    """In-memory adapter. Data does not survive the process."""
    
    def __init__(self):
        self._store: Dict[str, str] = {}
    
    async def get_item(self, key: str) -> Optional[str]:
        return self._store.get(key)
    
    async def set_item(self, key: str, value: str) -> None:
        self._store[key] = value
    
    async def remove_item(self, key: str) -> None:
        self._store.pop(key, None)
    
    def clear(self) -> None:
        """Drop everything (useful in tests)"""
        self._store.clear()
    
    @property
    def size(self) -> int:
        return len(self._store)


class RedisStorageAdapter:
    """Redis-backed adapter; connection failures degrade to empty reads and no-op writes"""
    
    def __init__(self, redis: Redis, ttl_seconds: Optional[int] = None):
        self.redis = redis
        self.ttl_seconds = ttl_seconds
    
    async def get_item(self, key: str) -> Optional[str]:
        try:
            value = await self.redis.get(key)
        except (RedisError, OSError) as e:
            logger.warning(f"Redis get failed for key {key}: {e}")
            return None
        
        if isinstance(value, bytes):
            value = value.decode("utf-8")
        return value
    
    async def set_item(self, key: str, value: str) -> None:
        try:
            if self.ttl_seconds:
                await self.redis.setex(key, self.ttl_seconds, value)
            else:
                await self.redis.set(key, value)
        except (RedisError, OSError) as e:
            logger.warning(f"Redis set failed for key {key}: {e}")
    
    async def remove_item(self, key: str) -> None:
        try:
            await self.redis.delete(key)
        except (RedisError, OSError) as e:
            logger.warning(f"Redis delete failed for key {key}: {e}")


def create_default_storage(redis: Optional[Redis] = None) -> StorageAdapter:
    """Redis adapter when a client is supplied, in-memory otherwise"""
    if redis is not None:
        return RedisStorageAdapter(redis)
    return MemoryStorageAdapter()
