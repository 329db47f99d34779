# deskillz/infrastructure/redis_connection.py

import logging
import redis.asyncio as aioredis
from deskillz.config.settings import SdkSettings

logger = logging.getLogger(__name__)


class RedisConnection:
    """Simple Redis connection manager for token persistence"""
    
    def __init__(self, settings: SdkSettings):
        self.settings = settings
        self.client: aioredis.Redis | None = None
    
    async def connect(self):
        """Connect to Redis"""
        if self.client is not None:
            return  # Already connected
        
        try:
            self.client = aioredis.Redis(
                host=self.settings.REDIS_HOST,
                port=self.settings.REDIS_PORT,
                db=self.settings.REDIS_DB,
                password=self.settings.REDIS_PASSWORD,
                decode_responses=True,
            )
            await self.client.ping()
            logger.info(f"Connected to Redis at {self.settings.REDIS_HOST}:{self.settings.REDIS_PORT}")
        except Exception as e:
            logger.error(f"Failed to connect to Redis: {e}")
            self.client = None
            raise
    
    async def disconnect(self):
        """Disconnect from Redis"""
        if self.client:
            await self.client.aclose()
            self.client = None
            logger.info("Disconnected from Redis")
    
    def get_client(self) -> aioredis.Redis:
        """Get the Redis client instance"""
        if not self.client:
            raise RuntimeError("Redis client is not connected. Call connect() first.")
        return self.client
