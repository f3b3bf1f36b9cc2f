from redis.asyncio import ConnectionPool, Redis

from auctionlive.core.config import settings


class RedisClient:
    """Redis client manager class"""

    def __init__(self, url: str | None = None):
        self._url = url or settings.REDIS_URL
        self._pool: ConnectionPool | None = None
        self._client: Redis | None = None

    async def connect(self) -> None:
        """Connect to Redis"""
        if self._pool is None:
            self._pool = ConnectionPool.from_url(
                self._url,
                encoding="utf-8",
                decode_responses=True,
                max_connections=50,
            )
            self._client = Redis(connection_pool=self._pool)

    async def disconnect(self) -> None:
        """Disconnect from Redis"""
        if self._client:
            await self._client.aclose()
        if self._pool:
            await self._pool.disconnect()
        self._client = None
        self._pool = None

    def get_client(self) -> Redis:
        """Get Redis client instance"""
        if self._client is None:
            raise RuntimeError("Redis client is not connected. Call connect() first.")
        return self._client

    async def ping(self) -> bool:
        """Test Redis connection"""
        if self._client is None:
            return False
        try:
            return await self._client.ping()
        except Exception:
            return False


redis_client = RedisClient()
