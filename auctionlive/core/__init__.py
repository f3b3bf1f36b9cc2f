# Core modules
from auctionlive.core.config import settings
from auctionlive.core.database import Base, close_db, init_db
from auctionlive.core.jwt import TokenService
from auctionlive.core.redis import RedisClient, redis_client
from auctionlive.core.security import PasswordHasher

__all__ = [
    "settings",
    "init_db",
    "close_db",
    "Base",
    "TokenService",
    "PasswordHasher",
    "RedisClient",
    "redis_client",
]
