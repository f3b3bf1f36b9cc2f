"""
AuctionLive core entry point.

``AuctionLiveApi`` is what an HTTP or UI layer talks to: every coroutine runs
in its own session and transaction, so a failed call never leaves partial
writes behind.
"""

from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, AsyncIterator, Mapping

from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from auctionlive.core.jwt import TokenService
from auctionlive.core.security import PasswordHasher
from auctionlive.schemas.bid import BidOut
from auctionlive.schemas.item import ItemOut, ItemQuery
from auctionlive.schemas.user import UserProfile
from auctionlive.services import bidding_service, item_service, user_service


class AuctionLiveApi:
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        tokens: TokenService | None = None,
        hasher: PasswordHasher | None = None,
        redis: Redis | None = None,
    ):
        self._sessions = session_factory
        self.tokens = tokens or TokenService()
        self.hasher = hasher or PasswordHasher()
        self.redis = redis

    @classmethod
    async def from_settings(
        cls, redis: Redis | None = None, use_cache: bool = True
    ) -> "AuctionLiveApi":
        """Build the API on the configured database engine.

        Unless a client is given, the facet cache uses the shared
        ``redis_client``, connecting it on first use. Pass
        ``use_cache=False`` to read facets straight from the database.
        """
        from auctionlive.core.database import AsyncSessionLocal
        from auctionlive.core.redis import redis_client

        if redis is None and use_cache:
            await redis_client.connect()
            redis = redis_client.get_client()
        return cls(AsyncSessionLocal, redis=redis)

    @asynccontextmanager
    async def _transaction(self) -> AsyncIterator[AsyncSession]:
        async with self._sessions() as db:
            async with db.begin():
                yield db

    # Users

    async def register_user(
        self, name: str, surname: str, email: str, password: str
    ) -> dict:
        async with self._transaction() as db:
            return await user_service.register_user(
                db, self.hasher, name, surname, email, password
            )

    async def authenticate_user(self, email: str, password: str) -> str:
        async with self._transaction() as db:
            return await user_service.authenticate_user(
                db, self.hasher, self.tokens, email, password
            )

    async def retrieve_user(self, token: str) -> UserProfile:
        async with self._transaction() as db:
            return await user_service.retrieve_user(db, self.tokens, token)

    async def update_user(self, token: str, **data: Any) -> dict:
        async with self._transaction() as db:
            return await user_service.update_user(
                db, self.hasher, self.tokens, token, data
            )

    async def delete_user(self, token: str, email: str, password: str) -> dict:
        async with self._transaction() as db:
            return await user_service.delete_user(
                db, self.hasher, self.tokens, token, email, password
            )

    async def retrieve_user_items(self, token: str) -> list[ItemOut]:
        async with self._transaction() as db:
            return await user_service.retrieve_user_items(db, self.tokens, token)

    # Items

    async def create_item(
        self,
        title: str,
        description: str,
        start_price: float,
        start_date: datetime,
        finish_date: datetime,
        reserved_price: float,
        images: Any,
        category: str,
        city: str,
    ) -> dict:
        async with self._transaction() as db:
            result = await item_service.create_item(
                db,
                title,
                description,
                start_price,
                start_date,
                finish_date,
                reserved_price,
                images,
                category,
                city,
            )

        if self.redis is not None:
            await item_service.invalidate_facets(self.redis)
        return result

    async def search_items(
        self, query: Mapping[str, Any] | ItemQuery | None = None
    ) -> list[ItemOut]:
        async with self._transaction() as db:
            return await item_service.search_items(db, query)

    async def retrieve_item(self, item_id: Any) -> ItemOut:
        async with self._transaction() as db:
            return await item_service.retrieve_item(db, item_id)

    async def retrieve_cities(self) -> list[str]:
        async with self._transaction() as db:
            return await item_service.retrieve_cities(db, self.redis)

    async def retrieve_categories(self) -> list[str]:
        async with self._transaction() as db:
            return await item_service.retrieve_categories(db, self.redis)

    # Bids

    async def place_bid(self, item_id: Any, token: str, amount: float) -> dict:
        async with self._transaction() as db:
            return await bidding_service.place_bid(
                db, self.tokens, item_id, token, amount
            )

    async def retrieve_item_bids(self, item_id: Any, token: str) -> list[BidOut]:
        async with self._transaction() as db:
            return await bidding_service.retrieve_item_bids(
                db, self.tokens, item_id, token
            )
