import logging
from datetime import datetime
from typing import Any, Mapping
from uuid import UUID

from pydantic import ValidationError
from redis.asyncio import Redis
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from auctionlive.core.config import settings
from auctionlive.errors import FormatError, item_not_found
from auctionlive.models.item import Item
from auctionlive.schemas.item import ItemOut, ItemQuery
from auctionlive.validators import (
    parse_id,
    require,
    require_datetime,
    require_number,
    require_string,
    to_utc,
)

logger = logging.getLogger(__name__)

FACET_CACHE_KEYS = {
    "city": "catalog:cities",
    "category": "catalog:categories",
}


def _normalize_images(images: Any) -> list[str]:
    """Accept a single image reference or a collection of them."""
    require("images", images)
    if isinstance(images, str):
        images = [images]
    elif not isinstance(images, (list, tuple, set)):
        raise FormatError("images is not a collection", field="images")

    normalized = []
    for image in images:
        normalized.append(require_string("images", image))
    return normalized


async def get_item(db: AsyncSession, item_id: Any) -> Item:
    """Load an item by id, telling malformed ids apart from missing ones."""
    parsed_id: UUID = parse_id(item_id)
    item = await db.get(Item, parsed_id)
    if item is None:
        raise item_not_found(item_id)
    return item


async def create_item(
    db: AsyncSession,
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
    """Persist a new item. Cached facets are dropped by the caller once committed."""
    require_string("title", title)
    require_string("description", description)
    start_price = require_number("start_price", start_price)
    start_date = require_datetime("start_date", start_date)
    finish_date = require_datetime("finish_date", finish_date)
    reserved_price = require_number("reserved_price", reserved_price)
    images = _normalize_images(images)
    require_string("category", category)
    require_string("city", city)

    if finish_date < start_date:
        raise FormatError(
            "finish_date is before start_date",
            start_date=start_date.isoformat(),
            finish_date=finish_date.isoformat(),
        )

    item = Item(
        title=title,
        description=description,
        start_price=start_price,
        start_date=start_date,
        finish_date=finish_date,
        reserved_price=reserved_price,
        images=images,
        category=category,
        city=city,
        bid_count=0,
    )
    db.add(item)
    await db.flush()

    logger.info(f"Item created: {item.id} ({category}, {city})")
    return {"message": "Ok, item created.", "id": item.id}


async def search_items(
    db: AsyncSession, query: Mapping[str, Any] | ItemQuery | None
) -> list[ItemOut]:
    """
    Search items with conjunctive filters.

    Supported keys:
        city / category: exact match
        start_date / end_date: inclusive range on finish_date
        start_price / end_price: inclusive range on start_price

    Missing keys do not filter; an empty query lists every item.
    """
    if query is None:
        query = ItemQuery()
    elif not isinstance(query, ItemQuery):
        try:
            query = ItemQuery.model_validate(dict(query))
        except (TypeError, ValueError, ValidationError) as e:
            raise FormatError(f"invalid query: {e}") from None

    stmt = select(Item)
    if query.city is not None:
        stmt = stmt.where(Item.city == query.city)
    if query.category is not None:
        stmt = stmt.where(Item.category == query.category)
    if query.start_date is not None:
        stmt = stmt.where(Item.finish_date >= to_utc(query.start_date))
    if query.end_date is not None:
        stmt = stmt.where(Item.finish_date <= to_utc(query.end_date))
    if query.start_price is not None:
        stmt = stmt.where(Item.start_price >= query.start_price)
    if query.end_price is not None:
        stmt = stmt.where(Item.start_price <= query.end_price)

    result = await db.execute(stmt.order_by(Item.finish_date))
    return [ItemOut.model_validate(item) for item in result.scalars().all()]


async def retrieve_item(db: AsyncSession, item_id: Any) -> ItemOut:
    item = await get_item(db, item_id)
    return ItemOut.model_validate(item)


async def _retrieve_facet(
    db: AsyncSession, redis: Redis | None, field: str
) -> list[str]:
    """Distinct values of an item column, cached in Redis when available."""
    cache_key = FACET_CACHE_KEYS[field]

    if redis is not None:
        cached = await redis.smembers(cache_key)
        if cached:
            return sorted(
                value.decode("utf-8") if isinstance(value, bytes) else value
                for value in cached
            )

    column = getattr(Item, field)
    result = await db.execute(select(column).distinct())
    values = sorted(result.scalars().all())

    if redis is not None and values:
        pipe = redis.pipeline()
        pipe.sadd(cache_key, *values)
        pipe.expire(cache_key, settings.FACET_CACHE_EXPIRE)
        await pipe.execute()

    return values


async def retrieve_cities(db: AsyncSession, redis: Redis | None) -> list[str]:
    return await _retrieve_facet(db, redis, "city")


async def retrieve_categories(db: AsyncSession, redis: Redis | None) -> list[str]:
    return await _retrieve_facet(db, redis, "category")


async def invalidate_facets(redis: Redis) -> None:
    """Drop the cached facets; only call once the new item is committed."""
    await redis.delete(*FACET_CACHE_KEYS.values())
    logger.debug("Facet cache invalidated")
