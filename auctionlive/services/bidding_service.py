import logging
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import and_, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from auctionlive.core.jwt import TokenService
from auctionlive.errors import BidRejectedError, ConflictError
from auctionlive.models.bid import Bid
from auctionlive.models.item import Item
from auctionlive.models.user import User, UserItem
from auctionlive.schemas.bid import BidOut
from auctionlive.services.item_service import get_item
from auctionlive.services.user_service import get_user_by_token
from auctionlive.validators import require_number

logger = logging.getLogger(__name__)


def _format_amount(amount: float) -> str:
    # 15.0 -> "15", 15.5 -> "15.5"
    return str(int(amount)) if amount.is_integer() else str(amount)


def _below_start_price(amount: float) -> BidRejectedError:
    shown = _format_amount(amount)
    return BidRejectedError(
        f'sorry, the current bid "{shown}" is lower than the start price',
        amount=amount,
        rule="start_price",
    )


def _below_current_amount(amount: float, current: float) -> BidRejectedError:
    shown = _format_amount(amount)
    return BidRejectedError(
        f'sorry, the bid "{shown}" is lower than the current amount',
        amount=amount,
        current=current,
        rule="current_amount",
    )


def check_bid(item: Item, amount: float) -> None:
    """
    Validate a bid against the item's leading amount.

    With no bids the amount must beat the start price, otherwise it must beat
    the leading (most recent) bid.
    """
    if item.current_amount is None:
        if amount <= item.start_price:
            raise _below_start_price(amount)
    elif amount <= item.current_amount:
        raise _below_current_amount(amount, item.current_amount)


async def _compare_and_append(db: AsyncSession, item: Item, amount: float) -> int | None:
    """
    Claim the next bid slot on the item if ``amount`` still leads.

    A single conditional UPDATE: it only matches while the stored leading
    amount (or the start price, with no bids yet) is below ``amount``, so two
    concurrent bidders can never both win against the same leading bid.

    Returns:
        The new bid's sequence number, or None if another bid got there first
    """
    result = await db.execute(
        update(Item)
        .where(
            Item.id == item.id,
            or_(
                and_(Item.current_amount.is_(None), Item.start_price < amount),
                Item.current_amount < amount,
            ),
        )
        .values(bid_count=Item.bid_count + 1, current_amount=amount)
        .returning(Item.bid_count)
        .execution_options(synchronize_session=False)
    )
    return result.scalar_one_or_none()


async def _link_user_item(db: AsyncSession, user: User, item: Item) -> None:
    """Append the item to the user's items unless it is already there."""
    result = await db.execute(
        select(UserItem.id).where(
            UserItem.user_id == user.id, UserItem.item_id == item.id
        )
    )
    if result.first() is None:
        db.add(UserItem(user_id=user.id, item_id=item.id))


async def place_bid(
    db: AsyncSession,
    tokens: TokenService,
    item_id: Any,
    token: str,
    amount: float,
) -> dict:
    """
    Place a bid on an item for the acting user.

    The bid row, the item's leading amount and the user's item link are all
    written in the caller's transaction; any failure rolls all of them back.
    """
    user = await get_user_by_token(db, tokens, token)
    amount = require_number("amount", amount)
    item = await get_item(db, item_id)

    try:
        check_bid(item, amount)
    except BidRejectedError as e:
        logger.warning(f"Bid rejected on item {item.id} by user {user.id}: {e}")
        raise

    sequence = await _compare_and_append(db, item, amount)
    if sequence is None:
        # A concurrent bid moved the leading amount past ours
        await db.refresh(item, attribute_names=["current_amount", "bid_count"])
        logger.warning(f"Bid on item {item.id} by user {user.id} lost a race")
        raise _below_current_amount(amount, item.current_amount)

    db.add(
        Bid(
            item_id=item.id,
            user_id=user.id,
            amount=amount,
            time_stamp=datetime.now(timezone.utc).replace(tzinfo=None),
            sequence=sequence,
        )
    )
    await _link_user_item(db, user, item)

    try:
        await db.flush()
    except IntegrityError:
        raise ConflictError(
            f'item with id "{item.id}" received a concurrent bid', id=str(item.id)
        ) from None

    logger.info(f"Bid placed on item {item.id} by user {user.id}: {amount}")
    return {"message": "Ok, bid placed."}


async def retrieve_item_bids(
    db: AsyncSession,
    tokens: TokenService,
    item_id: Any,
    token: str,
) -> list[BidOut]:
    """Bid history of an item, newest first, bidders reduced to their name."""
    await get_user_by_token(db, tokens, token)
    item = await get_item(db, item_id)

    result = await db.execute(
        select(Bid).where(Bid.item_id == item.id).order_by(Bid.sequence.desc())
    )
    return [BidOut.model_validate(bid) for bid in result.scalars().all()]
