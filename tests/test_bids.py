from uuid import uuid4

import pytest
import pytest_asyncio
from jose import jwt
from sqlalchemy import func, select

from auctionlive.core.jwt import TokenService
from auctionlive.errors import (
    BidRejectedError,
    FormatError,
    NotFoundError,
    TokenMalformedError,
    TokenSignatureError,
)
from auctionlive.models.bid import Bid
from auctionlive.services import bidding_service
from auctionlive.services.item_service import get_item
from tests.conftest import item_data


@pytest_asyncio.fixture
async def item_id(api):
    result = await api.create_item(**item_data(start_price=10))
    return result["id"]


async def count_bids(session_factory, item_id):
    async with session_factory() as db:
        result = await db.execute(
            select(func.count()).select_from(Bid).where(Bid.item_id == item_id)
        )
        return result.scalar_one()


async def test_first_bid(api, token, item_id):
    result = await api.place_bid(item_id, token, 1000)

    assert result == {"message": "Ok, bid placed."}

    item = await api.retrieve_item(item_id)
    sub = jwt.get_unverified_claims(token)["sub"]
    assert len(item.bids) == 1
    assert str(item.bids[0].user_id) == sub
    assert item.bids[0].amount == 1000

    profile = await api.retrieve_user(token)
    assert profile.items == [item_id]


async def test_second_bid_goes_first(api, token, item_id):
    await api.place_bid(item_id, token, 1000)
    await api.place_bid(item_id, token, 2000)

    item = await api.retrieve_item(item_id)
    assert [bid.amount for bid in item.bids] == [2000, 1000]

    profile = await api.retrieve_user(token)
    assert profile.items == [item_id]


async def test_many_bids_list_item_once(api, token, item_id):
    amounts = [11, 12.5, 20, 35, 100]
    for amount in amounts:
        await api.place_bid(item_id, token, amount)

    item = await api.retrieve_item(item_id)
    assert len(item.bids) == len(amounts)
    assert item.bids[0].amount == max(amounts)
    assert [bid.amount for bid in item.bids] == sorted(amounts, reverse=True)

    profile = await api.retrieve_user(token)
    assert profile.items.count(item_id) == 1


async def test_user_items_keep_first_bid_order(api, token):
    first = (await api.create_item(**item_data(1)))["id"]
    second = (await api.create_item(**item_data(2)))["id"]

    await api.place_bid(second, token, 500)
    await api.place_bid(first, token, 500)
    await api.place_bid(second, token, 600)

    profile = await api.retrieve_user(token)
    assert profile.items == [second, first]

    items = await api.retrieve_user_items(token)
    assert [item.id for item in items] == [second, first]


@pytest.mark.parametrize("amount", [5, 10])
async def test_bid_not_above_start_price(api, token, item_id, session_factory, amount):
    with pytest.raises(BidRejectedError) as exc:
        await api.place_bid(item_id, token, amount)

    assert exc.value.message == (
        f'sorry, the current bid "{amount}" is lower than the start price'
    )
    assert exc.value.params["rule"] == "start_price"
    assert await count_bids(session_factory, item_id) == 0

    profile = await api.retrieve_user(token)
    assert profile.items == []


@pytest.mark.parametrize("amount", [15, 14.5])
async def test_bid_not_above_current_amount(api, token, item_id, session_factory, amount):
    await api.place_bid(item_id, token, 15)

    with pytest.raises(BidRejectedError) as exc:
        await api.place_bid(item_id, token, amount)

    assert exc.value.message == f'sorry, the bid "{amount}" is lower than the current amount'
    assert exc.value.params["current"] == 15
    assert await count_bids(session_factory, item_id) == 1


async def test_bid_unknown_item(api, token):
    missing = uuid4()

    with pytest.raises(NotFoundError) as exc:
        await api.place_bid(missing, token, 100)

    assert exc.value.message == f'item with id "{missing}" doesn\'t exist'


async def test_bid_malformed_item_id(api, token):
    with pytest.raises(FormatError, match='^"wrong-id" is not a valid id$'):
        await api.place_bid("wrong-id", token, 100)


async def test_bid_non_numeric_amount(api, token, item_id):
    with pytest.raises(FormatError, match="^amount is not a number$"):
        await api.place_bid(item_id, token, "100")


@pytest.mark.parametrize("amount", [float("inf"), float("nan")])
async def test_bid_non_finite_amount(api, token, item_id, session_factory, amount):
    with pytest.raises(FormatError, match="^amount is not a number$"):
        await api.place_bid(item_id, token, amount)

    assert await count_bids(session_factory, item_id) == 0
    item = await api.retrieve_item(item_id)
    assert item.bids == []


async def test_bid_bad_tokens(api, token, item_id, session_factory):
    forged = TokenService(secret_key="another-secret").issue("whoever")

    with pytest.raises(TokenSignatureError, match="^invalid signature$"):
        await api.place_bid(item_id, forged, 100)
    with pytest.raises(TokenMalformedError, match="^jwt malformed$"):
        await api.place_bid(item_id, "wrong-token", 100)

    assert await count_bids(session_factory, item_id) == 0


async def test_bid_loses_race(api, token, item_id, session_factory, tokens):
    async with session_factory() as db:
        async with db.begin():
            # Snapshot the item before anyone has bid on it
            stale = await get_item(db, item_id)
            assert stale.current_amount is None

            await api.place_bid(item_id, token, 50)

            with pytest.raises(BidRejectedError) as exc:
                await bidding_service.place_bid(db, tokens, item_id, token, 30)

    assert exc.value.params == {"amount": 30, "current": 50, "rule": "current_amount"}
    assert await count_bids(session_factory, item_id) == 1


async def test_bids_from_several_users(api, token, item_id):
    await api.register_user("Mary", "Jane", "mj@mail.com", "123")
    other = await api.authenticate_user("mj@mail.com", "123")

    await api.place_bid(item_id, token, 20)
    await api.place_bid(item_id, other, 30)

    with pytest.raises(BidRejectedError):
        await api.place_bid(item_id, token, 25)

    item = await api.retrieve_item(item_id)
    assert [bid.amount for bid in item.bids] == [30, 20]
    assert (await api.retrieve_user(other)).items == [item_id]


# Bid history


async def test_retrieve_item_bids(api, token, item_id, credentials):
    await api.place_bid(item_id, token, 100)
    await api.place_bid(item_id, token, 200)

    bids = await api.retrieve_item_bids(item_id, token)

    assert [bid.amount for bid in bids] == [200, 100]
    for bid in bids:
        assert bid.user.name == credentials["name"]
        assert bid.user.model_dump() == {"name": credentials["name"]}


async def test_retrieve_item_bids_empty(api, token, item_id):
    assert await api.retrieve_item_bids(item_id, token) == []


async def test_retrieve_item_bids_after_bidder_deleted(api, token, item_id, credentials):
    await api.register_user("Mary", "Jane", "mj@mail.com", "123")
    viewer = await api.authenticate_user("mj@mail.com", "123")
    await api.place_bid(item_id, token, 100)

    await api.delete_user(token, credentials["email"], credentials["password"])

    bids = await api.retrieve_item_bids(item_id, viewer)
    assert len(bids) == 1
    assert bids[0].amount == 100
    assert bids[0].user is None


async def test_retrieve_item_bids_bad_item(api, token):
    missing = uuid4()

    with pytest.raises(NotFoundError, match=f'item with id "{missing}"'):
        await api.retrieve_item_bids(missing, token)
    with pytest.raises(FormatError):
        await api.retrieve_item_bids("wrong-id", token)


async def test_retrieve_item_bids_bad_tokens(api, item_id):
    forged = TokenService(secret_key="another-secret").issue("whoever")

    with pytest.raises(TokenSignatureError):
        await api.retrieve_item_bids(item_id, forged)
    with pytest.raises(TokenMalformedError):
        await api.retrieve_item_bids(item_id, "wrong-token")


async def test_peter_parker_example(api):
    await api.register_user("Peter", "Parker", "p@mail.com", "secret")
    token = await api.authenticate_user("p@mail.com", "secret")
    item_id = (await api.create_item(**item_data(start_price=10)))["id"]

    with pytest.raises(BidRejectedError, match="lower than the start price"):
        await api.place_bid(item_id, token, 5)

    await api.place_bid(item_id, token, 15)

    with pytest.raises(BidRejectedError, match="lower than the current amount"):
        await api.place_bid(item_id, token, 10)
