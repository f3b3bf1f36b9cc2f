from datetime import datetime, timedelta

import pytest
import pytest_asyncio
from fakeredis import aioredis

from auctionlive.api import AuctionLiveApi
from auctionlive.core.database import build_engine, build_session_factory, init_db
from auctionlive.core.jwt import TokenService
from auctionlive.core.security import PasswordHasher

CITIES = ["Japan", "London", "New York", "Spain"]
CATEGORIES = ["Art", "Cars", "Jewellery", "Watches"]


@pytest_asyncio.fixture
async def engine(tmp_path):
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'auctionlive.db'}")
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return build_session_factory(engine)


@pytest.fixture
def tokens():
    return TokenService(secret_key="test-secret", expire_minutes=5)


@pytest.fixture
def hasher():
    # Minimum bcrypt cost keeps the suite fast
    return PasswordHasher(rounds=4)


@pytest_asyncio.fixture
async def redis():
    client = aioredis.FakeRedis(decode_responses=True)
    yield client
    await client.flushall()
    await client.aclose()


@pytest.fixture
def api(session_factory, tokens, hasher):
    return AuctionLiveApi(session_factory, tokens=tokens, hasher=hasher)


@pytest.fixture
def credentials():
    return {
        "name": "Peter",
        "surname": "Parker",
        "email": "pparker@mail.com",
        "password": "secret",
    }


@pytest_asyncio.fixture
async def token(api, credentials):
    await api.register_user(**credentials)
    return await api.authenticate_user(credentials["email"], credentials["password"])


def item_data(index: int = 0, **overrides) -> dict:
    """Deterministic item fields; ``index`` spreads prices, dates and facets."""
    now = datetime(2030, 1, 1, 12, 0, 0)
    data = {
        "title": f"Car-{index}",
        "description": f"description-{index}",
        "start_price": 10 + (index * 7) % 200,
        "start_date": now + timedelta(days=index % 3),
        "finish_date": now + timedelta(days=3 + index % 5),
        "reserved_price": 0,
        "images": "image1.jpg",
        "category": CATEGORIES[index % len(CATEGORIES)],
        "city": CITIES[(index // 2) % len(CITIES)],
    }
    data.update(overrides)
    return data


@pytest_asyncio.fixture
async def items(api):
    created = []
    for index in range(25):
        data = item_data(index)
        result = await api.create_item(**data)
        created.append({**data, "id": result["id"]})
    return created
