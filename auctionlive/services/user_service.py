import logging
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from auctionlive.core.jwt import TokenService
from auctionlive.core.security import PasswordHasher
from auctionlive.errors import (
    ConflictError,
    FormatError,
    user_email_not_found,
    user_id_not_found,
    wrong_credentials,
)
from auctionlive.models.item import Item
from auctionlive.models.user import User, UserItem
from auctionlive.schemas.item import ItemOut
from auctionlive.schemas.user import UserProfile
from auctionlive.validators import require_email, require_string

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ("name", "surname", "email", "password")


def _email_taken(email: str) -> ConflictError:
    return ConflictError(f'user with email "{email}" already exist', email=email)


async def _find_by_email(db: AsyncSession, email: str) -> User | None:
    result = await db.execute(select(User).where(User.email == email))
    return result.scalar_one_or_none()


async def get_user_by_token(
    db: AsyncSession, tokens: TokenService, token: str
) -> User:
    """Resolve the acting user; token errors propagate unchanged."""
    subject = tokens.verify(token)
    try:
        user_id = UUID(subject)
    except ValueError:
        # Validly signed but not one of ours
        raise user_id_not_found(subject) from None

    user = await db.get(User, user_id)
    if user is None:
        raise user_id_not_found(subject)
    return user


async def register_user(
    db: AsyncSession,
    hasher: PasswordHasher,
    name: str,
    surname: str,
    email: str,
    password: str,
) -> dict:
    """Register a new user with a hashed password."""
    require_string("name", name)
    require_string("surname", surname)
    require_email("email", email)
    require_string("password", password)

    if await _find_by_email(db, email):
        raise _email_taken(email)

    user = User(
        name=name,
        surname=surname,
        email=email,
        password=hasher.hash(password),
    )
    db.add(user)
    try:
        await db.flush()
    except IntegrityError:
        # Lost a race against a concurrent registration of the same email
        raise _email_taken(email) from None

    logger.info(f"User registered: {user.id}")
    return {"message": "Ok, user registered."}


async def authenticate_user(
    db: AsyncSession,
    hasher: PasswordHasher,
    tokens: TokenService,
    email: str,
    password: str,
) -> str:
    """Check credentials and return a signed token for the user."""
    require_email("email", email)
    require_string("password", password)

    user = await _find_by_email(db, email)
    if user is None:
        raise user_email_not_found(email)

    if not hasher.verify(password, user.password):
        logger.warning(f"Wrong credentials for user {user.id}")
        raise wrong_credentials()

    return tokens.issue(str(user.id))


async def retrieve_user(
    db: AsyncSession, tokens: TokenService, token: str
) -> UserProfile:
    user = await get_user_by_token(db, tokens, token)
    return UserProfile.model_validate(user)


async def update_user(
    db: AsyncSession,
    hasher: PasswordHasher,
    tokens: TokenService,
    token: str,
    data: dict,
) -> dict:
    """
    Apply a partial update to the acting user.

    Only name, surname, email and password may be changed; every key that is
    present is validated like at registration time.
    """
    unknown = sorted(set(data) - set(UPDATABLE_FIELDS))
    if unknown:
        raise FormatError(
            f"{', '.join(unknown)} cannot be updated", fields=unknown
        )

    for field, value in data.items():
        if field == "email":
            require_email(field, value)
        else:
            require_string(field, value)

    user = await get_user_by_token(db, tokens, token)

    email = data.get("email")
    if email is not None and email != user.email:
        if await _find_by_email(db, email):
            raise ConflictError(f'email "{email}" already exist', email=email)

    for field, value in data.items():
        if field == "password":
            value = hasher.hash(value)
        setattr(user, field, value)

    try:
        await db.flush()
    except IntegrityError:
        raise ConflictError(f'email "{email}" already exist', email=email) from None

    logger.info(f"User updated: {user.id} ({', '.join(sorted(data))})")
    return {"message": "Ok, user updated."}


async def delete_user(
    db: AsyncSession,
    hasher: PasswordHasher,
    tokens: TokenService,
    token: str,
    email: str,
    password: str,
) -> dict:
    """Delete the acting user after re-checking their credentials."""
    require_email("email", email)
    require_string("password", password)

    user = await get_user_by_token(db, tokens, token)

    if user.email != email or not hasher.verify(password, user.password):
        logger.warning(f"Wrong credentials deleting user {user.id}")
        raise wrong_credentials()

    await db.delete(user)
    await db.flush()

    logger.info(f"User deleted: {user.id}")
    return {"message": "Ok, user deleted."}


async def retrieve_user_items(
    db: AsyncSession, tokens: TokenService, token: str
) -> list[ItemOut]:
    """Items the acting user has bid on, in first-bid order."""
    user = await get_user_by_token(db, tokens, token)

    result = await db.execute(
        select(Item)
        .join(UserItem, UserItem.item_id == Item.id)
        .where(UserItem.user_id == user.id)
        .order_by(UserItem.id)
    )
    return [ItemOut.model_validate(item) for item in result.scalars().all()]
