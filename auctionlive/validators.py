"""Argument checks run at the core boundary, before any storage access."""

import math
import re
from datetime import datetime, timezone
from numbers import Real
from typing import Any
from uuid import UUID

from auctionlive.errors import EmptyValueError, FormatError, RequirementError

EMAIL_REGEX = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def require(field: str, value: Any) -> Any:
    if value is None:
        raise RequirementError(field=field)
    return value


def require_string(field: str, value: Any) -> str:
    require(field, value)
    if not isinstance(value, str):
        raise FormatError(f"{field} is not a string", field=field)
    if not value.strip():
        raise EmptyValueError(field=field)
    return value


def require_email(field: str, value: Any) -> str:
    require_string(field, value)
    if not EMAIL_REGEX.match(value):
        raise FormatError(f"{value} is not an e-mail", field=field, value=value)
    return value


def require_number(field: str, value: Any) -> float:
    require(field, value)
    # bool is an int subclass; a flag is never a price
    if isinstance(value, bool) or not isinstance(value, Real):
        raise FormatError(f"{field} is not a number", field=field)
    # Prices and bids are finite; inf and nan are rejected
    if not math.isfinite(value):
        raise FormatError(f"{field} is not a number", field=field)
    return float(value)


def require_datetime(field: str, value: Any) -> datetime:
    """Return ``value`` as a naive UTC datetime."""
    require(field, value)
    if not isinstance(value, datetime):
        raise FormatError(f"{field} is not a date", field=field)
    return to_utc(value)


def to_utc(value: datetime) -> datetime:
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def parse_id(value: Any, field: str = "id") -> UUID:
    """Parse an entity identifier, telling malformed ids apart from unknown ones."""
    require(field, value)
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except ValueError:
        raise FormatError(
            f'"{value}" is not a valid id', field=field, value=str(value)
        ) from None
