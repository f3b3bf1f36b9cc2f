"""
SQLAlchemy ORM Models

All database models unified export point
"""

from auctionlive.models.bid import Bid
from auctionlive.models.item import Item
from auctionlive.models.user import User, UserItem

__all__ = [
    "User",
    "UserItem",
    "Item",
    "Bid",
]
