# auctionlive/schemas/bid.py
from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from auctionlive.schemas.user import Bidder


class BidRecord(BaseModel):
    """Bid as embedded in an item"""

    model_config = ConfigDict(from_attributes=True)

    user_id: UUID | None = Field(None, description="Bidder id, None if deleted")
    amount: float
    time_stamp: datetime


class BidOut(BaseModel):
    """Bid history entry with the bidder redacted to its name"""

    model_config = ConfigDict(
        from_attributes=True,
        json_schema_extra={
            "example": {
                "user": {"name": "Peter"},
                "amount": 250.0,
                "time_stamp": "2024-12-02T10:00:00",
            }
        },
    )

    user: Bidder | None = Field(None, description="Bidder, None if deleted")
    amount: float
    time_stamp: datetime
