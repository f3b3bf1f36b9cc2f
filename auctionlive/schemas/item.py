# auctionlive/schemas/item.py
from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from auctionlive.schemas.bid import BidRecord


class ItemQuery(BaseModel):
    """Search filters; every key is optional and the set is conjunctive"""

    model_config = ConfigDict(
        extra="ignore",
        json_schema_extra={
            "example": {
                "city": "London",
                "category": "Jewellery",
                "start_price": 20,
                "end_price": 150,
            }
        },
    )

    city: Optional[str] = Field(None, description="Exact city match")
    category: Optional[str] = Field(None, description="Exact category match")
    start_date: Optional[datetime] = Field(None, description="finish_date >= start_date")
    end_date: Optional[datetime] = Field(None, description="finish_date <= end_date")
    start_price: Optional[float] = Field(None, description="start_price lower bound")
    end_price: Optional[float] = Field(None, description="start_price upper bound")


class ItemOut(BaseModel):
    """Item as returned by the catalog"""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str
    description: str
    start_price: float
    start_date: datetime
    finish_date: datetime
    reserved_price: float
    city: str
    category: str
    images: list[str]
    bids: list[BidRecord] = Field(default_factory=list, description="Newest first")
