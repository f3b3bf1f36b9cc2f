# auctionlive/schemas/user.py
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class UserProfile(BaseModel):
    """User profile as returned outward (no id, no password)"""

    model_config = ConfigDict(
        from_attributes=True,
        json_schema_extra={
            "example": {
                "name": "Peter",
                "surname": "Parker",
                "email": "pparker@mail.com",
                "role": "regular",
                "items": ["123e4567-e89b-12d3-a456-426614174000"],
            }
        },
    )

    name: str
    surname: str
    email: str
    role: str
    items: list[UUID] = Field(
        default_factory=list, description="Items the user has bid on"
    )


class Bidder(BaseModel):
    """Redacted bidder shown in a bid history"""

    model_config = ConfigDict(from_attributes=True)

    name: str
