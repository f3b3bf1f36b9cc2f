from datetime import datetime
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from sqlalchemy import JSON, DateTime, Float, Integer, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from auctionlive.core.database import Base

if TYPE_CHECKING:
    from auctionlive.models.bid import Bid


class Item(Base):
    """Auctioned item ORM model"""

    __tablename__ = "items"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    title: Mapped[str] = mapped_column(String(200), nullable=False, index=True)
    description: Mapped[str] = mapped_column(String(2000), nullable=False)

    start_price: Mapped[float] = mapped_column(Float, nullable=False, index=True)
    reserved_price: Mapped[float] = mapped_column(Float, nullable=False, default=0)

    start_date: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    finish_date: Mapped[datetime] = mapped_column(DateTime, nullable=False, index=True)

    city: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    category: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    images: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)

    # Bidding bookkeeping, only written by the compare-and-append update
    bid_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    current_amount: Mapped[float | None] = mapped_column(Float, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    # Newest bid first
    bids: Mapped[list["Bid"]] = relationship(
        "Bid",
        back_populates="item",
        order_by="Bid.sequence.desc()",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<Item(id={self.id}, title={self.title})>"
