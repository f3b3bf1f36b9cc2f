from datetime import datetime
from typing import TYPE_CHECKING, Optional
from uuid import UUID, uuid4

from sqlalchemy import DateTime, Float, ForeignKey, Integer, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from auctionlive.core.database import Base

if TYPE_CHECKING:
    from auctionlive.models.item import Item
    from auctionlive.models.user import User


class Bid(Base):
    """Bid ORM model. Rows are only ever inserted."""

    __tablename__ = "bids"
    __table_args__ = (
        UniqueConstraint("item_id", "sequence", name="uq_bids_item_sequence"),
    )

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    item_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("items.id", ondelete="CASCADE"), nullable=False, index=True
    )
    # NULL once the bidder's account has been deleted
    user_id: Mapped[UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True
    )

    amount: Mapped[float] = mapped_column(Float, nullable=False)
    time_stamp: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    # 1-based position of the bid within its item; highest is the leading bid
    sequence: Mapped[int] = mapped_column(Integer, nullable=False)

    item: Mapped["Item"] = relationship("Item", back_populates="bids")
    user: Mapped[Optional["User"]] = relationship(
        "User", back_populates="bids", lazy="selectin"
    )

    def __repr__(self) -> str:
        return f"<Bid(id={self.id}, item_id={self.item_id}, amount={self.amount})>"
