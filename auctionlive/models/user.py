from datetime import datetime
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from sqlalchemy import DateTime, ForeignKey, Integer, String, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from auctionlive.core.database import Base

if TYPE_CHECKING:
    from auctionlive.models.bid import Bid


class User(Base):
    """User ORM model"""

    __tablename__ = "users"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    surname: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(
        String(255), unique=True, nullable=False, index=True
    )
    password: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(String(20), default="regular", nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    item_links: Mapped[list["UserItem"]] = relationship(
        "UserItem",
        back_populates="user",
        order_by="UserItem.id",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="selectin",
    )
    bids: Mapped[list["Bid"]] = relationship(
        "Bid", back_populates="user", passive_deletes=True
    )

    @property
    def items(self) -> list[UUID]:
        """Ids of the items this user has bid on, in first-bid order."""
        return [link.item_id for link in self.item_links]

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email})>"


class UserItem(Base):
    """Append-once link between a user and an item they bid on"""

    __tablename__ = "user_items"
    __table_args__ = (
        UniqueConstraint("user_id", "item_id", name="uq_user_items_user_item"),
    )

    # Autoincrement id doubles as the insertion ordinal
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    item_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("items.id", ondelete="CASCADE"), nullable=False
    )

    user: Mapped["User"] = relationship("User", back_populates="item_links")

    def __repr__(self) -> str:
        return f"<UserItem(user_id={self.user_id}, item_id={self.item_id})>"
