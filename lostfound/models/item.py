"""
Lost & Found API — Item and Image Models
"""
from datetime import datetime

from sqlalchemy import ColumnElement, DateTime, Float, ForeignKey, Integer, String, Text, and_, func, or_, text
from sqlalchemy.orm import Mapped, mapped_column

from lostfound.db.database import Base
from lostfound.models.enums import ItemStatus
from lostfound.models.user import utc_now


class Item(Base):
    """
    A lost or found item. Lost reports set reporter_id, found reports set
    finder_id; either may be NULL.
    """
    __tablename__ = "items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    category: Mapped[str] = mapped_column(String(50), nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=ItemStatus.LOST.value, server_default=text("'lost'")
    )
    location: Mapped[str | None] = mapped_column(String(255), nullable=True)
    lost_time: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    report_time: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), default=utc_now, server_default=func.now()
    )
    claimed_time: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    reporter_id: Mapped[int | None] = mapped_column(ForeignKey("users.id"), nullable=True)
    finder_id: Mapped[int | None] = mapped_column(ForeignKey("users.id"), nullable=True)
    image_url: Mapped[str | None] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, server_default=func.now(), onupdate=utc_now
    )

    def is_owned_by(self, user_id: int) -> bool:
        return user_id in (self.reporter_id, self.finder_id)

    def __repr__(self) -> str:
        return f"<Item id={self.id} status={self.status}>"


def owned_by(user_id: int) -> ColumnElement[bool]:
    """Items the user reported as lost or as found."""
    return or_(
        and_(Item.reporter_id.is_not(None), Item.reporter_id == user_id),
        and_(Item.finder_id.is_not(None), Item.finder_id == user_id),
    )


class Image(Base):
    __tablename__ = "images"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    item_id: Mapped[int | None] = mapped_column(ForeignKey("items.id"), nullable=True)
    image_url: Mapped[str] = mapped_column(String(255), nullable=False)
    timestamp: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    latitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    longitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, server_default=func.now()
    )
