"""
Lost & Found API — Message Model
"""
from datetime import datetime

from sqlalchemy import Boolean, ColumnElement, DateTime, ForeignKey, Integer, Text, and_, false, func, or_
from sqlalchemy.orm import Mapped, mapped_column

from lostfound.db.database import Base
from lostfound.models.user import utc_now


class Message(Base):
    __tablename__ = "messages"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    sender_id: Mapped[int] = mapped_column(ForeignKey("users.id"))
    receiver_id: Mapped[int] = mapped_column(ForeignKey("users.id"))
    item_id: Mapped[int | None] = mapped_column(ForeignKey("items.id"), nullable=True)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    read: Mapped[bool] = mapped_column(Boolean, default=False, server_default=false())
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, server_default=func.now()
    )


def between(user_id: int, other_id: int) -> ColumnElement[bool]:
    """Messages exchanged in either direction between two users."""
    return or_(
        and_(Message.sender_id == user_id, Message.receiver_id == other_id),
        and_(Message.sender_id == other_id, Message.receiver_id == user_id),
    )
