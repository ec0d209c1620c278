"""
Lost & Found API — Messaging schemas
"""
from datetime import datetime

from pydantic import BaseModel, Field

from lostfound.db.listing import MAX_ID
from lostfound.schemas.common import PageMeta


class MessageCreateRequest(BaseModel):
    receiver_id: int = Field(..., ge=1, le=MAX_ID)
    item_id: int | None = Field(None, ge=0, le=MAX_ID)  # 0 means no item
    content: str = Field("", max_length=5000)


class MessageSentResponse(BaseModel):
    message: str
    message_id: int


class MessageResponse(BaseModel):
    id: int
    sender_id: int
    receiver_id: int
    item_id: int | None = None
    content: str
    read: bool
    created_at: datetime | None = None
    sender_username: str | None = None

    model_config = {"from_attributes": True}


class MessagePage(BaseModel):
    messages: list[MessageResponse]
    meta: PageMeta


class ConversationResponse(BaseModel):
    other_user_id: int
    other_username: str
    latest_message_id: int
    latest_message: str
    latest_message_time: datetime | None = None
    unread_count: int


class UnreadCountResponse(BaseModel):
    unread_count: int
