"""
Lost & Found API — Messaging routes (poll-based)

Every query is scoped to the current user as sender or receiver.
"""
import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy import func, select, text, update
from sqlalchemy.ext.asyncio import AsyncSession

from lostfound.api.deps import EntityId, list_query
from lostfound.core.errors import BadRequest, NotFound
from lostfound.core.security import Principal
from lostfound.db.database import get_db
from lostfound.db.listing import ListQuery, Listing, entity_id, exact
from lostfound.middleware.auth import require_principal
from lostfound.models.item import Item
from lostfound.models.message import Message, between
from lostfound.models.user import User
from lostfound.schemas.common import PageMeta
from lostfound.schemas.message import (
    ConversationResponse,
    MessageCreateRequest,
    MessagePage,
    MessageResponse,
    MessageSentResponse,
    UnreadCountResponse,
)

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/user/messages", tags=["messages"], dependencies=[Depends(require_principal)])

DEFAULT_MESSAGE_PAGE_SIZE = 50

MESSAGE_LISTING = Listing(
    base=select(Message, User.username.label("sender_username")).join(User, Message.sender_id == User.id),
    count_from=Message,
    fields=(exact("item_id", Message.item_id, coerce=entity_id),),
    order_by=(Message.created_at.desc(), Message.id.desc()),
)

# Latest message per counterpart (the highest id, one row per counterpart),
# with the number of unread messages they sent.
CONVERSATIONS_SQL = text(
    """
    WITH conversations AS (
        SELECT
            CASE WHEN sender_id = :user_id THEN receiver_id ELSE sender_id END AS other_user_id,
            MAX(id) AS latest_id
        FROM messages
        WHERE sender_id = :user_id OR receiver_id = :user_id
        GROUP BY other_user_id
    )
    SELECT
        c.other_user_id,
        u.username AS other_username,
        m.id AS latest_message_id,
        m.content AS latest_message,
        m.created_at AS latest_message_time,
        (
            SELECT COUNT(*) FROM messages unread
            WHERE unread.receiver_id = :user_id
              AND unread.sender_id = c.other_user_id
              AND unread.read = :unread
        ) AS unread_count
    FROM conversations c
    JOIN messages m ON m.id = c.latest_id
    JOIN users u ON c.other_user_id = u.id
    ORDER BY m.created_at DESC, m.id DESC
    """
)


@router.post("", response_model=MessageSentResponse, status_code=status.HTTP_201_CREATED)
async def send_message(
    payload: MessageCreateRequest,
    principal: Principal = Depends(require_principal),
    db: AsyncSession = Depends(get_db),
):
    if not payload.content.strip():
        raise BadRequest("Message content is required")
    if await db.get(User, payload.receiver_id) is None:
        raise NotFound("Receiver not found")

    item_id = payload.item_id or None
    if item_id is not None and await db.get(Item, item_id) is None:
        raise NotFound("Item not found")

    message = Message(
        sender_id=principal.id,
        receiver_id=payload.receiver_id,
        item_id=item_id,
        content=payload.content,
    )
    db.add(message)
    await db.commit()
    logger.debug("Message id=%s from user id=%s to user id=%s", message.id, principal.id, payload.receiver_id)
    return MessageSentResponse(message="Message sent successfully", message_id=message.id)


@router.get("/unread", response_model=UnreadCountResponse)
async def unread_count(
    principal: Principal = Depends(require_principal),
    db: AsyncSession = Depends(get_db),
):
    count = await db.scalar(
        select(func.count())
        .select_from(Message)
        .where(Message.receiver_id == principal.id, Message.read.is_(False))
    )
    return UnreadCountResponse(unread_count=count or 0)


@router.get("/conversations", response_model=list[ConversationResponse])
async def list_conversations(
    principal: Principal = Depends(require_principal),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(CONVERSATIONS_SQL, {"user_id": principal.id, "unread": False})
    return [ConversationResponse.model_validate(dict(row)) for row in result.mappings()]


@router.get("/{other_user_id}", response_model=MessagePage)
async def get_conversation(
    other_user_id: EntityId,
    principal: Principal = Depends(require_principal),
    query: ListQuery = Depends(list_query(DEFAULT_MESSAGE_PAGE_SIZE)),
    db: AsyncSession = Depends(get_db),
):
    """
    Messages exchanged with another user, newest first (?item_id= narrows to
    one item). Messages received from that user are marked read.
    """
    page = await MESSAGE_LISTING.fetch(db, query, scope=[between(principal.id, other_user_id)])
    messages = [
        MessageResponse.model_validate(message).model_copy(update={"sender_username": sender_username})
        for message, sender_username in page.items
    ]

    await db.execute(
        update(Message)
        .where(
            Message.receiver_id == principal.id,
            Message.sender_id == other_user_id,
            Message.read.is_(False),
        )
        .values(read=True)
    )
    await db.commit()

    return MessagePage(messages=messages, meta=PageMeta(**page.meta()))
