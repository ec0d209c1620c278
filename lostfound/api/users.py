"""
Lost & Found API — Current-user routes (profile, password, own items)
"""
import logging

from fastapi import APIRouter, Depends
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from lostfound.api.deps import get_password_hasher, list_query
from lostfound.api.items import ITEM_LISTING, DEFAULT_ITEM_PAGE_SIZE, item_page
from lostfound.core.errors import Conflict, NotFound, Unauthorized
from lostfound.core.security import PasswordHasher, Principal
from lostfound.db.database import get_db
from lostfound.db.listing import ListQuery, Listing, exact
from lostfound.middleware.auth import require_principal
from lostfound.models.item import Item, owned_by
from lostfound.models.user import User
from lostfound.schemas.auth import ChangePasswordRequest
from lostfound.schemas.common import StatusMessage
from lostfound.schemas.item import ItemPage
from lostfound.schemas.user import ProfileUpdateRequest, UserResponse

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/user", tags=["user"], dependencies=[Depends(require_principal)])

MY_ITEM_LISTING = Listing(
    base=ITEM_LISTING.base,
    count_from=Item,
    fields=(exact("status", Item.status),),
    order_by=ITEM_LISTING.order_by,
)


async def _load_user(db: AsyncSession, user_id: int) -> User:
    user = await db.get(User, user_id)
    if user is None:
        # Token outlived the account.
        raise NotFound("User not found")
    return user


@router.get("/profile", response_model=UserResponse)
async def get_profile(
    principal: Principal = Depends(require_principal),
    db: AsyncSession = Depends(get_db),
):
    return await _load_user(db, principal.id)


@router.put("/profile", response_model=StatusMessage)
async def update_profile(
    payload: ProfileUpdateRequest,
    principal: Principal = Depends(require_principal),
    db: AsyncSession = Depends(get_db),
):
    user = await _load_user(db, principal.id)
    for field_name, value in payload.model_dump(exclude_unset=True).items():
        if field_name == "email" and value is None:
            continue
        setattr(user, field_name, value)

    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise Conflict("Email already exists")
    return StatusMessage(message="Profile updated successfully")


@router.put("/password", response_model=StatusMessage)
async def change_password(
    payload: ChangePasswordRequest,
    principal: Principal = Depends(require_principal),
    db: AsyncSession = Depends(get_db),
    hasher: PasswordHasher = Depends(get_password_hasher),
):
    user = await _load_user(db, principal.id)
    if not hasher.verify(payload.current_password, user.password_hash):
        raise Unauthorized("Current password is incorrect")

    user.password_hash = hasher.hash(payload.new_password)
    await db.commit()
    logger.info("Password changed for user id=%s", user.id)
    return StatusMessage(message="Password changed successfully")


@router.get("/items", response_model=ItemPage)
async def list_my_items(
    principal: Principal = Depends(require_principal),
    query: ListQuery = Depends(list_query(DEFAULT_ITEM_PAGE_SIZE)),
    db: AsyncSession = Depends(get_db),
):
    """Items the current user reported as lost or found."""
    page = await MY_ITEM_LISTING.fetch(db, query, scope=[owned_by(principal.id)])
    return item_page(page)
