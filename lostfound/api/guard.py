"""
Lost & Found API — Guard routes (guards and admins)
"""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from lostfound.api.deps import list_query
from lostfound.api.items import DEFAULT_ITEM_PAGE_SIZE, browse_items
from lostfound.db.database import get_db
from lostfound.db.listing import ListQuery
from lostfound.middleware.auth import guard_and_admin
from lostfound.schemas.item import ItemPage

router = APIRouter(prefix="/guard", tags=["guard"], dependencies=[Depends(guard_and_admin)])


@router.get("/items", response_model=ItemPage)
async def list_items_for_guard(
    query: ListQuery = Depends(list_query(DEFAULT_ITEM_PAGE_SIZE)),
    db: AsyncSession = Depends(get_db),
):
    """Same listing and filters as the public GET /items."""
    return await browse_items(query, db)
