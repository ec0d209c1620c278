"""
Lost & Found API — Item routes

Browsing, search and item details are public. Reporting, status changes and
image uploads need a valid token; status changes and uploads are limited to
the item's reporter/finder and to guards and admins.
"""
import logging
import re
from pathlib import Path

from fastapi import APIRouter, Depends, File, UploadFile, status
from fastapi.concurrency import run_in_threadpool
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from lostfound.api.deps import EntityId, get_app_settings, list_query
from lostfound.core.config import Settings
from lostfound.core.errors import BadRequest, Forbidden, NotFound
from lostfound.core.security import Principal
from lostfound.db.database import get_db
from lostfound.db.listing import ListQuery, Listing, Page, contains, exact
from lostfound.middleware.auth import require_principal
from lostfound.models.enums import ItemStatus, Role, choices
from lostfound.models.item import Image, Item
from lostfound.models.user import utc_now
from lostfound.schemas.common import PageMeta, StatusMessage
from lostfound.schemas.item import (
    ImageUploadResponse,
    ItemCreatedResponse,
    ItemCreateRequest,
    ItemPage,
    ItemResponse,
    ItemStatusUpdate,
)

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/items", tags=["items"])

DEFAULT_ITEM_PAGE_SIZE = 10
STAFF_ROLES = frozenset({Role.GUARD, Role.ADMIN})
UPLOAD_URL_PREFIX = "/uploads"
UPLOAD_CHUNK_SIZE = 64 * 1024

# Accepted content types and the file extensions allowed with each.
IMAGE_TYPES = {
    "image/jpeg": (".jpg", ".jpeg"),
    "image/png": (".png",),
    "image/gif": (".gif",),
    "image/webp": (".webp",),
}

ITEM_LISTING = Listing(
    base=select(Item),
    count_from=Item,
    fields=(exact("status", Item.status), exact("category", Item.category)),
    order_by=(Item.created_at.desc(), Item.id.desc()),
)

ITEM_SEARCH_LISTING = Listing(
    base=ITEM_LISTING.base,
    count_from=Item,
    fields=(contains("q", Item.title, Item.description), exact("status", Item.status)),
    order_by=ITEM_LISTING.order_by,
)


def item_page(page: Page) -> ItemPage:
    return ItemPage(
        items=[ItemResponse.model_validate(item) for item in page.items],
        meta=PageMeta(**page.meta()),
    )


def _require_item_fields(payload: ItemCreateRequest) -> None:
    if not (payload.title.strip() and payload.category.strip() and payload.location.strip()):
        raise BadRequest("Title, category, and location are required")


def _ensure_can_modify(item: Item, principal: Principal) -> None:
    if principal.role in STAFF_ROLES:
        return
    if not item.is_owned_by(principal.id):
        raise Forbidden("You do not have permission to update this item")


async def _get_item(db: AsyncSession, item_id: int) -> Item:
    item = await db.get(Item, item_id)
    if item is None:
        raise NotFound("Item not found")
    return item


async def browse_items(query: ListQuery, db: AsyncSession) -> ItemPage:
    return item_page(await ITEM_LISTING.fetch(db, query))


# ── Public ────────────────────────────────────────────────────────────────────

@router.get("", response_model=ItemPage)
async def list_items(
    query: ListQuery = Depends(list_query(DEFAULT_ITEM_PAGE_SIZE)),
    db: AsyncSession = Depends(get_db),
):
    """List items, newest first. Filters: ?status=, ?category= ("all" disables a filter)."""
    return await browse_items(query, db)


@router.get("/search", response_model=ItemPage)
async def search_items(
    query: ListQuery = Depends(list_query(DEFAULT_ITEM_PAGE_SIZE)),
    db: AsyncSession = Depends(get_db),
):
    """Case-insensitive search over title and description (?q=), optionally by ?status=."""
    if not str(query.filters.get("q", "")).strip():
        raise BadRequest("Search query is required")
    return item_page(await ITEM_SEARCH_LISTING.fetch(db, query))


@router.get("/{item_id}", response_model=ItemResponse)
async def get_item(item_id: EntityId, db: AsyncSession = Depends(get_db)):
    return await _get_item(db, item_id)


# ── Authenticated ─────────────────────────────────────────────────────────────

@router.post("/lost", response_model=ItemCreatedResponse, status_code=status.HTTP_201_CREATED)
async def report_lost_item(
    payload: ItemCreateRequest,
    principal: Principal = Depends(require_principal),
    db: AsyncSession = Depends(get_db),
):
    _require_item_fields(payload)
    item = Item(
        title=payload.title,
        description=payload.description,
        category=payload.category,
        status=ItemStatus.LOST.value,
        location=payload.location,
        lost_time=payload.lost_time,
        report_time=utc_now(),
        reporter_id=principal.id,
    )
    db.add(item)
    await db.commit()
    return ItemCreatedResponse(message="Lost item reported successfully", item_id=item.id)


@router.post("/found", response_model=ItemCreatedResponse, status_code=status.HTTP_201_CREATED)
async def report_found_item(
    payload: ItemCreateRequest,
    principal: Principal = Depends(require_principal),
    db: AsyncSession = Depends(get_db),
):
    _require_item_fields(payload)
    item = Item(
        title=payload.title,
        description=payload.description,
        category=payload.category,
        status=ItemStatus.FOUND.value,
        location=payload.location,
        report_time=utc_now(),
        finder_id=principal.id,
    )
    db.add(item)
    await db.commit()
    return ItemCreatedResponse(message="Found item reported successfully", item_id=item.id)


@router.put("/{item_id}/status", response_model=StatusMessage)
async def update_item_status(
    item_id: EntityId,
    payload: ItemStatusUpdate,
    principal: Principal = Depends(require_principal),
    db: AsyncSession = Depends(get_db),
):
    """
    Change an item's status. Moving to "claimed" also stamps claimed_time;
    both columns are written by one UPDATE in one transaction.
    """
    try:
        new_status = ItemStatus(payload.status)
    except ValueError:
        raise BadRequest(f"Invalid status. Must be one of: {choices(ItemStatus)}")

    item = await _get_item(db, item_id)
    _ensure_can_modify(item, principal)

    item.status = new_status.value
    if new_status is ItemStatus.CLAIMED:
        item.claimed_time = utc_now()
    await db.commit()

    logger.info("Item id=%s status -> %s by user id=%s", item_id, new_status.value, principal.id)
    return StatusMessage(message="Item status updated successfully")


def _upload_filename(original: str | None) -> str:
    name = Path(original or "image").name
    name = re.sub(r"[^A-Za-z0-9._-]", "_", name) or "image"
    return f"{utc_now():%Y%m%d%H%M%S%f}_{name}"


def _check_image_type(image: UploadFile) -> None:
    suffixes = IMAGE_TYPES.get((image.content_type or "").lower(), ())
    if Path(image.filename or "").suffix.lower() not in suffixes:
        raise BadRequest("Only JPEG, PNG, GIF or WEBP images are allowed")


async def _read_upload(image: UploadFile, max_bytes: int) -> bytes:
    """Read the upload in chunks, giving up as soon as it exceeds max_bytes."""
    chunks: list[bytes] = []
    size = 0
    while True:
        chunk = await image.read(UPLOAD_CHUNK_SIZE)
        if not chunk:
            break
        size += len(chunk)
        if size > max_bytes:
            raise BadRequest(f"Image exceeds the maximum size of {max_bytes} bytes")
        chunks.append(chunk)
    return b"".join(chunks)


def _write_upload(destination: Path, data: bytes) -> None:
    destination.parent.mkdir(parents=True, exist_ok=True)
    destination.write_bytes(data)


@router.post("/{item_id}/image", response_model=ImageUploadResponse)
async def upload_item_image(
    item_id: EntityId,
    image: UploadFile | None = File(None),
    principal: Principal = Depends(require_principal),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
):
    """
    Store an uploaded JPEG/PNG/GIF/WEBP image (at most UPLOAD_MAX_BYTES) under
    UPLOAD_DIR and attach it to the item.
    """
    item = await _get_item(db, item_id)
    _ensure_can_modify(item, principal)
    if image is None:
        raise BadRequest("No image file provided")
    _check_image_type(image)

    data = await _read_upload(image, settings.UPLOAD_MAX_BYTES)
    if not data:
        raise BadRequest("No image file provided")

    filename = _upload_filename(image.filename)
    destination = Path(settings.UPLOAD_DIR) / filename
    await run_in_threadpool(_write_upload, destination, data)

    image_url = f"{UPLOAD_URL_PREFIX}/{filename}"
    now = utc_now()
    db.add(Image(item_id=item.id, image_url=image_url, timestamp=now, created_at=now))
    item.image_url = image_url
    try:
        await db.commit()
    except SQLAlchemyError:
        await db.rollback()
        await run_in_threadpool(destination.unlink, missing_ok=True)
        raise

    return ImageUploadResponse(message="Image uploaded successfully", image_url=image_url)
