"""
Lost & Found API — Item schemas
"""
from datetime import datetime

from pydantic import BaseModel, Field

from lostfound.schemas.common import PageMeta


class ItemCreateRequest(BaseModel):
    title: str = Field("", max_length=100)
    description: str | None = None
    category: str = Field("", max_length=50)
    location: str = Field("", max_length=255)
    lost_time: datetime | None = None


class ItemCreatedResponse(BaseModel):
    message: str
    item_id: int


class ItemResponse(BaseModel):
    id: int
    title: str
    description: str | None = None
    category: str
    status: str
    location: str | None = None
    lost_time: datetime | None = None
    report_time: datetime | None = None
    claimed_time: datetime | None = None
    reporter_id: int | None = None
    finder_id: int | None = None
    image_url: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = {"from_attributes": True}


class ItemPage(BaseModel):
    items: list[ItemResponse]
    meta: PageMeta


class ItemStatusUpdate(BaseModel):
    status: str


class ImageUploadResponse(BaseModel):
    message: str
    image_url: str
