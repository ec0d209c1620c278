"""
Lost & Found API — Abuse report schemas
"""
from datetime import datetime

from pydantic import BaseModel, Field

from lostfound.db.listing import MAX_ID
from lostfound.schemas.common import PageMeta


class ReportCreateRequest(BaseModel):
    reported_id: int = Field(..., ge=1, le=MAX_ID)
    item_id: int | None = Field(None, ge=0, le=MAX_ID)  # 0 means no item
    reason: str = Field("", max_length=2000)


class ReportCreatedResponse(BaseModel):
    message: str
    report_id: int


class ReportResponse(BaseModel):
    id: int
    reporter_id: int | None = None
    reported_id: int
    item_id: int | None = None
    reason: str
    status: str | None = None
    admin_comment: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    reporter_username: str | None = None
    reported_username: str | None = None

    model_config = {"from_attributes": True}


class ReportPage(BaseModel):
    reports: list[ReportResponse]
    meta: PageMeta


class ReportStatusUpdate(BaseModel):
    status: str
    comment: str | None = None
