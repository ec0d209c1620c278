"""
Lost & Found API — Abuse report submission (any authenticated user)
"""
import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from lostfound.core.errors import BadRequest, NotFound
from lostfound.core.security import Principal
from lostfound.db.database import get_db
from lostfound.middleware.auth import require_principal
from lostfound.models.enums import ReportStatus
from lostfound.models.item import Item
from lostfound.models.report import Report
from lostfound.models.user import User
from lostfound.schemas.report import ReportCreatedResponse, ReportCreateRequest

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/user/reports", tags=["reports"], dependencies=[Depends(require_principal)])


@router.post("", response_model=ReportCreatedResponse, status_code=status.HTTP_201_CREATED)
async def create_report(
    payload: ReportCreateRequest,
    principal: Principal = Depends(require_principal),
    db: AsyncSession = Depends(get_db),
):
    if not payload.reported_id or not payload.reason.strip():
        raise BadRequest("Reported user ID and reason are required")
    if await db.get(User, payload.reported_id) is None:
        raise NotFound("Reported user not found")

    item_id = payload.item_id or None
    if item_id is not None and await db.get(Item, item_id) is None:
        raise NotFound("Item not found")

    report = Report(
        reporter_id=principal.id,
        reported_id=payload.reported_id,
        item_id=item_id,
        reason=payload.reason,
        status=ReportStatus.PENDING.value,
    )
    db.add(report)
    await db.commit()

    logger.info(
        "Report id=%s filed by user id=%s against user id=%s",
        report.id, principal.id, payload.reported_id,
    )
    return ReportCreatedResponse(message="Report submitted successfully", report_id=report.id)
