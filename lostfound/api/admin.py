"""
Lost & Found API — Admin routes

User and report moderation plus dashboard counts. Every route is behind
the admin-only gate.
"""
import logging

from fastapi import APIRouter, Depends
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from lostfound.api.deps import EntityId, list_query
from lostfound.core.errors import BadRequest, Forbidden, NotFound
from lostfound.core.security import Principal
from lostfound.db.database import get_db
from lostfound.db.listing import ListQuery, Listing, contains, exact
from lostfound.middleware.auth import admin_only
from lostfound.models.enums import ItemStatus, ReportStatus, Role, choices
from lostfound.models.item import Item
from lostfound.models.report import Report
from lostfound.models.user import User
from lostfound.schemas.common import PageMeta, StatusMessage
from lostfound.schemas.report import ReportPage, ReportResponse, ReportStatusUpdate
from lostfound.schemas.user import AdminStats, RoleUpdateRequest, UserPage, UserResponse

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(admin_only)])

DEFAULT_ADMIN_PAGE_SIZE = 20

USER_LISTING = Listing(
    base=select(User),
    count_from=User,
    fields=(
        exact("role", User.role),
        contains("search", User.username, User.email, User.first_name, User.last_name),
    ),
    order_by=(User.created_at.desc(), User.id.desc()),
)

Reporter = aliased(User, name="reporter")
Reported = aliased(User, name="reported")

REPORT_LISTING = Listing(
    base=(
        select(
            Report,
            Reporter.username.label("reporter_username"),
            Reported.username.label("reported_username"),
        )
        .outerjoin(Reporter, Report.reporter_id == Reporter.id)
        .outerjoin(Reported, Report.reported_id == Reported.id)
    ),
    count_from=Report,
    fields=(exact("status", Report.status),),
    order_by=(Report.created_at.desc(), Report.id.desc()),
)


# ── Users ─────────────────────────────────────────────────────────────────────

@router.get("/users", response_model=UserPage)
async def list_users(
    query: ListQuery = Depends(list_query(DEFAULT_ADMIN_PAGE_SIZE)),
    db: AsyncSession = Depends(get_db),
):
    """All users, newest first. Filters: ?role=, ?search= (username, email, names)."""
    page = await USER_LISTING.fetch(db, query)
    return UserPage(
        users=[UserResponse.model_validate(user) for user in page.items],
        meta=PageMeta(**page.meta()),
    )


@router.put("/users/{user_id}/role", response_model=StatusMessage)
async def update_user_role(
    user_id: EntityId,
    payload: RoleUpdateRequest,
    principal: Principal = Depends(admin_only),
    db: AsyncSession = Depends(get_db),
):
    if user_id == principal.id:
        raise Forbidden("Cannot change your own role")
    try:
        role = Role(payload.role)
    except ValueError:
        raise BadRequest(f"Invalid role. Must be one of: {choices(Role)}")

    user = await db.get(User, user_id)
    if user is None:
        raise NotFound("User not found")

    previous = user.role
    user.role = role.value
    await db.commit()

    logger.info(
        "Role of user id=%s changed %s -> %s by admin id=%s",
        user_id, previous, role.value, principal.id,
    )
    return StatusMessage(message="User role updated successfully")


# ── Reports ───────────────────────────────────────────────────────────────────

@router.get("/reports", response_model=ReportPage)
async def list_reports(
    query: ListQuery = Depends(list_query(DEFAULT_ADMIN_PAGE_SIZE)),
    db: AsyncSession = Depends(get_db),
):
    page = await REPORT_LISTING.fetch(db, query)
    reports = [
        ReportResponse.model_validate(report).model_copy(
            update={"reporter_username": reporter_username, "reported_username": reported_username}
        )
        for report, reporter_username, reported_username in page.items
    ]
    return ReportPage(reports=reports, meta=PageMeta(**page.meta()))


@router.put("/reports/{report_id}/status", response_model=StatusMessage)
async def update_report_status(
    report_id: EntityId,
    payload: ReportStatusUpdate,
    principal: Principal = Depends(admin_only),
    db: AsyncSession = Depends(get_db),
):
    try:
        new_status = ReportStatus(payload.status)
    except ValueError:
        raise BadRequest(f"Invalid status. Must be one of: {choices(ReportStatus)}")

    report = await db.get(Report, report_id)
    if report is None:
        raise NotFound("Report not found")

    report.status = new_status.value
    report.admin_comment = payload.comment
    await db.commit()

    logger.info("Report id=%s status -> %s by admin id=%s", report_id, new_status.value, principal.id)
    return StatusMessage(message="Report status updated successfully")


# ── Dashboard ─────────────────────────────────────────────────────────────────

async def _count_by(db: AsyncSession, column) -> dict[str, int]:
    result = await db.execute(select(column, func.count()).group_by(column))
    return {value: count for value, count in result.all()}


@router.get("/stats", response_model=AdminStats)
async def get_stats(db: AsyncSession = Depends(get_db)):
    roles = await _count_by(db, User.role)
    statuses = await _count_by(db, Item.status)
    pending_reports = await db.scalar(
        select(func.count()).select_from(Report).where(Report.status == ReportStatus.PENDING.value)
    )

    return AdminStats(
        total_users=sum(roles.values()),
        student_count=roles.get(Role.STUDENT.value, 0),
        guard_count=roles.get(Role.GUARD.value, 0),
        admin_count=roles.get(Role.ADMIN.value, 0),
        total_items=sum(statuses.values()),
        lost_items=statuses.get(ItemStatus.LOST.value, 0),
        found_items=statuses.get(ItemStatus.FOUND.value, 0),
        claimed_items=statuses.get(ItemStatus.CLAIMED.value, 0),
        returned_items=statuses.get(ItemStatus.RETURNED.value, 0),
        pending_reports=pending_reports or 0,
    )
