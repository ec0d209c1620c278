"""
Lost & Found API — User schemas
"""
from datetime import datetime

from pydantic import BaseModel, EmailStr, Field

from lostfound.schemas.common import PageMeta


class UserResponse(BaseModel):
    id: int
    username: str
    email: str
    role: str
    first_name: str | None = None
    last_name: str | None = None
    phone: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = {"from_attributes": True}


class UserPage(BaseModel):
    users: list[UserResponse]
    meta: PageMeta


class ProfileUpdateRequest(BaseModel):
    """Only the fields present in the request body are changed."""
    first_name: str | None = Field(None, max_length=50)
    last_name: str | None = Field(None, max_length=50)
    phone: str | None = Field(None, max_length=20)
    email: EmailStr | None = None


class RoleUpdateRequest(BaseModel):
    role: str


class AdminStats(BaseModel):
    total_users: int = 0
    student_count: int = 0
    guard_count: int = 0
    admin_count: int = 0
    total_items: int = 0
    lost_items: int = 0
    found_items: int = 0
    claimed_items: int = 0
    returned_items: int = 0
    pending_reports: int = 0
