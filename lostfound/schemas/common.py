"""
Lost & Found API — Shared Pydantic schemas
"""
from pydantic import BaseModel


class StatusMessage(BaseModel):
    message: str


class PageMeta(BaseModel):
    total: int
    page: int
    limit: int
    pages: int


class HealthResponse(BaseModel):
    status: str
    service: str
    version: str
    dependencies: dict[str, str]
