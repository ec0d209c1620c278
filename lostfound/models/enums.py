"""
Lost & Found API — Shared domain enumerations

Stored as plain VARCHAR values in the database; every handler validates
against these definitions only.
"""
from enum import Enum as PyEnum


class Role(str, PyEnum):
    STUDENT = "student"
    GUARD = "guard"
    ADMIN = "admin"


class ItemStatus(str, PyEnum):
    LOST = "lost"
    FOUND = "found"
    CLAIMED = "claimed"
    RETURNED = "returned"


class ReportStatus(str, PyEnum):
    PENDING = "pending"
    RESOLVED = "resolved"
    DISMISSED = "dismissed"


def choices(enum_cls: type[PyEnum]) -> str:
    """Human-readable list of allowed values, e.g. "lost, found, claimed, returned"."""
    return ", ".join(member.value for member in enum_cls)
