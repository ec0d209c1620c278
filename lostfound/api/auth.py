"""
Lost & Found API — Auth routes (public)
"""
import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from lostfound.api.deps import get_password_hasher, get_token_codec
from lostfound.core.errors import Conflict, Unauthorized
from lostfound.core.security import PasswordHasher, Principal, TokenCodec
from lostfound.db.database import get_db
from lostfound.models.enums import Role
from lostfound.models.user import User
from lostfound.schemas.auth import LoginRequest, RegisterRequest, RegisterResponse, TokenResponse

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/auth", tags=["auth"])

INVALID_CREDENTIALS = "Invalid username or password"


def principal_for(user: User) -> Principal:
    return Principal(id=user.id, username=user.username, role=Role(user.role))


@router.post("/register", response_model=RegisterResponse, status_code=status.HTTP_201_CREATED)
async def register(
    payload: RegisterRequest,
    db: AsyncSession = Depends(get_db),
    hasher: PasswordHasher = Depends(get_password_hasher),
    codec: TokenCodec = Depends(get_token_codec),
):
    """Register a new student account and issue a session token."""
    if await db.scalar(select(User.id).where(User.username == payload.username)) is not None:
        raise Conflict("Username already exists")
    if await db.scalar(select(User.id).where(User.email == payload.email)) is not None:
        raise Conflict("Email already exists")

    user = User(
        username=payload.username,
        email=payload.email,
        password_hash=hasher.hash(payload.password),
        role=Role.STUDENT.value,
        first_name=payload.first_name,
        last_name=payload.last_name,
        phone=payload.phone,
    )
    db.add(user)
    try:
        await db.commit()
    except IntegrityError:
        # Lost a race with a concurrent registration for the same username/email.
        await db.rollback()
        raise Conflict("Username or email already exists")
    await db.refresh(user)

    logger.info("Registered user id=%s username=%s", user.id, user.username)
    return RegisterResponse(
        message="User registered successfully",
        user_id=user.id,
        token=codec.issue(principal_for(user)),
    )


@router.post("/login", response_model=TokenResponse)
async def login(
    payload: LoginRequest,
    db: AsyncSession = Depends(get_db),
    hasher: PasswordHasher = Depends(get_password_hasher),
    codec: TokenCodec = Depends(get_token_codec),
):
    """Validate credentials and issue a session token."""
    result = await db.execute(select(User).where(User.username == payload.username))
    user: User | None = result.scalar_one_or_none()

    if not user or not hasher.verify(payload.password, user.password_hash):
        logger.warning("Rejected login for username=%s", payload.username)
        raise Unauthorized(INVALID_CREDENTIALS)

    return TokenResponse(token=codec.issue(principal_for(user)), expires_in=codec.lifetime_seconds)
