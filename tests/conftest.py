"""
Lost & Found API — Test configuration and fixtures

Each test gets its own SQLite database (aiosqlite) and upload directory under
tmp_path, and talks to a fresh app over httpx's ASGI transport.
"""
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from lostfound.core.config import Settings
from lostfound.core.security import Principal
from lostfound.main import create_app
from lostfound.models.enums import Role
from lostfound.models.user import User
from support import DEFAULT_PASSWORD, TEST_SECRET


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        _env_file=None,
        JWT_SECRET_KEY=TEST_SECRET,
        DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        UPLOAD_DIR=str(tmp_path / "uploads"),
        BCRYPT_ROUNDS=4,
        METRICS_ENABLED=False,
        RATE_LIMIT_ENABLED=False,
        LOG_LEVEL="WARNING",
    )


@pytest_asyncio.fixture
async def app(settings):
    application = create_app(settings)
    # ASGITransport does not run the lifespan, so create the schema here.
    await application.state.database.create_all()
    yield application
    await application.state.database.dispose()


@pytest_asyncio.fixture
async def client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


class Users:
    """Creates accounts directly in the database and issues their tokens."""

    def __init__(self, app):
        self.app = app
        self._count = 0

    async def create(self, role: Role = Role.STUDENT, username: str | None = None,
                     password: str = DEFAULT_PASSWORD) -> User:
        self._count += 1
        username = username or f"{role.value}{self._count}"
        user = User(
            username=username,
            email=f"{username}@x.com",
            password_hash=self.app.state.password_hasher.hash(password),
            role=role.value,
        )
        async with self.app.state.database.session_factory() as session:
            session.add(user)
            await session.commit()
        return user

    def token(self, user: User) -> str:
        return self.app.state.token_codec.issue(
            Principal(id=user.id, username=user.username, role=Role(user.role))
        )

    def headers(self, user: User) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.token(user)}"}


@pytest.fixture
def users(app) -> Users:
    return Users(app)
