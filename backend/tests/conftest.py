"""Test configuration and fixtures for the Passwords share API tests."""

import os
from typing import AsyncGenerator, Awaitable, Callable, Optional

# Set test environment variables before the application reads its settings
os.environ["JWT_SECRET_KEY"] = "test-secret-key-for-testing-only"
os.environ["ACCESS_TOKEN_EXPIRE_MINUTES"] = "60"

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool  # noqa: E402

from passwords.auth import create_access_token  # noqa: E402
from passwords.database import Base, get_db  # noqa: E402
from passwords.encryption import CSE_ENCRYPTION_NONE, SSE_ENCRYPTION_V1R2  # noqa: E402
from passwords.host.base import CORE_APP_ID  # noqa: E402
from passwords.host.sqlalchemy_host import (  # noqa: E402
    SQLAlchemyAppConfig,
    SQLAlchemyGroupManager,
    SQLAlchemyShareManager,
    SQLAlchemyUserManager,
)
from passwords.main import app  # noqa: E402
from passwords.models import (  # noqa: E402
    Group,
    GroupMembership,
    Password,
    PasswordRevision,
    User,
    generate_uuid,
)
from passwords.services.password_service import PasswordService  # noqa: E402
from passwords.services.revision_service import PasswordRevisionService  # noqa: E402
from passwords.services.share_controller import SharePolicyController  # noqa: E402
from passwords.services.share_service import ShareService  # noqa: E402

# Fixed "now" for controller tests that check expiry boundaries
NOW = 1_800_000_000


@pytest_asyncio.fixture
async def test_engine(tmp_path) -> AsyncGenerator[AsyncEngine, None]:
    """Create a fresh SQLite database with all tables for one test."""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", poolclass=NullPool
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(test_engine: AsyncEngine) -> async_sessionmaker:
    """Session factory bound to the test database."""
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def async_session(
    session_maker: async_sessionmaker,
) -> AsyncGenerator[AsyncSession, None]:
    """Provide async database session for tests."""
    async with session_maker() as session:
        yield session


@pytest_asyncio.fixture
async def async_client(
    session_maker: async_sessionmaker,
) -> AsyncGenerator[AsyncClient, None]:
    """Provide async test client whose requests use the test database."""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_maker() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def users(async_session: AsyncSession) -> dict:
    """Create alice (the sharer), bob, carol and an inactive user."""
    created = {
        "alice": User(uid="alice", display_name="Alice Liddell", email="alice@example.com"),
        "bob": User(uid="bob", display_name="Bob Builder", email="bob@example.com"),
        "carol": User(uid="carol", display_name="Carol Danvers"),
        "mallory": User(uid="mallory", display_name="Mallory", is_active=False),
    }
    async_session.add_all(created.values())
    await async_session.commit()
    return created


@pytest.fixture
def add_group(async_session: AsyncSession) -> Callable[..., Awaitable[Group]]:
    """Return a helper that creates a group with the given members."""

    async def _add_group(gid: str, *members: str) -> Group:
        group = Group(gid=gid, display_name=gid.title())
        async_session.add(group)
        async_session.add_all(GroupMembership(gid=gid, uid=uid) for uid in members)
        await async_session.commit()
        return group

    return _add_group


@pytest.fixture
def set_policy(async_session: AsyncSession) -> Callable[[str, str], Awaitable[None]]:
    """Return a helper that stores a core sharing policy value."""

    async def _set_policy(key: str, value: str) -> None:
        await SQLAlchemyAppConfig(async_session).set_app_value(CORE_APP_ID, key, value)
        await async_session.commit()

    return _set_policy


@pytest.fixture
def make_password(async_session: AsyncSession) -> Callable[..., Awaitable[Password]]:
    """Return a helper that stores a password with one current revision."""

    async def _make_password(
        owner: str = "alice",
        sse_type: str = SSE_ENCRYPTION_V1R2,
        cse_type: str = CSE_ENCRYPTION_NONE,
        share_id: Optional[str] = None,
    ) -> Password:
        password = Password(
            uuid=generate_uuid(),
            user_id=owner,
            revision=generate_uuid(),
            share_id=share_id,
            has_shares=False,
        )
        revision = PasswordRevision(
            uuid=password.revision,
            model=password.uuid,
            user_id=owner,
            label="Mail account",
            username="alice@example.com",
            password="correct horse battery staple",
            url="https://mail.example.com",
            notes="",
            hash="0" * 40,
            cse_type=cse_type,
            cse_key="",
            sse_type=sse_type,
        )
        async_session.add_all([password, revision])
        await async_session.commit()
        return password

    return _make_password


@pytest.fixture
def make_controller(async_session: AsyncSession) -> Callable[..., SharePolicyController]:
    """Return a helper that builds a database-backed controller for a user."""

    def _make_controller(
        uid: str = "alice", clock: Callable[[], float] = lambda: NOW, **kwargs
    ) -> SharePolicyController:
        config = SQLAlchemyAppConfig(async_session)
        group_manager = SQLAlchemyGroupManager(async_session)
        return SharePolicyController(
            user_id=uid,
            config=config,
            share_manager=SQLAlchemyShareManager(config, group_manager),
            user_manager=SQLAlchemyUserManager(async_session),
            group_manager=group_manager,
            share_service=ShareService(async_session),
            password_service=PasswordService(async_session),
            revision_service=PasswordRevisionService(async_session),
            clock=clock,
            **kwargs,
        )

    return _make_controller


@pytest.fixture
def auth_headers() -> Callable[[str], dict]:
    """Return a helper that builds bearer headers for a uid."""

    def _auth_headers(uid: str) -> dict:
        token = create_access_token({"sub": uid})
        return {"Authorization": f"Bearer {token}"}

    return _auth_headers
