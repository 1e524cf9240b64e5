"""Test configuration and fixtures."""

from __future__ import annotations

import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("PAYMENT_PROVIDER", "fake")
os.environ.setdefault("BLOB_STORAGE_PROVIDER", "memory")

from collections.abc import AsyncGenerator, Awaitable, Callable  # noqa: E402
from pathlib import Path  # noqa: E402
from uuid import uuid4  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool, StaticPool  # noqa: E402

from signdesk.api.dependencies.database import get_db  # noqa: E402
from signdesk.api.dependencies.providers import (  # noqa: E402
    get_blob_storage,
    get_mailer,
    get_payment_provider,
)
from signdesk.api.main import app  # noqa: E402
from signdesk.billing.tier_catalog import SubscriptionTier, plan_for  # noqa: E402
from signdesk.core.security import create_access_token, get_password_hash  # noqa: E402
from signdesk.integrations.mailer import RecordingMailer  # noqa: E402
from signdesk.integrations.payments import FakePaymentProvider  # noqa: E402
from signdesk.integrations.storage import InMemoryBlobStorage  # noqa: E402
from signdesk.models.base import Base  # noqa: E402
from signdesk.models.user import User  # noqa: E402

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"
TEST_PASSWORD = "testpassword123"

UserFactory = Callable[..., Awaitable[User]]


@pytest_asyncio.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session on a fresh in-memory database."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async_session = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )

    async with async_session() as session:
        yield session

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def file_session_factory(
    tmp_path: Path,
) -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """Session factory on a file-backed database, one connection per session.

    Sessions from this factory behave like concurrent requests: each has
    its own connection and transaction.
    """
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'signdesk.db'}",
        poolclass=NullPool,
        connect_args={"timeout": 30},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )

    await engine.dispose()


@pytest.fixture
def fake_payments() -> FakePaymentProvider:
    """Payment provider whose intents succeed immediately."""
    return FakePaymentProvider()


@pytest.fixture
def memory_storage() -> InMemoryBlobStorage:
    """Dictionary-backed blob storage."""
    return InMemoryBlobStorage("https://storage.test")


@pytest.fixture
def recording_mailer() -> RecordingMailer:
    """Mailer that keeps sent messages in memory."""
    return RecordingMailer()


@pytest_asyncio.fixture(scope="function")
async def client(
    db_session: AsyncSession,
    fake_payments: FakePaymentProvider,
    memory_storage: InMemoryBlobStorage,
    recording_mailer: RecordingMailer,
) -> AsyncGenerator[AsyncClient, None]:
    """Create test client with database and capability overrides."""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_payment_provider] = lambda: fake_payments
    app.dependency_overrides[get_blob_storage] = lambda: memory_storage
    app.dependency_overrides[get_mailer] = lambda: recording_mailer

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db_session: AsyncSession) -> UserFactory:
    """Factory that inserts a user on the given tier."""

    async def _make_user(
        tier: SubscriptionTier = SubscriptionTier.FREE,
        live_used: int = 0,
        live_quota: int | None = None,
        email: str | None = None,
    ) -> User:
        suffix = uuid4().hex[:8]
        user = User(
            id=uuid4(),
            email=email or f"user-{suffix}@example.com",
            username=f"user_{suffix}",
            hashed_password=get_password_hash(TEST_PASSWORD),
            is_active=True,
            tier=tier,
            live_quota=plan_for(tier).monthly_live_quota if live_quota is None else live_quota,
            live_used=live_used,
        )
        db_session.add(user)
        await db_session.flush()
        await db_session.refresh(user)
        return user

    return _make_user


@pytest_asyncio.fixture(scope="function")
async def free_user(make_user: UserFactory) -> User:
    """A free tier user."""
    return await make_user(SubscriptionTier.FREE)


@pytest_asyncio.fixture(scope="function")
async def pro_user(make_user: UserFactory) -> User:
    """A pro user with plenty of LIVE quota left."""
    return await make_user(SubscriptionTier.PRO)


@pytest_asyncio.fixture(scope="function")
async def pro_user_last_unit(make_user: UserFactory) -> User:
    """A pro user with exactly one LIVE action left (29 of 30 used)."""
    return await make_user(SubscriptionTier.PRO, live_used=29)


@pytest_asyncio.fixture(scope="function")
async def enterprise_user(make_user: UserFactory) -> User:
    """An enterprise user."""
    return await make_user(SubscriptionTier.ENTERPRISE)


def auth_headers_for(user: User) -> dict[str, str]:
    """Bearer headers for ``user``."""
    token = create_access_token(data={"sub": str(user.id)})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def auth_headers() -> Callable[[User], dict[str, str]]:
    """Build bearer headers for a user."""
    return auth_headers_for


@pytest.fixture
def make_file_user(file_session_factory: async_sessionmaker[AsyncSession]) -> UserFactory:
    """Factory that commits a user to the file-backed database."""

    async def _make_file_user(
        tier: SubscriptionTier = SubscriptionTier.PRO,
        live_used: int = 0,
    ) -> User:
        suffix = uuid4().hex[:8]
        async with file_session_factory() as session:
            user = User(
                id=uuid4(),
                email=f"user-{suffix}@example.com",
                username=f"user_{suffix}",
                hashed_password=get_password_hash(TEST_PASSWORD),
                is_active=True,
                tier=tier,
                live_quota=plan_for(tier).monthly_live_quota,
                live_used=live_used,
            )
            session.add(user)
            await session.commit()
            return user

    return _make_file_user
