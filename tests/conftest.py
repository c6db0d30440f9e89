"""Test fixtures: per-test SQLite database, recording notifier, fixed clock."""

import sys
from collections.abc import AsyncIterator
from datetime import UTC, datetime, timedelta
from decimal import Decimal
from pathlib import Path

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from src.config import Settings
from src.models import Base, Listing, ListingStatus, User, UserRole
from src.notifications import NotificationDispatcher, NotificationIntent, Notifier

FIXED_NOW = datetime(2026, 3, 15, 12, 0, tzinfo=UTC)


class FakeClock:
    """Callable clock that tests can move forward."""

    def __init__(self, now: datetime = FIXED_NOW) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


class RecordingNotifier(Notifier):
    """Gateway double that remembers every send and can be told to fail."""

    def __init__(self, *, error: Exception | None = None, result: bool = True) -> None:
        self.sent: list[tuple[NotificationIntent, str]] = []
        self._error = error
        self._result = result

    async def send(self, intent: NotificationIntent, *, recipient: str) -> bool:
        self.sent.append((intent, recipient))
        if self._error is not None:
            raise self._error
        return self._result


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def settings() -> Settings:
    return Settings(
        database_url="sqlite+aiosqlite://",
        frontend_base_url="https://boardingbee.test/",
        email_api_url="",
        email_api_key="",
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def dispatcher(notifier: RecordingNotifier) -> NotificationDispatcher:
    return NotificationDispatcher(notifier)


@pytest.fixture
async def session_factory(tmp_path: Path) -> AsyncIterator[async_sessionmaker[AsyncSession]]:
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with engine.begin() as connection:
        await connection.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, expire_on_commit=False)
    await engine.dispose()


@pytest.fixture
async def session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncIterator[AsyncSession]:
    async with session_factory() as db_session:
        yield db_session


@pytest.fixture
def make_user(session: AsyncSession):
    async def _make_user(
        username: str,
        *,
        role: UserRole = UserRole.USER,
        created_at: datetime = FIXED_NOW,
        first_name: str | None = None,
        last_name: str | None = None,
    ) -> User:
        user = User(
            username=username,
            email=f"{username}@example.com",
            role=role.value,
            first_name=first_name,
            last_name=last_name,
            created_at=created_at,
        )
        session.add(user)
        await session.commit()
        return user

    return _make_user


@pytest.fixture
def make_listing(session: AsyncSession):
    async def _make_listing(
        owner: User | None,
        *,
        title: str = "Sunny room near campus",
        status: ListingStatus = ListingStatus.PENDING,
        price: str = "25000.00",
        created_at: datetime = FIXED_NOW,
        expires_at: datetime | None = None,
    ) -> Listing:
        listing = Listing(
            owner_id=owner.id if owner is not None else None,
            title=title,
            location="Kandy",
            price=Decimal(price),
            status=status.value,
            expires_at=expires_at or created_at + timedelta(days=180),
            created_at=created_at,
            last_updated=created_at,
        )
        session.add(listing)
        await session.commit()
        return listing

    return _make_listing
