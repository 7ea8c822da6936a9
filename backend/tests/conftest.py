"""Pytest fixtures for the notification queue backend."""

from collections.abc import AsyncIterator, Callable, Iterator
from datetime import datetime, timezone
from pathlib import Path

from alembic import command
from alembic.config import Config
import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel

from api.deps import get_db, get_session_factory
from app import create_app
from core.config import settings
from services.notifications import (
    NotificationQueue,
    NotificationRegistry,
    StaticFeatureFlagSource,
)

FIXED_NOW = datetime(2026, 10, 19, 9, 30, 0, tzinfo=timezone.utc)


def _run_alembic_migrations(database_url: str) -> None:
    """Apply Alembic migrations to the given database URL."""
    backend_dir = Path(__file__).resolve().parents[1]
    alembic_cfg = Config(str(backend_dir / "alembic.ini"))
    alembic_cfg.set_main_option("script_location", str(backend_dir / "alembic"))
    alembic_cfg.attributes["configure_logger"] = False

    original_database_url = settings.database_url
    try:
        settings.database_url = database_url
        command.upgrade(alembic_cfg, "head")
    finally:
        settings.database_url = original_database_url


@pytest.fixture(scope="session")
def test_database_url(tmp_path_factory) -> str:
    """Create and migrate a file-backed SQLite database for tests."""
    db_dir = tmp_path_factory.mktemp("sqlite")
    db_path = db_dir / "backend-test.db"
    database_url = f"sqlite+aiosqlite:///{db_path}"
    _run_alembic_migrations(database_url)
    return database_url


@pytest_asyncio.fixture()
async def test_engine(test_database_url: str) -> AsyncIterator[AsyncEngine]:
    """Create an async engine bound to the migrated SQLite test database."""
    engine = create_async_engine(
        test_database_url,
        connect_args={"check_same_thread": False},
    )
    yield engine
    await engine.dispose()


@pytest.fixture()
def session_maker(test_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Return a session factory bound to the test engine."""
    return async_sessionmaker(test_engine, expire_on_commit=False)


@pytest_asyncio.fixture()
async def clean_database(session_maker) -> AsyncIterator[None]:
    """Clear tables before a database test to guarantee isolation."""
    async with session_maker() as session:
        for table in reversed(SQLModel.metadata.sorted_tables):
            await session.execute(table.delete())
        await session.commit()
    yield


@pytest_asyncio.fixture()
async def db_session(session_maker, clean_database) -> AsyncIterator[AsyncSession]:
    """Provide a raw database session to tests."""
    async with session_maker() as session:
        yield session


@pytest.fixture()
def registry() -> Iterator[NotificationRegistry]:
    notification_registry = NotificationRegistry()
    yield notification_registry
    notification_registry.reset()


@pytest.fixture()
def app(session_maker, clean_database, registry: NotificationRegistry) -> FastAPI:
    """Create the FastAPI app with a test database dependency override."""
    application = create_app(registry=registry)

    async def override_get_db() -> AsyncIterator[AsyncSession]:
        async with session_maker() as session:
            yield session

    application.dependency_overrides[get_db] = override_get_db
    application.dependency_overrides[get_session_factory] = lambda: session_maker
    return application


@pytest_asyncio.fixture()
async def async_client(app: FastAPI) -> AsyncIterator[AsyncClient]:
    """Return an HTTPX async client bound to the FastAPI app."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client


class InMemoryDismissalLedger:
    """Process-local ledger; ``loaded=False`` mimics data still in flight."""

    def __init__(self, *, loaded: bool = True) -> None:
        self.loaded = loaded
        self.dismissed: dict[str, int] = {}
        self.dismiss_calls: list[tuple[str, int]] = []
        self.read_calls: list[str] = []

    def is_dismissed(self, notification_id: str) -> bool | None:
        self.read_calls.append(notification_id)
        if not self.loaded:
            return None
        return notification_id in self.dismissed

    def dismissal_count(self, notification_id: str) -> int | None:
        if not self.loaded:
            return None
        return self.dismissed.get(notification_id, 0)

    async def dismiss(self, notification_id: str, *, expires_in_seconds: int = 0) -> None:
        self.dismiss_calls.append((notification_id, expires_in_seconds))
        self.dismissed[notification_id] = self.dismissed.get(notification_id, 0) + 1


@pytest.fixture()
def ledger() -> InMemoryDismissalLedger:
    return InMemoryDismissalLedger()


@pytest.fixture()
def unloaded_ledger() -> InMemoryDismissalLedger:
    return InMemoryDismissalLedger(loaded=False)


@pytest.fixture()
def make_queue(
    registry: NotificationRegistry,
    ledger: InMemoryDismissalLedger,
) -> Callable[..., NotificationQueue]:
    def _make_queue(
        *,
        flags: tuple[str, ...] = (),
        dismissals: object | None = None,
        clock: Callable[[], datetime] = lambda: FIXED_NOW,
    ) -> NotificationQueue:
        return NotificationQueue(
            registry,
            dismissals if dismissals is not None else ledger,  # type: ignore[arg-type]
            feature_flags=StaticFeatureFlagSource(flags),
            clock=clock,
        )

    return _make_queue
