from __future__ import annotations

import os
from pathlib import Path
from typing import AsyncIterator, Iterator, cast

import pytest
from alembic import command
from alembic.config import Config
from httpx import ASGITransport, AsyncClient
from loguru import logger
from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.types import ASGIApp

# Configure environment for tests before importing the app
os.environ.setdefault("DB_URL", "sqlite+aiosqlite:///./test_soundshare.db")
os.environ.setdefault("JWT_SECRET", "test_secret")
os.environ.setdefault("JWT_ALGORITHM", "HS256")
os.environ.setdefault("ENV", "local")
os.environ.setdefault("LOG_LEVEL", "ERROR")
os.environ.setdefault("CORS_ALLOWED_ORIGINS", '["http://testserver"]')
os.environ.setdefault("PUSH_PROVIDER", "disabled")
os.environ.setdefault("PUSH_TIMEOUT_SECONDS", "1")
os.environ.setdefault("NOTIFY_ON_UNFOLLOW", "true")

from soundshare.core.database import get_session_factory  # noqa: E402
from soundshare.main import app  # noqa: E402
from soundshare.models import Base  # noqa: E402
from soundshare.services.background import notification_tasks  # noqa: E402
from soundshare.services.dispatcher import NotificationDispatcher, get_dispatcher  # noqa: E402
from soundshare.tests.utils import RecordingPushProvider  # noqa: E402

logger.remove()


def _apply_migrations() -> None:
    root_path = Path(__file__).resolve().parents[2]
    alembic_cfg = Config(str(root_path / "alembic.ini"))
    alembic_cfg.set_main_option("script_location", str(root_path / "soundshare" / "migrations"))
    command.upgrade(alembic_cfg, "head")


@pytest.fixture(scope="session", autouse=True)
def apply_migrations() -> Iterator[None]:
    db_path = Path("test_soundshare.db")
    if db_path.exists():
        db_path.unlink()
    _apply_migrations()
    yield
    if db_path.exists():
        db_path.unlink()


@pytest.fixture(autouse=True)
async def clean_tables() -> AsyncIterator[None]:
    """Let scheduled notifications finish, then empty every table."""

    yield
    await notification_tasks.drain(timeout=5)
    session_factory = get_session_factory()
    async with session_factory() as session:
        for table in reversed(Base.metadata.sorted_tables):
            await session.execute(delete(table))
        await session.commit()


@pytest.fixture()
def push_provider() -> RecordingPushProvider:
    return RecordingPushProvider()


@pytest.fixture()
def dispatcher(push_provider: RecordingPushProvider) -> NotificationDispatcher:
    return NotificationDispatcher(push_provider, get_session_factory(), timeout=1.0, max_concurrency=4)


@pytest.fixture(autouse=True)
def override_dispatcher(dispatcher: NotificationDispatcher) -> Iterator[None]:
    app.dependency_overrides[get_dispatcher] = lambda: dispatcher
    yield
    app.dependency_overrides.pop(get_dispatcher, None)


@pytest.fixture()
async def client() -> AsyncIterator[AsyncClient]:
    transport = ASGITransport(app=cast(ASGIApp, app))  # type: ignore[arg-type]
    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client


@pytest.fixture()
async def session() -> AsyncIterator[AsyncSession]:
    session_factory = get_session_factory()
    async with session_factory() as session:
        yield session
