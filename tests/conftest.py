"""Pytest configuration and shared fixtures for all tests."""

import os
import sys
from pathlib import Path

# Minimal environment for settings; must be set before app imports
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("ROI_BATCH_CONCURRENCY", "1")
os.environ.setdefault("REDIS_HOST", "localhost")

# Add project root to PYTHONPATH
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from decimal import Decimal
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.config.programs import get_program
from app.models import Base, Stake, User


class Factory:
    """Seeds committed rows and reads them back in fresh sessions."""

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]) -> None:
        self.session_maker = session_maker
        self._seq = 0

    async def add(self, entity: Any) -> Any:
        async with self.session_maker() as session:
            session.add(entity)
            await session.commit()
            return entity

    async def user(self, referrer: User | None = None, **fields: Any) -> User:
        self._seq += 1
        fields.setdefault("username", f"member{self._seq}")
        if referrer is not None:
            fields["referrer_id"] = referrer.id
        return await self.add(User(**fields))

    async def stake(
        self,
        user: User,
        program: str = "I",
        amount: Decimal = Decimal("1000"),
        **fields: Any,
    ) -> Stake:
        if "base_roi_rate" not in fields or "compounding_rate" not in fields:
            config = get_program(program)
            fields.setdefault("base_roi_rate", config.base_rate)
            fields.setdefault("compounding_rate", config.compounding_rate)
        return await self.add(
            Stake(user_id=user.id, program=program, amount=amount, **fields)
        )

    async def get(self, model: type, id: int) -> Any:
        async with self.session_maker() as session:
            return await session.get(model, id)

    async def all(self, model: type, **filters: Any) -> list[Any]:
        async with self.session_maker() as session:
            stmt = select(model).filter_by(**filters).order_by(model.id)
            result = await session.execute(stmt)
            return list(result.scalars().all())


@pytest_asyncio.fixture
async def session_maker():
    """In-memory SQLite database with the full schema."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    maker = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )
    yield maker
    await engine.dispose()


@pytest_asyncio.fixture
async def session(session_maker):
    """Single session for service-level tests."""
    async with session_maker() as session:
        yield session


@pytest.fixture
def factory(session_maker):
    """Row factory bound to the test database."""
    return Factory(session_maker)


@pytest.fixture
def mock_session():
    """Mock AsyncSession for tests without a database."""
    session = AsyncMock()
    session.execute = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.flush = AsyncMock()
    session.add = MagicMock()
    return session


@pytest.fixture
def mock_redis_client():
    """Mock Redis client for lock tests."""
    client = AsyncMock()
    client.lock = MagicMock()
    client.aclose = AsyncMock()
    return client
