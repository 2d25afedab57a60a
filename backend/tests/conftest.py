"""
Pytest fixtures for the seat ledger database, both HTTP clients and authentication.

Each test gets its own SQLite database file, so concurrent claims in one
test run against real separate connections and real transaction locking.
"""

import os

# Must be set before the app modules read settings
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["REDIS_ENABLED"] = "false"
os.environ["ENVIRONMENT"] = "test"
os.environ["TOKEN_SECRET"] = "test-entitlement-secret"
os.environ["SECRET_KEY"] = "test-session-secret"

import random
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from app.main import app
from app.estimator.main import app as estimator_app
from app.estimator.routes import get_estimator
from app.estimator.service import DiscountEstimator
from app.db.base import Base
from app.db.seed import seed_concert
from app.db.session import build_engine, build_session_factory, get_db, get_session_factory
from app.core.config import get_settings
from app.core.security import Role, create_access_token
from app.services.reservation_service import ReservationManager

# Concrete scenario layout: concert 1 in theater 7, seats 1-10 in two rows of five
CONCERT_ID = 1
THEATER_ID = 7
OTHER_CONCERT_ID = 2
OTHER_THEATER_ID = 8

USER_A = 101
USER_B = 202


@pytest_asyncio.fixture(scope="function")
async def db_engine(tmp_path) -> AsyncGenerator[AsyncEngine, None]:
    """Create tables in a fresh database file, dispose afterwards."""
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'ledger.db'}", lock_timeout_ms=5000)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def session_factory(db_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return build_session_factory(db_engine)


@pytest_asyncio.fixture
async def seeded(session_factory) -> None:
    """Concert 1 (theater 7, seats 1-10) and concert 2 (theater 8, seats 11-14)."""
    async with session_factory() as session:
        async with session.begin():
            await seed_concert(
                session, "Test Concert", rows=2, seats_per_row=5,
                theater_name="Theater Seven", theater_id=THEATER_ID, concert_id=CONCERT_ID,
            )
            await seed_concert(
                session, "Other Concert", rows=1, seats_per_row=4,
                theater_name="Theater Eight", theater_id=OTHER_THEATER_ID, concert_id=OTHER_CONCERT_ID,
            )


@pytest_asyncio.fixture
async def manager(session_factory, seeded) -> ReservationManager:
    return ReservationManager(session_factory, lock_timeout_ms=5000)


@pytest_asyncio.fixture(scope="function")
async def client(session_factory, seeded) -> AsyncGenerator[AsyncClient, None]:
    """Booking service client bound to the test database."""

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: session_factory

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def estimator() -> DiscountEstimator:
    settings = get_settings()
    return DiscountEstimator(settings.TOKEN_SECRET, algorithm=settings.TOKEN_ALGORITHM, rng=random.Random(7))


@pytest_asyncio.fixture(scope="function")
async def estimator_client(estimator) -> AsyncGenerator[AsyncClient, None]:
    """Discount estimator client. Note: no database fixture is involved."""
    estimator_app.dependency_overrides[get_estimator] = lambda: estimator

    transport = ASGITransport(app=estimator_app)
    async with AsyncClient(transport=transport, base_url="http://estimator") as ac:
        yield ac

    estimator_app.dependency_overrides.clear()


def session_headers(user_id: int, role: Role = Role.REGULAR) -> dict:
    token = create_access_token(data={"sub": str(user_id), "role": int(role)})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def headers_a() -> dict:
    return session_headers(USER_A)


@pytest.fixture
def headers_b() -> dict:
    return session_headers(USER_B, Role.LOYAL)
