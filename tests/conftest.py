"""Pytest configuration and fixtures."""
import os
import uuid

import pytest
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker

# Ensure the application never touches a real database during tests
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///./test.db"
os.environ["ENVIRONMENT"] = "test"
# Keep bootstrap data out of the per-test databases
os.environ["SEED_SAMPLE_PRODUCTS"] = "false"

from retreat_store.config import get_settings
from retreat_store.database import Base
import retreat_store.models  # noqa: F401

settings = get_settings()

DEFAULT_PASSWORD = "TestPassword123!"


@pytest.fixture
async def test_engine(tmp_path):
    """Fresh SQLite database per test, built from the model metadata."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'ledger.db'}", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
async def db_session(test_engine):
    """Create test database session."""
    async_session = async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )

    async with async_session() as session:
        yield session
        await session.rollback()
        await session.close()


@pytest.fixture
async def test_app(test_engine):
    """Create test app with database override."""
    from retreat_store.main import app
    from retreat_store.database import get_db

    async def override_get_db():
        async_session = async_sessionmaker(
            test_engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )
        async with async_session() as session:
            try:
                yield session
            finally:
                await session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
async def team_factory(db_session):
    """Factory for creating teams with unique names."""
    from retreat_store.models import Team

    async def _create_team(name: str | None = None):
        team = Team(name=name or f"team-{uuid.uuid4().hex[:8]}")
        db_session.add(team)
        await db_session.commit()
        return team

    return _create_team


@pytest.fixture
async def user_factory(db_session):
    """Factory for creating users. Team leaders are registered on their team."""
    from retreat_store.models import Team, User
    from retreat_store.models.base import UserRole
    from retreat_store.utils.passwords import hash_password

    async def _create_user(
        role: str = UserRole.TEAM_LEADER.value,
        team: Team | None = None,
        balance: int = 0,
        username: str | None = None,
        password: str = DEFAULT_PASSWORD,
    ):
        user = User(
            username=username or f"user_{uuid.uuid4().hex[:8]}",
            password_hash=hash_password(password),
            role=role,
            team_id=team.id if team else None,
            balance=balance,
        )
        db_session.add(user)
        await db_session.flush()
        if team is not None and role == UserRole.TEAM_LEADER.value:
            team.leader_id = user.id
        await db_session.commit()
        return user

    return _create_user


@pytest.fixture
async def product_factory(db_session):
    """Factory for creating store products."""
    from retreat_store.models import Product

    async def _create_product(
        name: str | None = None,
        price: int = 100,
        stock: int = 10,
        category: str = "item",
        is_active: bool | None = None,
    ):
        product = Product(
            name=name or f"product-{uuid.uuid4().hex[:6]}",
            price=price,
            category=category,
            stock_quantity=stock,
            initial_stock=stock,
            is_active=stock > 0 if is_active is None else is_active,
        )
        db_session.add(product)
        await db_session.commit()
        return product

    return _create_product
