"""Shared test fixtures for all tests."""
import os
import tempfile

# Settings are read at import time
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="inventra-logs-"))
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")

from types import SimpleNamespace

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from inventra.core import database
from inventra.core.database import Base, get_db
from inventra.core.security import ROLE_EMPLOYEE, ROLE_MANAGER, create_access_token
from inventra.main import app
from inventra.models import Branch, Product, User


@pytest.fixture
async def engine(tmp_path):
    """Fresh SQLite database file for each test; separate sessions really compete."""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'inventra.db'}",
        poolclass=NullPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest.fixture
async def seed(session_factory):
    """Users, branches and products the ledger operations refer to."""
    manager = User(email="manager@example.com", full_name="Mira Manager", role=ROLE_MANAGER)
    employee = User(email="cashier@example.com", full_name="Cem Cashier", role=ROLE_EMPLOYEE)

    branch = Branch(name="Downtown", address="1 Main St", phone="555-0100")
    other_branch = Branch(name="Harbour", address="9 Quay Rd")
    closed_branch = Branch(name="Old Mall", is_active=False)

    cola = Product(name="Cola 330ml", sku="COLA-330", barcode="8690000000011", cost_price=90, selling_price=150)
    chips = Product(name="Salted Chips", sku="CHIPS-S", barcode="8690000000028", cost_price=40, selling_price=80)
    retired = Product(name="Retired Gum", sku="GUM-OLD", selling_price=10, is_active=False)

    async with session_factory() as session:
        session.add_all([manager, employee, branch, other_branch, closed_branch, cola, chips, retired])
        await session.commit()

    return SimpleNamespace(
        manager=manager,
        employee=employee,
        branch=branch,
        other_branch=other_branch,
        closed_branch=closed_branch,
        cola=cola,
        chips=chips,
        retired=retired,
    )


@pytest.fixture
async def client(engine, session_factory):
    """HTTP client against the app, bound to the test database."""
    async def override_get_db():
        async with session_factory() as session:
            yield session

    previous_engine = database.engine
    database.engine = engine
    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as test_client:
        yield test_client

    app.dependency_overrides.clear()
    database.engine = previous_engine


@pytest.fixture
def manager_headers(seed):
    token = create_access_token(seed.manager.id, role=ROLE_MANAGER, name=seed.manager.full_name)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def employee_headers(seed):
    token = create_access_token(seed.employee.id, role=ROLE_EMPLOYEE, name=seed.employee.full_name)
    return {"Authorization": f"Bearer {token}"}
