import bcrypt
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from config import ApplicationConfig
from session_service.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from session_service.depends import get_unit_of_work
from session_service.domain.entities import User, UserRole


@pytest_asyncio.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(engine):
    Session = sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with Session() as session:
        yield session


@pytest.fixture
def app(db_session):
    from session_service.api.app import create_app

    app = create_app(ApplicationConfig)

    async def override_get_unit_of_work():
        yield SqlAlchemyUnitOfWork(db_session)

    app.dependency_overrides[get_unit_of_work] = override_get_unit_of_work
    return app


@pytest_asyncio.fixture
async def client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def admin_headers():
    return {"X-Admin-API-Key": ApplicationConfig.ADMIN_API_KEY}


@pytest.fixture
def bearer():
    def _bearer(token: str) -> dict:
        return {"Authorization": f"Bearer {token}"}

    return _bearer


@pytest.fixture
def seed_user(db_session):
    """Insert a user directly; accounts are provisioned outside this service"""

    async def _seed(
        email="user@acme.com",
        password="SecurePass123!",
        role=UserRole.user,
        name="Acme User",
        password_hash=None,
    ) -> User:
        if password_hash is None and password is not None:
            password_hash = bcrypt.hashpw(password.encode(), bcrypt.gensalt(4)).decode()
        user = User(email=email, name=name, role=role, password_hash=password_hash)
        async with SqlAlchemyUnitOfWork(db_session) as uow:
            await uow.users.create(user)
            await uow.commit()
        # Detach so later rollbacks inside requests do not expire it
        db_session.expunge(user)
        return user

    return _seed


@pytest.fixture
def login(client):
    async def _login(email="user@acme.com", password="SecurePass123!", **extra):
        response = await client.post(
            "/auth/login", json={"email": email, "password": password, **extra}
        )
        assert response.status_code == 200, response.text
        return response.json()

    return _login
