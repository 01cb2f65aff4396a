"""
Конфигурация pytest для тестов CarLedger
Фикстуры БД (in-memory SQLite), хранилища и HTTP клиента
"""
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from core.auth.security import hash_password
from core.database.session import DatabaseManager, get_db_session
from domain.entities.user import User
from apps.api.app import create_app
from apps.api.dependencies import get_media_storage
from tests.utils.test_helpers import DEFAULT_PASSWORD, InMemoryMediaStorage


TEST_DATABASE_URL = "sqlite:///:memory:"


# =============================================================================
# База данных
# =============================================================================

@pytest_asyncio.fixture
async def db_manager():
    """Отдельная in-memory БД на каждый тест."""
    manager = DatabaseManager(TEST_DATABASE_URL)
    await manager.initialize(create_tables=True)
    yield manager
    await manager.close()


@pytest_asyncio.fixture
async def db_session(db_manager):
    """Сессия БД для unit тестов сервисов."""
    session = db_manager.get_session()
    try:
        yield session
    finally:
        await session.close()


async def _create_user(session, username: str) -> User:
    user = User(
        username=username,
        email=f"{username}@example.com",
        password=hash_password(DEFAULT_PASSWORD),
    )
    session.add(user)
    await session.commit()
    await session.refresh(user)
    return user


@pytest_asyncio.fixture
async def owner(db_session):
    """Владелец автомобилей."""
    return await _create_user(db_session, "owner")


@pytest_asyncio.fixture
async def stranger(db_session):
    """Другой пользователь."""
    return await _create_user(db_session, "stranger")


# =============================================================================
# Хранилище и приложение
# =============================================================================

@pytest.fixture
def storage():
    """Хранилище файлов в памяти."""
    return InMemoryMediaStorage()


@pytest.fixture
def app(db_manager, storage):
    """FastAPI приложение с тестовой БД и хранилищем."""
    application = create_app(use_lifespan=False)

    async def override_db_session():
        async for session in db_manager.get_session_async():
            yield session

    application.dependency_overrides[get_db_session] = override_db_session
    application.dependency_overrides[get_media_storage] = lambda: storage
    return application


@pytest_asyncio.fixture
async def client(app):
    """HTTP клиент поверх ASGI приложения."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
