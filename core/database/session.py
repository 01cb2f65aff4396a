"""
Фабрика для создания сессий базы данных
"""

from typing import AsyncGenerator, Optional
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool, StaticPool

from core.config.settings import settings
from core.logging.logger import logger


def to_async_url(database_url: str) -> str:
    """Конвертация URL для async драйверов."""
    if database_url.startswith("postgresql://"):
        return database_url.replace("postgresql://", "postgresql+asyncpg://", 1)
    if database_url.startswith("sqlite://") and "+aiosqlite" not in database_url:
        return database_url.replace("sqlite://", "sqlite+aiosqlite://", 1)
    return database_url


class DatabaseManager:
    """Менеджер базы данных для создания сессий."""

    def __init__(self, database_url: Optional[str] = None):
        self.database_url = database_url or settings.database_url
        self.engine: Optional[AsyncEngine] = None
        self.session_factory: Optional[async_sessionmaker] = None
        self._initialized = False

    async def initialize(self, create_tables: bool = False):
        """Инициализирует подключение к базе данных."""
        if self._initialized:
            return

        try:
            database_url = to_async_url(self.database_url)

            if database_url.startswith("sqlite+aiosqlite://"):
                # In-memory SQLite живёт только в рамках одного соединения
                self.engine = create_async_engine(
                    database_url,
                    echo=settings.database_echo,
                    poolclass=StaticPool,
                    connect_args={"check_same_thread": False},
                )
            else:
                self.engine = create_async_engine(
                    database_url,
                    echo=settings.database_echo,
                    poolclass=NullPool,
                )

            self.session_factory = async_sessionmaker(
                bind=self.engine,
                class_=AsyncSession,
                expire_on_commit=False
            )

            if create_tables:
                from domain.entities import Base
                async with self.engine.begin() as conn:
                    await conn.run_sync(Base.metadata.create_all)

            self._initialized = True
            logger.info("Database connection initialized successfully")

        except Exception as e:
            logger.error(f"Failed to initialize database connection: {e}")
            raise

    async def close(self):
        """Закрывает подключение к базе данных."""
        if self.engine:
            await self.engine.dispose()
            self._initialized = False
            logger.info("Database connection closed")

    def get_session(self) -> AsyncSession:
        """Возвращает новую сессию базы данных."""
        if not self._initialized:
            raise RuntimeError("Database not initialized. Call initialize() first.")

        return self.session_factory()

    async def get_session_async(self) -> AsyncGenerator[AsyncSession, None]:
        """Асинхронный генератор для получения сессий."""
        session = self.get_session()
        try:
            yield session
        finally:
            await session.close()


# Глобальный экземпляр менеджера БД
db_manager = DatabaseManager()


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """Dependency для получения сессии БД."""
    if not db_manager._initialized:
        await db_manager.initialize()
    async for session in db_manager.get_session_async():
        yield session


async def init_database(create_tables: bool = True):
    """Инициализирует базу данных."""
    await db_manager.initialize(create_tables=create_tables)


async def close_database():
    """Закрывает подключение к базе данных."""
    await db_manager.close()
