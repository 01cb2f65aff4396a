"""
Сервис для работы с пользователями через базу данных
"""

from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from domain.entities.user import User
from core.auth.security import create_access_token, hash_password, verify_password
from core.errors import Conflict, InvalidCredentials
from core.logging.logger import logger


class UserServiceDB:
    """Сервис для работы с пользователями в базе данных."""

    def __init__(self, db_session: AsyncSession):
        self.db = db_session

    async def register(self, username: str, email: str, password: str) -> str:
        """Регистрирует пользователя и возвращает JWT токен."""
        email = email.lower()
        if await self.get_user_by_email(email):
            logger.warning("Registration for existing email rejected", email=email)
            raise Conflict()

        user = User(username=username, email=email, password=hash_password(password))
        self.db.add(user)
        try:
            await self.db.commit()
        except IntegrityError:
            # Параллельная регистрация с тем же email
            await self.db.rollback()
            raise Conflict()
        await self.db.refresh(user)

        logger.info("User registered", user_id=user.id)
        return create_access_token(user.id)

    async def login(self, email: str, password: str) -> str:
        """Проверяет учётные данные и возвращает JWT токен."""
        user = await self.get_user_by_email(email.lower())
        if user is None or not verify_password(password, user.password):
            logger.info("Login failed", email=email)
            raise InvalidCredentials()

        logger.info("User logged in", user_id=user.id)
        return create_access_token(user.id)

    async def get_user(self, user_id: str) -> Optional[User]:
        """Получает пользователя по ID."""
        result = await self.db.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    async def get_user_by_email(self, email: str) -> Optional[User]:
        """Получает пользователя по email."""
        result = await self.db.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()
