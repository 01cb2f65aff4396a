"""Сессия клиента: хранение токена и защищённые вызовы API."""

from typing import Any, Awaitable, Callable, Optional

from core.logging.logger import logger

from .api_client import ApiClient, ApiRequestError
from .query_cache import QueryCache


class LoginRequired(Exception):
    """Нужен вход: токена нет или сервер его отверг."""


class Session:
    """Bearer токен пользователя и связанный с ним кэш."""

    def __init__(self, cache: QueryCache, api: Optional[ApiClient] = None):
        self.cache = cache
        self.token: Optional[str] = None
        self.api = api or ApiClient()
        self.api.token_provider = self.get_token

    def get_token(self) -> Optional[str]:
        return self.token

    @property
    def is_authenticated(self) -> bool:
        return bool(self.token)

    async def login(self, email: str, password: str) -> None:
        self.token = await self.api.login(email, password)
        logger.info("Client logged in")

    async def register(self, username: str, email: str, password: str) -> None:
        self.token = await self.api.register(username, email, password)
        logger.info("Client registered")

    def logout(self) -> None:
        """Сбрасывает токен и весь кэш запросов."""
        self.token = None
        self.cache.clear()

    def require_auth(self) -> None:
        if not self.token:
            raise LoginRequired("Login required")

    async def call(self, fn: Callable[..., Awaitable[Any]], *args: Any, **kwargs: Any) -> Any:
        """Защищённый вызов. Ответ 401 завершает сессию."""
        self.require_auth()
        try:
            return await fn(*args, **kwargs)
        except ApiRequestError as e:
            if e.status_code == 401:
                logger.info("Session expired", detail=e.first_message)
                self.logout()
                raise LoginRequired(e.first_message or "Login required") from e
            raise
