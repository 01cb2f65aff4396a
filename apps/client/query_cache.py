"""
Клиентский кэш запросов с ключами-кортежами
"""

import asyncio
import copy
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple

import httpx

from core.config.settings import settings
from core.logging.logger import logger

CacheKey = Tuple[Any, ...]
Loader = Callable[[], Awaitable[Any]]


@dataclass
class CacheEntry:
    """Данные по ключу, время загрузки и текущий запрос."""

    data: Any = None
    updated_at: Optional[float] = None
    stale: bool = True
    task: Optional[asyncio.Task] = None
    # Растёт при каждой записи и инвалидации; результат запроса,
    # начатого при другой версии, в кэш не попадает.
    version: int = 0


class QueryCache:
    """
    Кэш результатов запросов.

    Ключи ("cars",), ("cars", id), ("documents", car_id). Инвалидация ключа
    помечает устаревшими и все ключи, которые он предваряет.
    """

    def __init__(
        self,
        stale_time: Optional[float] = None,
        retries: int = 1,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.stale_time = stale_time if stale_time is not None else settings.client_stale_seconds
        self.retries = retries
        self._clock = clock
        self._entries: Dict[CacheKey, CacheEntry] = {}

    def __contains__(self, key: CacheKey) -> bool:
        entry = self._entries.get(key)
        return entry is not None and entry.updated_at is not None

    def get(self, key: CacheKey) -> Any:
        entry = self._entries.get(key)
        return entry.data if entry else None

    def is_fresh(self, key: CacheKey, stale_time: Optional[float] = None) -> bool:
        entry = self._entries.get(key)
        if entry is None or entry.stale or entry.updated_at is None:
            return False
        limit = self.stale_time if stale_time is None else stale_time
        return self._clock() - entry.updated_at < limit

    async def fetch(self, key: CacheKey, loader: Loader, stale_time: Optional[float] = None) -> Any:
        """Свежие данные из кэша, иначе загрузка. Параллельные вызовы делят один запрос."""
        if self.is_fresh(key, stale_time):
            return self._entries[key].data

        entry = self._entries.setdefault(key, CacheEntry())
        if entry.task is not None and not entry.task.done():
            return await asyncio.shield(entry.task)

        task = asyncio.ensure_future(self._load(key, loader, entry, entry.version))
        entry.task = task
        try:
            return await task
        finally:
            if entry.task is task:
                entry.task = None

    async def _load(self, key: CacheKey, loader: Loader, entry: CacheEntry, version: int) -> Any:
        attempt = 0
        while True:
            try:
                data = await loader()
                break
            except httpx.TransportError as e:
                if attempt >= self.retries:
                    raise
                attempt += 1
                logger.warning("Query retry", key=repr(key), attempt=attempt, error=str(e))
        if self._entries.get(key) is not entry or entry.version != version:
            # Ключ удалён, очищен или инвалидирован, пока шёл запрос
            logger.debug("Query result discarded", key=repr(key))
            return data
        self.set(key, data)
        return data

    def set(self, key: CacheKey, value: Any) -> None:
        entry = self._entries.setdefault(key, CacheEntry())
        entry.data = value
        entry.updated_at = self._clock()
        entry.stale = False
        entry.version += 1

    def snapshot(self, key: CacheKey) -> Any:
        """Копия текущего значения для отката оптимистичного обновления."""
        return copy.deepcopy(self.get(key))

    def rollback(self, key: CacheKey, previous: Any) -> None:
        if previous is None:
            self.remove(key)
        else:
            self.set(key, previous)

    def invalidate(self, key: CacheKey) -> int:
        """Помечает устаревшими ключ и все ключи с этим префиксом.

        Запросы, уже идущие по этим ключам, отвязываются: следующий fetch
        начнёт новую загрузку, а их ответ не будет записан.
        """
        count = 0
        for existing, entry in self._entries.items():
            if existing[:len(key)] == key:
                entry.stale = True
                entry.version += 1
                entry.task = None
                count += 1
        return count

    def remove(self, key: CacheKey) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()
