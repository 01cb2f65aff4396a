"""Интерфейс и типы медиа-хранилища."""

from __future__ import annotations

import os
import random
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional


@dataclass
class MediaFile:
    """Метаданные загруженного файла."""

    key: str
    url: str
    size: int
    mime_type: str
    original_name: str
    uploaded_at: datetime
    metadata: Dict[str, Any] = field(default_factory=dict)


class MediaStorageClient(ABC):
    """Абстрактный интерфейс для работы с объектным хранилищем."""

    def __init__(self, public_base_url: str) -> None:
        self.public_base_url = public_base_url.rstrip("/")

    @staticmethod
    def build_key(folder: str, original_name: str) -> str:
        """Ключ вида ``<folder>/<unix-ms>-<random>.<ext>``."""
        ext = os.path.splitext(original_name or "")[1].lower()
        unique_suffix = f"{int(time.time() * 1000)}-{random.randint(0, 10**9)}"
        return f"{folder.strip('/')}/{unique_suffix}{ext}"

    def get_url(self, key: str) -> str:
        """Публичный URL объекта."""
        return f"{self.public_base_url}/{key}"

    def key_from_url(self, url: Optional[str]) -> Optional[str]:
        """Восстанавливает ключ из URL. Для чужих URL возвращает None."""
        if not url:
            return None
        prefix = self.public_base_url + "/"
        if not url.startswith(prefix):
            return None
        return url[len(prefix):] or None

    @abstractmethod
    async def upload(
        self,
        file_content: bytes,
        file_name: str,
        content_type: str,
        folder: str,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> MediaFile:
        """Загрузить файл в хранилище."""
        ...

    @abstractmethod
    async def delete(self, key: str) -> bool:
        """Удалить файл из хранилища."""
        ...

    async def delete_by_url(self, url: Optional[str]) -> bool:
        """Удалить объект по его публичному URL."""
        key = self.key_from_url(url)
        if key is None:
            return False
        return await self.delete(key)
