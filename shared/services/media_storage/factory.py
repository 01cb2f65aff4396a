"""Фабрика провайдеров медиа-хранилища."""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from core.config.settings import settings
from core.logging.logger import logger

from .base import MediaStorageClient
from .s3_client import S3MediaStorageClient


@lru_cache(maxsize=None)
def _client_for(provider: str) -> MediaStorageClient:
    return S3MediaStorageClient(provider=provider)


def get_media_storage_client(provider_override: Optional[str] = None) -> MediaStorageClient:
    """
    Возвращает клиент хранилища.

    provider_override: "minio" | "s3", используется вместо настроек.
    Иначе берётся MEDIA_STORAGE_PROVIDER из settings.
    """
    base = (settings.media_storage_provider or "s3").strip().lower()
    provider = (provider_override or base).strip().lower()
    logger.debug(f"Media storage provider: {provider}")

    if provider in ("minio", "s3"):
        return _client_for(provider)

    raise ValueError(f"Unknown media storage provider: {provider}")
