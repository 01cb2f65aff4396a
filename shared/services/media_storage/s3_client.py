"""S3-совместимый клиент медиа-хранилища (AWS, MinIO и т.д.)."""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from io import BytesIO
from typing import Any, Dict, Optional

import boto3
from botocore.client import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

from core.config.settings import settings
from core.errors import UpstreamStorageError
from core.logging.logger import logger

from .base import MediaFile, MediaStorageClient


def _s3_client(provider: str):
    if provider == "minio":
        return boto3.client(
            "s3",
            endpoint_url=settings.minio_endpoint,
            aws_access_key_id=settings.minio_access_key,
            aws_secret_access_key=settings.minio_secret_key,
            config=BotoConfig(signature_version="s3v4"),
            region_name="us-east-1",
        )
    if provider == "s3":
        if not settings.s3_bucket:
            raise ValueError("S3 storage config incomplete: set S3_BUCKET (and S3_REGION / credentials)")
        return boto3.client(
            "s3",
            endpoint_url=settings.s3_endpoint,
            aws_access_key_id=settings.s3_access_key,
            aws_secret_access_key=settings.s3_secret_key,
            config=BotoConfig(signature_version="s3v4"),
            region_name=settings.s3_region or "us-east-1",
        )
    raise ValueError(f"Unknown S3 provider: {provider}")


def _run_sync(fn, *args, **kwargs):
    return asyncio.to_thread(fn, *args, **kwargs)


class S3MediaStorageClient(MediaStorageClient):
    """Хранилище в S3-совместимом бакете."""

    def __init__(self, provider: str = "s3", client: Any = None) -> None:
        if provider not in ("minio", "s3"):
            raise ValueError(f"provider must be minio|s3, got {provider}")
        super().__init__(settings.public_base_url)
        self._provider = provider
        self._client = client or _s3_client(provider)
        self._bucket = settings.bucket_name

    async def upload(
        self,
        file_content: bytes,
        file_name: str,
        content_type: str,
        folder: str,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> MediaFile:
        key = self.build_key(folder, file_name)
        buf = BytesIO(file_content)
        try:
            await _run_sync(
                self._client.upload_fileobj,
                buf,
                self._bucket,
                key,
                ExtraArgs={"ContentType": content_type or "application/octet-stream"},
            )
        except (BotoCoreError, ClientError) as e:
            logger.error("S3 upload failed", key=key, bucket=self._bucket, error=str(e))
            raise UpstreamStorageError() from e

        logger.debug("S3 upload", key=key, size=len(file_content), bucket=self._bucket)
        return MediaFile(
            key=key,
            url=self.get_url(key),
            size=len(file_content),
            mime_type=content_type or "application/octet-stream",
            original_name=file_name,
            uploaded_at=datetime.now(timezone.utc),
            metadata=dict(metadata or {}, folder=folder),
        )

    async def delete(self, key: str) -> bool:
        try:
            await _run_sync(
                self._client.delete_object, Bucket=self._bucket, Key=key
            )
            logger.debug("S3 delete", key=key, bucket=self._bucket)
            return True
        except (BotoCoreError, ClientError) as e:
            logger.warning("S3 delete failed", key=key, error=str(e))
            return False
