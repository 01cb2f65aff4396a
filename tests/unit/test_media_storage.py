"""Unit тесты медиа-хранилища и правил загрузки."""

import io
import re
from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError
from fastapi import UploadFile
from starlette.datastructures import Headers

from apps.api.dependencies import read_upload
from core.config.settings import settings
from core.errors import UpstreamStorageError, ValidationFailed
from shared.services.media_storage.s3_client import S3MediaStorageClient
from shared.services.upload_rules import CAR_IMAGE_RULE, DOCUMENT_FILE_RULE
from tests.utils.test_helpers import InMemoryMediaStorage, TEST_BUCKET_URL

PUBLIC_URL = "https://cdn.example.com/garage"


@pytest.fixture
def s3_settings(monkeypatch):
    monkeypatch.setattr(settings, "media_storage_provider", "s3")
    monkeypatch.setattr(settings, "s3_bucket", "garage")
    monkeypatch.setattr(settings, "media_public_base_url", PUBLIC_URL)


@pytest.fixture
def boto_client():
    return MagicMock()


class TestKeys:
    """Ключи объектов и восстановление ключа из URL."""

    def test_build_key_format(self):
        key = InMemoryMediaStorage.build_key("cars", "Photo.JPG")
        assert re.fullmatch(r"cars/\d{13}-\d{1,10}\.jpg", key)

    def test_key_from_url(self):
        storage = InMemoryMediaStorage()
        assert storage.key_from_url(f"{TEST_BUCKET_URL}/documents/1-2.pdf") == "documents/1-2.pdf"
        assert storage.key_from_url("https://elsewhere.example.com/documents/1-2.pdf") is None
        assert storage.key_from_url(None) is None

    @pytest.mark.asyncio
    async def test_delete_by_foreign_url_is_ignored(self):
        storage = InMemoryMediaStorage()
        assert await storage.delete_by_url("https://elsewhere.example.com/cars/1.jpg") is False
        assert storage.deleted == []


class TestS3MediaStorageClient:
    """Тесты S3 клиента с подменённым boto3."""

    @pytest.mark.asyncio
    async def test_upload_puts_object_and_returns_public_url(self, s3_settings, boto_client):
        client = S3MediaStorageClient(provider="s3", client=boto_client)
        media = await client.upload(b"data", "car.png", "image/png", folder="cars")

        boto_client.upload_fileobj.assert_called_once()
        args, kwargs = boto_client.upload_fileobj.call_args
        assert args[1] == "garage"
        assert args[2] == media.key
        assert kwargs["ExtraArgs"] == {"ContentType": "image/png"}
        assert media.url == f"{PUBLIC_URL}/{media.key}"
        assert media.size == 4

    @pytest.mark.asyncio
    async def test_upload_failure_raises_storage_error(self, s3_settings, boto_client):
        boto_client.upload_fileobj.side_effect = ClientError(
            {"Error": {"Code": "500", "Message": "boom"}}, "PutObject"
        )
        client = S3MediaStorageClient(provider="s3", client=boto_client)
        with pytest.raises(UpstreamStorageError):
            await client.upload(b"data", "car.png", "image/png", folder="cars")

    @pytest.mark.asyncio
    async def test_delete_failure_returns_false(self, s3_settings, boto_client):
        boto_client.delete_object.side_effect = ClientError(
            {"Error": {"Code": "AccessDenied", "Message": "denied"}}, "DeleteObject"
        )
        client = S3MediaStorageClient(provider="s3", client=boto_client)
        assert await client.delete_by_url(f"{PUBLIC_URL}/cars/1-2.jpg") is False
        boto_client.delete_object.assert_called_once_with(Bucket="garage", Key="cars/1-2.jpg")

    def test_unknown_provider_rejected(self, boto_client):
        with pytest.raises(ValueError):
            S3MediaStorageClient(provider="ftp", client=boto_client)


class TestUploadRules:
    """Проверки файлов до загрузки."""

    @pytest.mark.parametrize("name, mime", [
        ("car.jpg", "image/jpeg"),
        ("car.jpeg", "image/jpeg"),
        ("car.png", "image/png"),
        ("car.webp", "image/webp"),
    ])
    def test_car_image_accepted(self, name, mime):
        CAR_IMAGE_RULE.check(name, mime, 1024)

    @pytest.mark.parametrize("name, mime", [
        ("car.gif", "image/gif"),
        ("car.png", "application/pdf"),
        ("car", "image/png"),
    ])
    def test_car_image_rejected(self, name, mime):
        with pytest.raises(ValidationFailed) as exc_info:
            CAR_IMAGE_RULE.check(name, mime, 1024)
        assert exc_info.value.errors[0]["param"] == "image"

    def test_car_image_size_limit(self):
        CAR_IMAGE_RULE.check("car.jpg", "image/jpeg", 5 * 1024 * 1024)
        with pytest.raises(ValidationFailed):
            CAR_IMAGE_RULE.check("car.jpg", "image/jpeg", 5 * 1024 * 1024 + 1)

    def test_document_file_rules(self):
        DOCUMENT_FILE_RULE.check(
            "policy.docx",
            "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
            2048,
        )
        DOCUMENT_FILE_RULE.check("policy.doc", "application/msword", 2048)
        with pytest.raises(ValidationFailed):
            DOCUMENT_FILE_RULE.check("policy.txt", "text/plain", 10)
        with pytest.raises(ValidationFailed):
            DOCUMENT_FILE_RULE.check("a" * 97 + ".pdf", "application/pdf", 10)
        with pytest.raises(ValidationFailed):
            DOCUMENT_FILE_RULE.check("policy.pdf", "application/pdf", 10 * 1024 * 1024 + 1)


class CountingStream(io.BytesIO):
    def __init__(self, data: bytes):
        super().__init__(data)
        self.bytes_read = 0

    def read(self, size=-1):
        chunk = super().read(size)
        self.bytes_read += len(chunk)
        return chunk


def _upload(name: str, content: bytes, mime: str):
    stream = CountingStream(content)
    upload = UploadFile(file=stream, filename=name, headers=Headers({"content-type": mime}))
    return upload, stream


class TestReadUpload:
    """Чтение файла из multipart-формы."""

    @pytest.mark.asyncio
    async def test_small_file_read_whole(self):
        upload, _ = _upload("policy.pdf", b"%PDF-1.4 test", "application/pdf")
        incoming = await read_upload(upload, DOCUMENT_FILE_RULE)
        assert incoming.content == b"%PDF-1.4 test"
        assert incoming.content_type == "application/pdf"

    @pytest.mark.asyncio
    async def test_oversized_file_read_only_past_limit(self):
        limit = CAR_IMAGE_RULE.max_bytes
        upload, stream = _upload("car.jpg", b"\xff" * (limit * 3), "image/jpeg")

        incoming = await read_upload(upload, CAR_IMAGE_RULE)

        assert incoming.size == limit + 1
        assert stream.bytes_read == limit + 1
        with pytest.raises(ValidationFailed) as exc_info:
            CAR_IMAGE_RULE.check(incoming.file_name, incoming.content_type, incoming.size)
        assert exc_info.value.errors == [{"msg": "File too large (max 5MB)", "param": "image"}]

    @pytest.mark.asyncio
    async def test_empty_field_is_absent(self):
        upload, _ = _upload("", b"", "application/octet-stream")
        assert await read_upload(upload, CAR_IMAGE_RULE) is None
        assert await read_upload(None, CAR_IMAGE_RULE) is None
