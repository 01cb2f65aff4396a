"""Правила приёма загружаемых файлов (фото автомобиля, файлы документов)."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Dict, Tuple

from core.config.settings import settings
from core.errors import ValidationFailed


@dataclass(frozen=True)
class UploadRule:
    """Допустимые расширения, MIME-типы и размер для одного вида файлов."""

    folder: str
    param: str
    mime_by_ext: Dict[str, Tuple[str, ...]]
    max_bytes: int
    type_error: str
    max_name_length: int | None = None

    def check(self, file_name: str, content_type: str, size: int) -> None:
        """Проверяет файл до загрузки. При ошибке бросает ValidationFailed с param поля."""
        ext = os.path.splitext(file_name or "")[1].lower()
        allowed = self.mime_by_ext.get(ext)
        if not allowed or (content_type or "").lower() not in allowed:
            raise ValidationFailed.single(self.type_error, self.param)
        if size > self.max_bytes:
            limit_mb = self.max_bytes // (1024 * 1024)
            raise ValidationFailed.single(f"File too large (max {limit_mb}MB)", self.param)
        if self.max_name_length and len(file_name) > self.max_name_length:
            raise ValidationFailed.single(
                f"File name cannot exceed {self.max_name_length} characters", self.param
            )


_IMAGE_MIME = {
    ".jpg": ("image/jpeg", "image/jpg"),
    ".jpeg": ("image/jpeg", "image/jpg"),
    ".png": ("image/png",),
    ".webp": ("image/webp",),
}

CAR_IMAGE_RULE = UploadRule(
    folder="cars",
    param="image",
    mime_by_ext=_IMAGE_MIME,
    max_bytes=settings.car_image_max_bytes,
    type_error="Only image files (jpeg, jpg, png, webp) are allowed!",
)

DOCUMENT_FILE_RULE = UploadRule(
    folder="documents",
    param="file",
    mime_by_ext={
        ".jpg": ("image/jpeg", "image/jpg"),
        ".jpeg": ("image/jpeg", "image/jpg"),
        ".png": ("image/png",),
        ".pdf": ("application/pdf",),
        ".doc": ("application/msword",),
        ".docx": ("application/vnd.openxmlformats-officedocument.wordprocessingml.document",),
    },
    max_bytes=settings.document_max_bytes,
    type_error="Only image, PDF, and Word documents are allowed!",
    max_name_length=100,
)


@dataclass(frozen=True)
class IncomingFile:
    """Файл из multipart-запроса, прочитанный в память."""

    file_name: str
    content_type: str
    content: bytes

    @property
    def size(self) -> int:
        return len(self.content)
