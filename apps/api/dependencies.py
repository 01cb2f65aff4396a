"""
Зависимости FastAPI: текущий пользователь, хранилище, загруженные файлы
"""
from typing import Optional

import jwt
from fastapi import Depends, UploadFile
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from core.auth.security import user_id_from_token
from core.database.session import get_db_session
from core.errors import Unauthorized
from core.logging.logger import logger
from domain.entities.user import User
from shared.services.media_storage import MediaStorageClient, get_media_storage_client
from shared.services.upload_rules import IncomingFile, UploadRule
from apps.api.services.user_service_db import UserServiceDB

security = HTTPBearer(auto_error=False)

TOKEN_FAILED = "Not authorized, token failed"


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: AsyncSession = Depends(get_db_session),
) -> User:
    """Пользователь из Bearer JWT токена."""
    if credentials is None or not credentials.credentials:
        raise Unauthorized()

    try:
        user_id = user_id_from_token(credentials.credentials)
    except jwt.InvalidTokenError as e:
        logger.info("Rejected bearer token", reason=str(e))
        raise Unauthorized(TOKEN_FAILED)

    user = await UserServiceDB(db).get_user(user_id)
    if user is None:
        logger.info("Token for unknown user", user_id=user_id)
        raise Unauthorized(TOKEN_FAILED)
    return user


def get_media_storage() -> MediaStorageClient:
    """Клиент объектного хранилища."""
    return get_media_storage_client()


UPLOAD_CHUNK_SIZE = 1024 * 1024


async def read_upload(upload: Optional[UploadFile], rule: UploadRule) -> Optional[IncomingFile]:
    """Читает файл из формы. Поле без файла считается отсутствующим.

    Читается не больше rule.max_bytes + 1 байт: этого хватает, чтобы
    проверка размера отклонила файл, не загружая его целиком в память.
    """
    if upload is None or not upload.filename:
        return None
    limit = rule.max_bytes + 1
    chunks = []
    received = 0
    while received < limit:
        chunk = await upload.read(min(UPLOAD_CHUNK_SIZE, limit - received))
        if not chunk:
            break
        chunks.append(chunk)
        received += len(chunk)
    if received >= limit:
        logger.info("Upload exceeds size limit", file_name=upload.filename, limit=rule.max_bytes)
    return IncomingFile(
        file_name=upload.filename,
        content_type=upload.content_type or "application/octet-stream",
        content=b"".join(chunks),
    )
