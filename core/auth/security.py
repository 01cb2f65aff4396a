"""
Хеширование паролей и JWT токены
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import bcrypt
import jwt

from core.config.settings import settings

# bcrypt учитывает только первые 72 байта пароля
_BCRYPT_MAX_BYTES = 72


def _password_bytes(password: str) -> bytes:
    return password.encode("utf-8")[:_BCRYPT_MAX_BYTES]


def hash_password(password: str) -> str:
    """Хеширует пароль bcrypt со случайной солью."""
    return bcrypt.hashpw(_password_bytes(password), bcrypt.gensalt(rounds=10)).decode("utf-8")


def verify_password(password: str, password_hash: Optional[str]) -> bool:
    """Проверяет пароль против сохранённого хеша."""
    if not password_hash:
        return False
    try:
        return bcrypt.checkpw(_password_bytes(password), password_hash.encode("utf-8"))
    except ValueError:
        # Повреждённый или не-bcrypt хеш
        return False


def create_access_token(user_id: str, expires_minutes: Optional[int] = None) -> str:
    """Создание JWT токена для пользователя"""
    now = datetime.now(timezone.utc)
    expire = now + timedelta(minutes=expires_minutes or settings.jwt_expire_minutes)

    payload = {
        "sub": str(user_id),
        "user": {"id": str(user_id)},
        "iat": now,
        "exp": expire,
    }
    return jwt.encode(payload, settings.secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> Dict[str, Any]:
    """Проверка и декодирование JWT токена.

    Raises:
        jwt.InvalidTokenError: токен повреждён, просрочен или подписан чужим ключом
    """
    payload = jwt.decode(
        token,
        settings.secret_key,
        algorithms=[settings.jwt_algorithm],
        options={"require": ["exp", "sub"]},
    )
    return payload


def user_id_from_token(token: str) -> str:
    """Возвращает ID пользователя из токена."""
    payload = decode_access_token(token)
    user = payload.get("user") or {}
    user_id = user.get("id") or payload.get("sub")
    if not user_id:
        raise jwt.InvalidTokenError("Token has no subject")
    return str(user_id)
