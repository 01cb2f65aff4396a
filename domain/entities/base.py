"""
Базовый файл для всех доменных сущностей
Решает проблему циклических импортов
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy.orm import declarative_base

# Создаем общую Base для всех моделей
Base = declarative_base()


def new_id() -> str:
    """Генерирует идентификатор записи."""
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)
