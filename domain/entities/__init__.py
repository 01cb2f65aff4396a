"""
Модуль доменных сущностей CarLedger
"""

# Импортируем модели в правильном порядке
from .base import Base
from .user import User, AuthProvider, UserPlan
from .car import Car
from .document import Document, DocumentType

__all__ = [
    "Base",
    "User",
    "AuthProvider",
    "UserPlan",
    "Car",
    "Document",
    "DocumentType",
]
