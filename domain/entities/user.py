"""Модель пользователя."""

from sqlalchemy import Column, String, DateTime
from sqlalchemy.orm import relationship
from .base import Base, new_id, utcnow
from typing import Any, Dict
from enum import Enum


class AuthProvider(str, Enum):
    """Способ входа пользователя."""
    LOCAL = "local"
    GOOGLE = "google"


class UserPlan(str, Enum):
    """Тарифный план."""
    FREE = "Free"
    PRO = "Pro"


class User(Base):
    """Модель пользователя."""

    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=new_id)
    username = Column(String(30), nullable=False)
    email = Column(String(50), unique=True, nullable=False, index=True)
    password = Column(String(255), nullable=True)  # bcrypt-хеш
    provider = Column(String(20), nullable=False, default=AuthProvider.LOCAL.value)
    google_id = Column(String(255), nullable=True)
    profile_picture = Column(String(500), nullable=True)
    plan = Column(String(20), nullable=False, default=UserPlan.FREE.value)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    cars = relationship("Car", back_populates="owner", passive_deletes=True)

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email='{self.email}')>"

    def to_public_dict(self) -> Dict[str, Any]:
        """Профиль без пароля."""
        return {
            "id": self.id,
            "username": self.username,
            "email": self.email,
            "provider": self.provider,
            "googleId": self.google_id,
            "profilePicture": self.profile_picture,
            "plan": self.plan,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }
