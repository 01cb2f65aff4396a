"""Модель документов автомобиля (страховка, регистрация, налог и пр.)."""

from sqlalchemy import Column, Integer, String, Date, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from enum import Enum
from typing import Any, Dict

from .base import Base, new_id, utcnow


class DocumentType(str, Enum):
    """Типы документов."""
    INSURANCE = "insurance"
    REGISTRATION = "registration"
    TAX = "tax"
    OTHER = "other"


class Document(Base):
    """Документ, привязанный к автомобилю и его владельцу."""

    __tablename__ = "documents"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    car_id = Column(String(36), ForeignKey("cars.id", ondelete="CASCADE"), nullable=False, index=True)
    type = Column(
        String(20),
        nullable=False,
        comment="insurance | registration | tax | other",
    )
    title = Column(String(100), nullable=False)
    description = Column(String(500), nullable=True)
    expiry_date = Column(Date, nullable=True)
    file_url = Column(String(500), nullable=True, comment="Публичный URL файла в S3")
    file_name = Column(String(255), nullable=True)
    file_type = Column(String(100), nullable=True)
    file_size = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)

    car = relationship("Car", back_populates="documents")

    def __repr__(self) -> str:
        return f"<Document(id={self.id}, type='{self.type}', car_id={self.car_id})>"

    @property
    def has_file(self) -> bool:
        return bool(self.file_url)

    def clear_file(self) -> None:
        """Сбрасывает все поля файла разом."""
        self.file_url = None
        self.file_name = None
        self.file_type = None
        self.file_size = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "user": self.user_id,
            "car": self.car_id,
            "type": self.type,
            "title": self.title,
            "description": self.description,
            "expiryDate": self.expiry_date.isoformat() if self.expiry_date else None,
            "fileUrl": self.file_url,
            "fileName": self.file_name,
            "fileType": self.file_type,
            "fileSize": self.file_size,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }
