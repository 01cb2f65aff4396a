"""Модель автомобиля."""

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from .base import Base, new_id, utcnow
from typing import Any, Dict


class Car(Base):
    """Автомобиль, принадлежащий одному пользователю."""

    __tablename__ = "cars"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    make = Column(String(30), nullable=False)
    model = Column(String(30), nullable=False)
    year = Column(Integer, nullable=False)
    vin = Column(String(17), nullable=True)
    license_plate = Column(String(10), nullable=False)
    image = Column(String(500), nullable=True, comment="Публичный URL фото в S3")
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    owner = relationship("User", back_populates="cars")
    documents = relationship("Document", back_populates="car", passive_deletes=True)

    def __repr__(self) -> str:
        return f"<Car(id={self.id}, {self.make} {self.model}, plate='{self.license_plate}')>"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "user": self.user_id,
            "make": self.make,
            "model": self.model,
            "year": self.year,
            "vin": self.vin,
            "licensePlate": self.license_plate,
            "image": self.image,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }
