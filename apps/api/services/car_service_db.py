"""
Сервис для работы с автомобилями через базу данных
"""

from typing import Any, Dict, List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from domain.entities.car import Car
from domain.entities.base import utcnow
from domain.entities.document import Document
from core.errors import Forbidden, NotFound
from core.logging.logger import logger
from shared.services.media_storage import MediaStorageClient
from shared.services.upload_rules import CAR_IMAGE_RULE, IncomingFile


class CarServiceDB:
    """Сервис для работы с автомобилями пользователя."""

    def __init__(self, db_session: AsyncSession, storage: MediaStorageClient):
        self.db = db_session
        self.storage = storage

    async def list_cars(self, user_id: str) -> List[Car]:
        """Автомобили пользователя, новые первыми."""
        query = (
            select(Car)
            .where(Car.user_id == user_id)
            .order_by(Car.created_at.desc())
        )
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def get_car(self, user_id: str, car_id: str, action: str = "view") -> Car:
        """Загружает автомобиль и проверяет владельца."""
        result = await self.db.execute(select(Car).where(Car.id == car_id))
        car = result.scalar_one_or_none()
        if car is None:
            raise NotFound("Car not found")
        if car.user_id != user_id:
            logger.warning("Foreign car access", car_id=car_id, user_id=user_id, action=action)
            raise Forbidden(f"Not authorized to {action} this car")
        return car

    async def add_car(
        self,
        user_id: str,
        fields: Dict[str, Any],
        image: Optional[IncomingFile] = None,
    ) -> Car:
        """Создаёт автомобиль. Фото загружается в хранилище до записи в БД."""
        if image is not None:
            CAR_IMAGE_RULE.check(image.file_name, image.content_type, image.size)

        car = Car(user_id=user_id, **fields)
        uploaded_url = None
        if image is not None:
            uploaded_url = await self._upload_image(image)
            car.image = uploaded_url

        self.db.add(car)
        await self._commit(uploaded_url)
        await self.db.refresh(car)

        logger.info("Car created", car_id=car.id, user_id=user_id)
        return car

    async def update_car(
        self,
        user_id: str,
        car_id: str,
        fields: Dict[str, Any],
        image: Optional[IncomingFile] = None,
    ) -> Car:
        """Заменяет поля автомобиля. Новое фото вытесняет старое."""
        if image is not None:
            CAR_IMAGE_RULE.check(image.file_name, image.content_type, image.size)

        car = await self.get_car(user_id, car_id, action="update")

        previous_image = None
        uploaded_url = None
        if image is not None:
            uploaded_url = await self._upload_image(image)
            previous_image = car.image
            car.image = uploaded_url

        for name, value in fields.items():
            setattr(car, name, value)
        car.updated_at = utcnow()

        await self._commit(uploaded_url)
        await self.db.refresh(car)

        if previous_image:
            await self.storage.delete_by_url(previous_image)

        logger.info("Car updated", car_id=car.id, user_id=user_id, image_replaced=bool(uploaded_url))
        return car

    async def delete_car(self, user_id: str, car_id: str) -> None:
        """Удаляет автомобиль вместе с его документами и файлами."""
        car = await self.get_car(user_id, car_id, action="delete")

        result = await self.db.execute(select(Document).where(Document.car_id == car.id))
        documents = list(result.scalars().all())
        file_urls = [doc.file_url for doc in documents if doc.file_url]
        if car.image:
            file_urls.append(car.image)

        for document in documents:
            await self.db.delete(document)
        await self.db.delete(car)
        try:
            await self.db.commit()
        except SQLAlchemyError:
            await self.db.rollback()
            raise

        for url in file_urls:
            await self.storage.delete_by_url(url)

        logger.info("Car deleted", car_id=car_id, user_id=user_id, documents=len(documents))

    async def _upload_image(self, image: IncomingFile) -> str:
        media = await self.storage.upload(
            file_content=image.content,
            file_name=image.file_name,
            content_type=image.content_type,
            folder=CAR_IMAGE_RULE.folder,
        )
        return media.url

    async def _commit(self, uploaded_url: Optional[str]) -> None:
        """Фиксирует изменения. При сбое удаляет только что загруженный файл."""
        try:
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error("Database error while saving car", error=str(e))
            if uploaded_url:
                await self.storage.delete_by_url(uploaded_url)
            raise
