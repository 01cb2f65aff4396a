"""
Хранилище данных гаража для клиентских представлений.

Загрузка идёт через QueryCache, мутации инвалидируют связанные ключи
и сопровождаются уведомлениями. Удаление автомобиля оптимистичное.
"""

from typing import Any, Awaitable, Callable, Dict, List, Optional

import httpx

from core.logging.logger import logger

from .api_client import ApiRequestError, FileUpload
from .notifications import Notifier
from .session import Session

CARS_KEY = ("cars",)
PROFILE_KEY = ("profile",)


def car_key(car_id: str):
    return ("cars", car_id)


def documents_key(car_id: str):
    return ("documents", car_id)


class GarageStore:
    """Автомобили, документы и профиль текущего пользователя."""

    def __init__(self, session: Session, notifier: Optional[Notifier] = None):
        self.session = session
        self.cache = session.cache
        self.api = session.api
        self.notifier = notifier or Notifier()
        self.field_errors: Dict[str, str] = {}

    # Загрузка

    async def load_profile(self) -> Dict[str, Any]:
        return await self.cache.fetch(PROFILE_KEY, lambda: self.session.call(self.api.get_profile))

    async def load_cars(self) -> List[Dict[str, Any]]:
        return await self.cache.fetch(CARS_KEY, lambda: self.session.call(self.api.get_cars))

    async def load_car(self, car_id: str) -> Dict[str, Any]:
        return await self.cache.fetch(
            car_key(car_id), lambda: self.session.call(self.api.get_car, car_id)
        )

    async def load_documents(self, car_id: str) -> List[Dict[str, Any]]:
        return await self.cache.fetch(
            documents_key(car_id), lambda: self.session.call(self.api.get_documents, car_id)
        )

    # Мутации

    async def _mutate(self, failure_message: str, fn: Callable[..., Awaitable[Any]], *args: Any) -> Any:
        self.field_errors = {}
        try:
            return await self.session.call(fn, *args)
        except ApiRequestError as e:
            self.field_errors = e.field_errors
            self.notifier.error_from(e, failure_message)
            raise
        except httpx.TransportError as e:
            logger.warning("Mutation failed", error=str(e))
            self.notifier.error(failure_message)
            raise

    async def add_car(self, fields: Dict[str, Any], image: Optional[FileUpload] = None) -> Dict[str, Any]:
        car = await self._mutate(
            "Failed to add car. Please try again.", self.api.add_car, fields, image
        )
        self.cache.invalidate(CARS_KEY)
        self.notifier.success("Car added successfully")
        return car

    async def update_car(
        self, car_id: str, fields: Dict[str, Any], image: Optional[FileUpload] = None
    ) -> Dict[str, Any]:
        car = await self._mutate(
            "Failed to update car. Please try again.", self.api.update_car, car_id, fields, image
        )
        self.cache.invalidate(CARS_KEY)
        self.cache.set(car_key(car_id), car)
        self.notifier.success("Car updated successfully")
        return car

    async def delete_car(self, car_id: str) -> None:
        """Сразу убирает автомобиль из списка; при ошибке список восстанавливается."""
        previous = self.cache.snapshot(CARS_KEY)
        if previous is not None:
            self.cache.set(CARS_KEY, [car for car in previous if car.get("id") != car_id])

        try:
            await self._mutate("Failed to delete car. Please try again.", self.api.delete_car, car_id)
        except Exception:
            # После выхода из сессии кэш уже пуст
            if self.session.is_authenticated:
                self.cache.rollback(CARS_KEY, previous)
            raise

        self.cache.remove(car_key(car_id))
        self.cache.remove(documents_key(car_id))
        self.notifier.success("Car deleted successfully")

    async def add_document(
        self, car_id: str, fields: Dict[str, Any], file: Optional[FileUpload] = None
    ) -> Dict[str, Any]:
        data = dict(fields, carId=car_id)
        document = await self._mutate(
            "Failed to add document. Please try again.", self.api.add_document, data, file
        )
        self.cache.invalidate(documents_key(car_id))
        self.notifier.success(f"{document.get('title') or 'Document'} was added successfully")
        return document

    async def update_document(
        self,
        car_id: str,
        document_id: str,
        fields: Dict[str, Any],
        file: Optional[FileUpload] = None,
        remove_file: bool = False,
    ) -> Dict[str, Any]:
        data = dict(fields, carId=car_id)
        document = await self._mutate(
            "Failed to update document. Please try again.",
            self.api.update_document, document_id, data, file, remove_file,
        )
        self.cache.invalidate(documents_key(car_id))
        self.notifier.success(f"{document.get('title') or 'Document'} was updated successfully")
        return document

    async def delete_document(self, car_id: str, document_id: str) -> None:
        title = None
        for document in self.cache.get(documents_key(car_id)) or []:
            if document.get("id") == document_id:
                title = document.get("title")
        await self._mutate(
            "Failed to delete document. Please try again.", self.api.delete_document, document_id
        )
        self.cache.invalidate(documents_key(car_id))
        self.notifier.success(f"{title or 'Document'} was deleted successfully")
