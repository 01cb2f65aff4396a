"""
Сервис для работы с документами автомобилей через базу данных
"""

from typing import Any, Dict, List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from domain.entities.car import Car
from domain.entities.document import Document
from core.errors import Forbidden, NotFound
from core.logging.logger import logger
from shared.services.media_storage import MediaStorageClient
from shared.services.upload_rules import DOCUMENT_FILE_RULE, IncomingFile


class DocumentServiceDB:
    """Сервис для работы с документами пользователя."""

    def __init__(self, db_session: AsyncSession, storage: MediaStorageClient):
        self.db = db_session
        self.storage = storage

    async def list_documents(self, user_id: str, car_id: str) -> List[Document]:
        """Документы автомобиля, принадлежащие пользователю, новые первыми."""
        query = (
            select(Document)
            .where(Document.car_id == car_id, Document.user_id == user_id)
            .order_by(Document.created_at.desc())
        )
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def get_document(self, user_id: str, document_id: str, action: str = "view") -> Document:
        """Загружает документ и проверяет владельца."""
        result = await self.db.execute(select(Document).where(Document.id == document_id))
        document = result.scalar_one_or_none()
        if document is None:
            raise NotFound("Document not found")
        if document.user_id != user_id:
            logger.warning(
                "Foreign document access",
                document_id=document_id,
                user_id=user_id,
                action=action,
            )
            raise Forbidden(f"Not authorized to {action} this document")
        return document

    async def add_document(
        self,
        user_id: str,
        car_id: str,
        fields: Dict[str, Any],
        file: Optional[IncomingFile] = None,
    ) -> Document:
        """Создаёт документ для автомобиля пользователя."""
        if file is not None:
            DOCUMENT_FILE_RULE.check(file.file_name, file.content_type, file.size)

        result = await self.db.execute(select(Car).where(Car.id == car_id))
        car = result.scalar_one_or_none()
        if car is None:
            raise NotFound("Car not found")
        if car.user_id != user_id:
            raise Forbidden("Not authorized to add documents to this car")

        document = Document(user_id=user_id, car_id=car_id, **fields)
        uploaded_url = None
        if file is not None:
            uploaded_url = await self._attach(document, file)

        self.db.add(document)
        await self._commit(uploaded_url)
        await self.db.refresh(document)

        logger.info("Document created", document_id=document.id, car_id=car_id, user_id=user_id)
        return document

    async def update_document(
        self,
        user_id: str,
        document_id: str,
        car_id: str,
        fields: Dict[str, Any],
        remove_file: bool = False,
        file: Optional[IncomingFile] = None,
    ) -> Document:
        """
        Заменяет поля документа.

        Новый файл вытесняет старый и имеет приоритет над remove_file.
        remove_file без нового файла удаляет вложение и очищает его метаданные.
        """
        if file is not None:
            DOCUMENT_FILE_RULE.check(file.file_name, file.content_type, file.size)

        document = await self.get_document(user_id, document_id, action="update")
        if document.car_id != car_id:
            raise NotFound("Document not found")

        stale_url = None
        uploaded_url = None
        if file is not None:
            stale_url = document.file_url
            uploaded_url = await self._attach(document, file)
        elif remove_file and document.has_file:
            stale_url = document.file_url
            document.clear_file()

        for name, value in fields.items():
            setattr(document, name, value)

        await self._commit(uploaded_url)
        await self.db.refresh(document)

        if stale_url:
            await self.storage.delete_by_url(stale_url)

        logger.info(
            "Document updated",
            document_id=document.id,
            user_id=user_id,
            file_replaced=bool(uploaded_url),
            file_removed=bool(stale_url and not uploaded_url),
        )
        return document

    async def delete_document(self, user_id: str, document_id: str) -> None:
        """Удаляет документ и его файл."""
        document = await self.get_document(user_id, document_id, action="delete")
        file_url = document.file_url

        await self.db.delete(document)
        try:
            await self.db.commit()
        except SQLAlchemyError:
            await self.db.rollback()
            raise

        if file_url:
            await self.storage.delete_by_url(file_url)

        logger.info("Document deleted", document_id=document_id, user_id=user_id)

    async def _attach(self, document: Document, file: IncomingFile) -> str:
        """Загружает файл и заполняет все четыре поля метаданных."""
        media = await self.storage.upload(
            file_content=file.content,
            file_name=file.file_name,
            content_type=file.content_type,
            folder=DOCUMENT_FILE_RULE.folder,
        )
        document.file_url = media.url
        document.file_name = file.file_name
        document.file_type = media.mime_type
        document.file_size = media.size
        return media.url

    async def _commit(self, uploaded_url: Optional[str]) -> None:
        try:
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error("Database error while saving document", error=str(e))
            if uploaded_url:
                await self.storage.delete_by_url(uploaded_url)
            raise
