"""
API роутер для документов автомобилей
"""
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from core.database.session import get_db_session
from domain.entities.user import User
from shared.services.media_storage import MediaStorageClient
from shared.services.upload_rules import DOCUMENT_FILE_RULE
from apps.api.dependencies import get_current_user, get_media_storage, read_upload
from apps.api.schemas import DocumentForm, DocumentUpdateForm, MessageResponse, parse_form
from apps.api.services.document_service_db import DocumentServiceDB

router = APIRouter(prefix="/documents", tags=["documents"])


@router.post("", status_code=status.HTTP_201_CREATED)
async def add_document(
    type: Optional[str] = Form(None),
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    car_id: Optional[str] = Form(None, alias="carId"),
    expiry_date: Optional[str] = Form(None, alias="expiryDate"),
    file: Optional[UploadFile] = File(None),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
    storage: MediaStorageClient = Depends(get_media_storage),
):
    """Добавление документа к автомобилю."""
    form = parse_form(DocumentForm, {
        "type": type,
        "title": title,
        "description": description,
        "carId": car_id,
        "expiryDate": expiry_date,
    })
    document = await DocumentServiceDB(db, storage).add_document(
        current_user.id, form.car_id, form.to_fields(), await read_upload(file, DOCUMENT_FILE_RULE)
    )
    return document.to_dict()


@router.get("/car/{car_id}")
async def get_documents(
    car_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
    storage: MediaStorageClient = Depends(get_media_storage),
):
    """Документы автомобиля."""
    documents = await DocumentServiceDB(db, storage).list_documents(current_user.id, car_id)
    return [document.to_dict() for document in documents]


@router.get("/{document_id}")
async def get_document(
    document_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
    storage: MediaStorageClient = Depends(get_media_storage),
):
    """Получение документа по ID."""
    document = await DocumentServiceDB(db, storage).get_document(current_user.id, document_id)
    return document.to_dict()


@router.put("/{document_id}")
async def update_document(
    document_id: str,
    type: Optional[str] = Form(None),
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    car_id: Optional[str] = Form(None, alias="carId"),
    expiry_date: Optional[str] = Form(None, alias="expiryDate"),
    remove_file: Optional[str] = Form(None, alias="removeFile"),
    file: Optional[UploadFile] = File(None),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
    storage: MediaStorageClient = Depends(get_media_storage),
):
    """Обновление документа, замена или удаление файла."""
    form = parse_form(DocumentUpdateForm, {
        "type": type,
        "title": title,
        "description": description,
        "carId": car_id,
        "expiryDate": expiry_date,
        "removeFile": remove_file,
    })
    document = await DocumentServiceDB(db, storage).update_document(
        current_user.id,
        document_id,
        form.car_id,
        form.to_fields(),
        remove_file=form.remove_file,
        file=await read_upload(file, DOCUMENT_FILE_RULE),
    )
    return document.to_dict()


@router.delete("/{document_id}", response_model=MessageResponse)
async def delete_document(
    document_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
    storage: MediaStorageClient = Depends(get_media_storage),
):
    """Удаление документа и его файла."""
    await DocumentServiceDB(db, storage).delete_document(current_user.id, document_id)
    return {"msg": "Document removed"}
