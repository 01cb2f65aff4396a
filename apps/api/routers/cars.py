"""
API роутер для управления автомобилями
"""
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from core.database.session import get_db_session
from domain.entities.user import User
from shared.services.media_storage import MediaStorageClient
from shared.services.upload_rules import CAR_IMAGE_RULE
from apps.api.dependencies import get_current_user, get_media_storage, read_upload
from apps.api.schemas import CarForm, MessageResponse, parse_form
from apps.api.services.car_service_db import CarServiceDB

router = APIRouter(prefix="/cars", tags=["cars"])


def _car_form(make, model, year, vin, license_plate) -> CarForm:
    return parse_form(CarForm, {
        "make": make,
        "model": model,
        "year": year,
        "vin": vin,
        "licensePlate": license_plate,
    })


@router.get("")
async def get_cars(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
    storage: MediaStorageClient = Depends(get_media_storage),
):
    """Автомобили текущего пользователя."""
    cars = await CarServiceDB(db, storage).list_cars(current_user.id)
    return [car.to_dict() for car in cars]


@router.get("/{car_id}")
async def get_car(
    car_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
    storage: MediaStorageClient = Depends(get_media_storage),
):
    """Получение автомобиля по ID."""
    car = await CarServiceDB(db, storage).get_car(current_user.id, car_id)
    return car.to_dict()


@router.post("", status_code=status.HTTP_201_CREATED)
async def add_car(
    make: Optional[str] = Form(None),
    model: Optional[str] = Form(None),
    year: Optional[str] = Form(None),
    vin: Optional[str] = Form(None),
    license_plate: Optional[str] = Form(None, alias="licensePlate"),
    image: Optional[UploadFile] = File(None),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
    storage: MediaStorageClient = Depends(get_media_storage),
):
    """Добавление автомобиля с необязательным фото."""
    form = _car_form(make, model, year, vin, license_plate)
    car = await CarServiceDB(db, storage).add_car(
        current_user.id, form.to_fields(), await read_upload(image, CAR_IMAGE_RULE)
    )
    return car.to_dict()


@router.put("/{car_id}")
async def update_car(
    car_id: str,
    make: Optional[str] = Form(None),
    model: Optional[str] = Form(None),
    year: Optional[str] = Form(None),
    vin: Optional[str] = Form(None),
    license_plate: Optional[str] = Form(None, alias="licensePlate"),
    image: Optional[UploadFile] = File(None),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
    storage: MediaStorageClient = Depends(get_media_storage),
):
    """Обновление автомобиля. Фото заменяется только если передано новое."""
    form = _car_form(make, model, year, vin, license_plate)
    car = await CarServiceDB(db, storage).update_car(
        current_user.id, car_id, form.to_fields(), await read_upload(image, CAR_IMAGE_RULE)
    )
    return car.to_dict()


@router.delete("/{car_id}", response_model=MessageResponse)
async def delete_car(
    car_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
    storage: MediaStorageClient = Depends(get_media_storage),
):
    """Удаление автомобиля вместе с документами."""
    await CarServiceDB(db, storage).delete_car(current_user.id, car_id)
    return {"msg": "Car removed"}
