"""
Главный API роутер CarLedger
"""
from fastapi import APIRouter

from core.config.settings import settings
from apps.api.routers.users import router as users_router
from apps.api.routers.cars import router as cars_router
from apps.api.routers.documents import router as documents_router

# Создаем главный роутер
api_router = APIRouter(prefix=settings.api_prefix)

# Подключаем роутеры
api_router.include_router(users_router)
api_router.include_router(cars_router)
api_router.include_router(documents_router)
