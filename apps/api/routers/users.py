"""
API роутер для регистрации, входа и профиля
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from core.database.session import get_db_session
from domain.entities.user import User
from apps.api.dependencies import get_current_user
from apps.api.schemas import LoginRequest, RegisterRequest, TokenResponse
from apps.api.services.user_service_db import UserServiceDB

router = APIRouter(prefix="/users", tags=["users"])


@router.post("/register", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
async def register_user(
    payload: RegisterRequest,
    db: AsyncSession = Depends(get_db_session)
):
    """Регистрация нового пользователя."""
    token = await UserServiceDB(db).register(payload.username, payload.email, payload.password)
    return {"token": token}


@router.post("/login", response_model=TokenResponse)
async def login_user(
    payload: LoginRequest,
    db: AsyncSession = Depends(get_db_session)
):
    """Вход по email и паролю."""
    token = await UserServiceDB(db).login(payload.email, payload.password)
    return {"token": token}


@router.get("/profile")
async def get_profile(current_user: User = Depends(get_current_user)):
    """Профиль текущего пользователя."""
    return current_user.to_public_dict()
