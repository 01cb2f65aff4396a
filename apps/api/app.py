"""
FastAPI приложение CarLedger
"""
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.exceptions import HTTPException as StarletteHTTPException
import time
import uuid

from core.config.settings import settings
from core.database.session import close_database, get_db_session, init_database
from core.errors import ApiError
from core.health.health_check import HealthChecker
from core.logging.logger import logger, setup_logging
from apps.api.schemas import collect_errors
from .main import api_router


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Управление жизненным циклом приложения"""
    setup_logging()
    await init_database(create_tables=True)
    logger.info("API started", environment=settings.environment, version=settings.version)
    yield
    await close_database()
    logger.info("API stopped")


def create_app(use_lifespan: bool = True) -> FastAPI:
    """Создание FastAPI приложения."""
    app = FastAPI(
        title=settings.app_name,
        description="API для учёта автомобилей и их документов",
        version=settings.version,
        debug=settings.debug,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan if use_lifespan else None,
    )

    # Middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Middleware для логирования запросов
    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """Логирование всех HTTP запросов."""
        request_id = str(uuid.uuid4())
        start_time = time.time()

        logger.info(
            "HTTP Request started",
            request_id=request_id,
            method=request.method,
            path=request.url.path,
            client_ip=request.client.host if request.client else None,
            user_agent=request.headers.get("user-agent")
        )

        try:
            response = await call_next(request)

            process_time = time.time() - start_time
            logger.info(
                "HTTP Request completed",
                request_id=request_id,
                status_code=response.status_code,
                process_time=process_time
            )

            # Добавляем заголовки для отслеживания
            response.headers["X-Request-ID"] = request_id
            response.headers["X-Process-Time"] = str(process_time)

            return response

        except Exception as e:
            process_time = time.time() - start_time
            logger.error(
                "HTTP Request failed",
                request_id=request_id,
                error=str(e),
                process_time=process_time
            )
            raise

    # Обработчики ошибок
    @app.exception_handler(ApiError)
    async def api_error_handler(request: Request, exc: ApiError):
        """Ошибки предметной области в формате {"errors": [...]}."""
        log = logger.warning if exc.status_code < 500 else logger.error
        log(
            "API Error",
            error_type=type(exc).__name__,
            status_code=exc.status_code,
            detail=exc.message,
            path=request.url.path
        )
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        """Обработчик HTTP исключений."""
        logger.warning(
            "HTTP Exception",
            status_code=exc.status_code,
            detail=exc.detail,
            path=request.url.path
        )
        return JSONResponse(
            status_code=exc.status_code,
            content={"errors": [{"msg": str(exc.detail)}]},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Обработчик ошибок валидации."""
        errors = collect_errors(exc.errors())
        logger.warning(
            "Validation Error",
            errors=errors,
            path=request.url.path
        )
        return JSONResponse(status_code=400, content={"errors": errors})

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        """Общий обработчик исключений."""
        logger.error(
            "General Exception",
            error=str(exc),
            path=request.url.path,
            exc_info=True
        )
        item = {"msg": "Server Error"}
        if settings.is_development:
            item["error"] = str(exc)
        return JSONResponse(status_code=500, content={"errors": [item]})

    # Подключаем API роутеры
    app.include_router(api_router)

    # Корневой эндпоинт
    @app.get("/")
    async def root():
        """Корневой эндпоинт."""
        return {
            "app": settings.app_name,
            "version": settings.version,
            "status": "running",
            "api": settings.api_prefix,
            "docs": "/docs" if settings.debug else "disabled"
        }

    # Health check
    @app.get("/health")
    async def health_check(db: AsyncSession = Depends(get_db_session)):
        """Проверка состояния приложения."""
        report = await HealthChecker(db).run()
        status_code = 200 if report["status"] == "healthy" else 503
        return JSONResponse(status_code=status_code, content=report)

    return app


# Создаем экземпляр приложения
app = create_app()
