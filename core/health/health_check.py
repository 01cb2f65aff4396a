"""Проверка здоровья системы - подключения к БД."""

import time
from typing import Any, Dict, List

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from core.config.settings import settings
from core.logging.logger import logger


def _safe_database_host() -> str:
    url = settings.database_url
    return url.split('@')[1] if '@' in url else 'local'


class HealthChecker:
    """Проверка доступности критических сервисов."""

    def __init__(self, db_session: AsyncSession):
        self.db = db_session

    async def check_database(self) -> Dict[str, Any]:
        """Проверка подключения к БД."""
        try:
            result = await self.db.execute(text("SELECT 1"))
            if result.scalar() != 1:
                raise SQLAlchemyError("Unexpected database response")
            return {
                'service': 'database',
                'status': 'healthy',
                'url': _safe_database_host(),
            }
        except SQLAlchemyError as e:
            logger.error("Database health check failed", error=str(e))
            return {
                'service': 'database',
                'status': 'unhealthy',
                'message': f'Database connection failed: {e}',
                'url': _safe_database_host(),
            }

    async def run(self) -> Dict[str, Any]:
        """Сводный статус всех проверок."""
        checks: List[Dict[str, Any]] = [await self.check_database()]
        healthy = all(check['status'] == 'healthy' for check in checks)
        return {
            'status': 'healthy' if healthy else 'unhealthy',
            'timestamp': time.time(),
            'version': settings.version,
            'checks': checks,
        }
