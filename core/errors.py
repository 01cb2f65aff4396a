"""Ошибки API CarLedger.

Все ошибки сериализуются в единый формат::

    {"errors": [{"msg": "...", "param": "..."}]}
"""

from typing import Any, Dict, List, Optional


class ApiError(Exception):
    """Базовая ошибка API с HTTP-статусом и списком ошибок."""

    status_code = 500
    default_message = "Server Error"

    def __init__(self, message: Optional[str] = None, param: Optional[str] = None):
        self.message = message or self.default_message
        self.errors: List[Dict[str, Any]] = [self._item(self.message, param)]
        super().__init__(self.message)

    @staticmethod
    def _item(msg: str, param: Optional[str] = None) -> Dict[str, Any]:
        item: Dict[str, Any] = {"msg": msg}
        if param:
            item["param"] = param
        return item

    def to_dict(self) -> Dict[str, Any]:
        return {"errors": self.errors}


class ValidationFailed(ApiError):
    """Ошибки валидации полей (400), по одной записи на нарушение."""

    status_code = 400
    default_message = "Validation failed"

    def __init__(self, errors: List[Dict[str, Any]]):
        super().__init__(errors[0]["msg"] if errors else None)
        self.errors = [self._item(e["msg"], e.get("param")) for e in errors] or self.errors

    @classmethod
    def single(cls, msg: str, param: Optional[str] = None) -> "ValidationFailed":
        return cls([{"msg": msg, "param": param}])


class Unauthorized(ApiError):
    status_code = 401
    default_message = "Not authorized, no token"


class Forbidden(ApiError):
    """Чужой ресурс. Отдаётся тем же статусом, что и отсутствие авторизации."""

    status_code = 401
    default_message = "Not authorized"


class NotFound(ApiError):
    status_code = 404
    default_message = "Not found"


class Conflict(ApiError):
    status_code = 400
    default_message = "User already exists"


class InvalidCredentials(ApiError):
    status_code = 400
    default_message = "Invalid Credentials"


class UpstreamStorageError(ApiError):
    """Сбой объектного хранилища при загрузке файла."""

    status_code = 500
    default_message = "File upload failed"
