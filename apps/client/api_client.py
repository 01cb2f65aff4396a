"""
HTTP клиент API CarLedger на httpx
"""

from typing import Any, Callable, Dict, List, Optional, Tuple

import httpx

from core.config.settings import settings
from core.logging.logger import logger

# (имя файла, содержимое, MIME-тип)
FileUpload = Tuple[str, bytes, str]


class ApiRequestError(Exception):
    """Ответ API с ошибочным статусом."""

    def __init__(self, status_code: int, errors: Optional[List[Dict[str, Any]]] = None):
        self.status_code = status_code
        self.errors = errors or []
        super().__init__(self.first_message or f"HTTP {status_code}")

    @property
    def first_message(self) -> Optional[str]:
        for err in self.errors:
            if err.get("msg"):
                return err["msg"]
        return None

    @property
    def field_errors(self) -> Dict[str, str]:
        """Ошибки по полям формы: param -> msg (первая на поле)."""
        fields: Dict[str, str] = {}
        for err in self.errors:
            param = err.get("param")
            if param and param not in fields:
                fields[param] = err.get("msg", "")
        return fields


def _form_data(fields: Dict[str, Any]) -> Dict[str, str]:
    """Поля multipart-формы. None и пустые строки не отправляются."""
    data = {}
    for key, value in fields.items():
        if value is None or value == "":
            continue
        if isinstance(value, bool):
            value = "true" if value else "false"
        data[key] = str(value)
    return data


class ApiClient:
    """Асинхронный клиент API с таймаутом и Bearer авторизацией."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        token_provider: Optional[Callable[[], Optional[str]]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = (base_url or settings.client_base_url).rstrip("/")
        self.token_provider = token_provider or (lambda: None)
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout if timeout is not None else settings.client_timeout_seconds,
            transport=transport,
        )

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def close(self) -> None:
        await self._client.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        auth: bool = True,
        json: Optional[Dict[str, Any]] = None,
        data: Optional[Dict[str, Any]] = None,
        files: Optional[Dict[str, FileUpload]] = None,
    ) -> Any:
        headers = {}
        if auth:
            token = self.token_provider()
            if not token:
                raise ApiRequestError(401, [{"msg": "No authentication token found"}])
            headers["Authorization"] = f"Bearer {token}"

        response = await self._client.request(
            method,
            path,
            headers=headers,
            json=json,
            data=_form_data(data) if data is not None else None,
            files=files or None,
        )
        if response.is_error:
            raise ApiRequestError(response.status_code, self._errors_from(response))
        return response.json()

    @staticmethod
    def _errors_from(response: httpx.Response) -> List[Dict[str, Any]]:
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict) and isinstance(body.get("errors"), list):
            return body["errors"]
        logger.warning("Unexpected error body", status_code=response.status_code)
        return [{"msg": "An error occurred"}]

    # Пользователи

    async def register(self, username: str, email: str, password: str) -> str:
        body = await self._request(
            "POST", "/users/register", auth=False,
            json={"username": username, "email": email, "password": password},
        )
        return body["token"]

    async def login(self, email: str, password: str) -> str:
        body = await self._request(
            "POST", "/users/login", auth=False,
            json={"email": email, "password": password},
        )
        return body["token"]

    async def get_profile(self) -> Dict[str, Any]:
        return await self._request("GET", "/users/profile")

    # Автомобили

    async def get_cars(self) -> List[Dict[str, Any]]:
        return await self._request("GET", "/cars")

    async def get_car(self, car_id: str) -> Dict[str, Any]:
        return await self._request("GET", f"/cars/{car_id}")

    async def add_car(self, fields: Dict[str, Any], image: Optional[FileUpload] = None) -> Dict[str, Any]:
        files = {"image": image} if image else None
        return await self._request("POST", "/cars", data=fields, files=files)

    async def update_car(
        self, car_id: str, fields: Dict[str, Any], image: Optional[FileUpload] = None
    ) -> Dict[str, Any]:
        files = {"image": image} if image else None
        return await self._request("PUT", f"/cars/{car_id}", data=fields, files=files)

    async def delete_car(self, car_id: str) -> Dict[str, Any]:
        return await self._request("DELETE", f"/cars/{car_id}")

    # Документы

    async def get_documents(self, car_id: str) -> List[Dict[str, Any]]:
        return await self._request("GET", f"/documents/car/{car_id}")

    async def get_document(self, document_id: str) -> Dict[str, Any]:
        return await self._request("GET", f"/documents/{document_id}")

    async def add_document(self, fields: Dict[str, Any], file: Optional[FileUpload] = None) -> Dict[str, Any]:
        files = {"file": file} if file else None
        return await self._request("POST", "/documents", data=fields, files=files)

    async def update_document(
        self,
        document_id: str,
        fields: Dict[str, Any],
        file: Optional[FileUpload] = None,
        remove_file: bool = False,
    ) -> Dict[str, Any]:
        data = dict(fields)
        if remove_file:
            data["removeFile"] = True
        files = {"file": file} if file else None
        return await self._request("PUT", f"/documents/{document_id}", data=data, files=files)

    async def delete_document(self, document_id: str) -> Dict[str, Any]:
        return await self._request("DELETE", f"/documents/{document_id}")
