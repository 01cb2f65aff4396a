"""
Схемы Pydantic для API CarLedger
"""
import re
import uuid
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Optional, Type, TypeVar

from email_validator import EmailNotValidError, validate_email
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from core.errors import ValidationFailed
from domain.entities.document import DocumentType

USERNAME_RE = re.compile(r"^[a-zA-Z0-9_]+$")
VIN_RE = re.compile(r"^[A-HJ-NPR-Z0-9]+$")
LICENSE_PLATE_RE = re.compile(r"^[A-Z0-9 -]+$", re.IGNORECASE)
DESCRIPTION_RE = re.compile(r"^[a-zA-Z0-9\s.,!?-]*$")

MIN_CAR_YEAR = 1900

_VALUE_ERROR_PREFIX = "Value error, "

M = TypeVar("M", bound=BaseModel)


def _text(value: Any) -> Optional[str]:
    """Строка без пробелов по краям. Пустая строка считается отсутствием значения."""
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def _require(value: Any, message: str) -> str:
    value = _text(value)
    if value is None:
        raise ValueError(message)
    return value


def _check_length(value: str, low: int, high: int, message: str) -> str:
    if not (low <= len(value) <= high):
        raise ValueError(message)
    return value


def max_car_year() -> int:
    return date.today().year + 1


def collect_errors(
    errors: Iterable[Dict[str, Any]], model: Optional[Type[BaseModel]] = None
) -> List[Dict[str, Any]]:
    """Приводит ошибки pydantic/FastAPI к формату [{"msg", "param"}].

    Для схемы с псевдонимами param отдаётся именем поля формы (licensePlate, carId),
    даже если pydantic указал в loc имя атрибута.
    """
    aliases = {}
    if model is not None:
        aliases = {name: field.alias for name, field in model.model_fields.items() if field.alias}
    items = []
    for err in errors:
        msg = str(err.get("msg", "Invalid value"))
        if msg.startswith(_VALUE_ERROR_PREFIX):
            msg = msg[len(_VALUE_ERROR_PREFIX):]
        loc = [part for part in err.get("loc", ()) if isinstance(part, str) and part != "body"]
        item: Dict[str, Any] = {"msg": msg}
        if loc:
            item["param"] = aliases.get(loc[-1], loc[-1])
        items.append(item)
    return items


def parse_form(model: Type[M], data: Dict[str, Any]) -> M:
    """Валидирует поля формы. При ошибках поднимает ValidationFailed со всеми нарушениями."""
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise ValidationFailed(collect_errors(e.errors(), model)) from e


class _FormSchema(BaseModel):
    """База для входных схем: поля проверяются и при отсутствии значения."""
    model_config = ConfigDict(populate_by_name=True, validate_default=True, extra="ignore")


# Пользователи

class RegisterRequest(_FormSchema):
    """Схема регистрации."""
    username: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None

    @field_validator("username", mode="before")
    @classmethod
    def validate_username(cls, v):
        v = _require(v, "Username is required")
        if len(v) < 3:
            raise ValueError("Username must be at least 3 characters")
        if len(v) > 30:
            raise ValueError("Username cannot exceed 30 characters")
        if not USERNAME_RE.match(v):
            raise ValueError("Username can only contain letters, numbers, and underscores")
        return v

    @field_validator("email", mode="before")
    @classmethod
    def validate_email_field(cls, v):
        return _validate_email(v)

    @field_validator("password", mode="before")
    @classmethod
    def validate_password(cls, v):
        if v is None or v == "":
            raise ValueError("Password must be at least 6 characters")
        v = str(v)
        if len(v) < 6:
            raise ValueError("Password must be at least 6 characters")
        if len(v) > 50:
            raise ValueError("Password cannot exceed 50 characters")
        if not re.search(r"[A-Z]", v):
            raise ValueError("Password must contain at least one uppercase letter")
        if not re.search(r"[0-9]", v):
            raise ValueError("Password must contain at least one number")
        return v


class LoginRequest(_FormSchema):
    """Схема входа."""
    email: Optional[str] = None
    password: Optional[str] = None

    @field_validator("email", mode="before")
    @classmethod
    def validate_email_field(cls, v):
        return _validate_email(v)

    @field_validator("password", mode="before")
    @classmethod
    def validate_password(cls, v):
        if v is None or v == "":
            raise ValueError("Password is required")
        v = str(v)
        if len(v) > 50:
            raise ValueError("Password cannot exceed 50 characters")
        return v


def _validate_email(v: Any) -> str:
    v = _require(v, "Please include a valid email")
    try:
        validate_email(v, check_deliverability=False)
    except EmailNotValidError:
        raise ValueError("Please include a valid email")
    if len(v) > 50:
        raise ValueError("Email cannot exceed 50 characters")
    return v


class TokenResponse(BaseModel):
    """Ответ с JWT токеном."""
    token: str


class MessageResponse(BaseModel):
    """Ответ с сообщением."""
    msg: str


# Автомобили

class CarForm(_FormSchema):
    """Поля формы автомобиля (создание и редактирование)."""
    make: Optional[str] = None
    model: Optional[str] = None
    year: Optional[int] = None
    vin: Optional[str] = None
    license_plate: Optional[str] = Field(None, alias="licensePlate")

    @field_validator("make", mode="before")
    @classmethod
    def validate_make(cls, v):
        v = _require(v, "Make is required")
        return _check_length(v, 2, 30, "Make must be between 2 and 30 characters")

    @field_validator("model", mode="before")
    @classmethod
    def validate_model(cls, v):
        v = _require(v, "Model is required")
        return _check_length(v, 2, 30, "Model must be between 2 and 30 characters")

    @field_validator("year", mode="before")
    @classmethod
    def validate_year(cls, v):
        if isinstance(v, bool):
            v = None
        raw = _require(v, "Year is required")
        high = max_car_year()
        message = f"Year must be between {MIN_CAR_YEAR} and {high}"
        try:
            year = int(raw)
        except ValueError:
            raise ValueError(message)
        if not (MIN_CAR_YEAR <= year <= high):
            raise ValueError(message)
        return year

    @field_validator("vin", mode="before")
    @classmethod
    def validate_vin(cls, v):
        v = _text(v)
        if v is None:
            return None
        if len(v) != 17:
            raise ValueError("VIN must be exactly 17 characters")
        if not VIN_RE.match(v):
            raise ValueError("Invalid VIN format")
        return v

    @field_validator("license_plate", mode="before")
    @classmethod
    def validate_license_plate(cls, v):
        v = _require(v, "License plate is required")
        _check_length(v, 2, 10, "License plate must be between 2 and 10 characters")
        if not LICENSE_PLATE_RE.match(v):
            raise ValueError("License plate can only contain letters, numbers, spaces, and hyphens")
        return v

    def to_fields(self) -> Dict[str, Any]:
        return {
            "make": self.make,
            "model": self.model,
            "year": self.year,
            "vin": self.vin,
            "license_plate": self.license_plate,
        }


# Документы

class DocumentForm(_FormSchema):
    """Поля формы документа."""
    type: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    car_id: Optional[str] = Field(None, alias="carId")
    expiry_date: Optional[date] = Field(None, alias="expiryDate")

    @field_validator("type", mode="before")
    @classmethod
    def validate_type(cls, v):
        v = _require(v, "Document type is required")
        if v not in {t.value for t in DocumentType}:
            raise ValueError("Invalid document type")
        return v

    @field_validator("title", mode="before")
    @classmethod
    def validate_title(cls, v):
        v = _require(v, "Title is required")
        return _check_length(v, 2, 100, "Title must be between 2 and 100 characters")

    @field_validator("description", mode="before")
    @classmethod
    def validate_description(cls, v):
        v = _text(v)
        if v is None:
            return None
        if len(v) > 500:
            raise ValueError("Description cannot exceed 500 characters")
        if not DESCRIPTION_RE.match(v):
            raise ValueError("Description contains invalid characters")
        return v

    @field_validator("car_id", mode="before")
    @classmethod
    def validate_car_id(cls, v):
        v = _require(v, "Car ID is required")
        try:
            uuid.UUID(v)
        except ValueError:
            raise ValueError("Invalid car ID")
        return v

    @field_validator("expiry_date", mode="before")
    @classmethod
    def validate_expiry_date(cls, v):
        if isinstance(v, datetime):
            v = v.date()
        if isinstance(v, date):
            parsed = v
        else:
            raw = _text(v)
            if raw is None:
                return None
            parsed = parse_iso_date(raw)
        if parsed < date.today():
            raise ValueError("Expiry date cannot be in the past")
        return parsed

    def to_fields(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "title": self.title,
            "description": self.description,
            "expiry_date": self.expiry_date,
        }


class DocumentUpdateForm(DocumentForm):
    """Поля формы редактирования документа."""
    remove_file: bool = Field(False, alias="removeFile")

    @field_validator("remove_file", mode="before")
    @classmethod
    def validate_remove_file(cls, v):
        if v is None or v == "":
            return False
        if isinstance(v, str):
            return v.strip().lower() in ("true", "1", "yes", "on")
        return bool(v)


def parse_iso_date(raw: str) -> date:
    """Дата из ISO 8601: 'YYYY-MM-DD' или полная метка времени."""
    try:
        return date.fromisoformat(raw)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(raw.replace("Z", "+00:00")).date()
    except ValueError:
        raise ValueError("Invalid date format")
