"""Всплывающие уведомления клиента."""

import time
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional

from .api_client import ApiRequestError


class ToastVariant(str, Enum):
    DEFAULT = "default"
    SUCCESS = "success"
    ERROR = "error"


DURATIONS = {
    ToastVariant.SUCCESS: 3.0,
    ToastVariant.ERROR: 5.0,
    ToastVariant.DEFAULT: 5.0,
}


@dataclass
class Toast:
    description: str
    variant: ToastVariant = ToastVariant.DEFAULT
    title: Optional[str] = None
    created_at: float = 0.0
    duration: float = DURATIONS[ToastVariant.DEFAULT]
    id: str = field(default_factory=lambda: uuid.uuid4().hex[:7])

    @property
    def expires_at(self) -> float:
        return self.created_at + self.duration


class Notifier:
    """Очередь уведомлений: не больше трёх видимых, каждое живёт свой срок."""

    MAX_TOASTS = 3

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._toasts: List[Toast] = []

    def show(
        self,
        description: str,
        variant: ToastVariant = ToastVariant.DEFAULT,
        title: Optional[str] = None,
        duration: Optional[float] = None,
    ) -> Toast:
        toast = Toast(
            description=description,
            variant=variant,
            title=title,
            created_at=self._clock(),
            duration=duration if duration is not None else DURATIONS[variant],
        )
        self._toasts = self.visible[-(self.MAX_TOASTS - 1):] + [toast]
        return toast

    def success(self, description: str, title: Optional[str] = None) -> Toast:
        return self.show(description, ToastVariant.SUCCESS, title)

    def error(self, description: str, title: Optional[str] = None) -> Toast:
        return self.show(description, ToastVariant.ERROR, title)

    def error_from(self, exc: Exception, fallback: str) -> Toast:
        """Текст первой ошибки сервера, иначе fallback."""
        message = exc.first_message if isinstance(exc, ApiRequestError) else None
        return self.error(message or fallback)

    def dismiss(self, toast_id: str) -> None:
        self._toasts = [t for t in self._toasts if t.id != toast_id]

    @property
    def visible(self) -> List[Toast]:
        now = self._clock()
        self._toasts = [t for t in self._toasts if t.expires_at > now]
        return list(self._toasts)
