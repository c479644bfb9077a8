from __future__ import annotations

from abc import ABC, abstractmethod

from src.domain.models import NotificationEvent


class INotifier(ABC):
    """User-facing notices (toasts)."""

    @abstractmethod
    async def notify(self, event: NotificationEvent) -> None:
        raise NotImplementedError

    @abstractmethod
    async def error(self, message: str) -> None:
        raise NotImplementedError

    @abstractmethod
    async def success(self, message: str) -> None:
        raise NotImplementedError
