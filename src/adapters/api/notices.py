from __future__ import annotations

import logging
from dataclasses import dataclass, field

from src.adapters.api.schemas.buses import NoticeSchema
from src.app.ports.output import INotifier
from src.domain.models import NotificationEvent

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class CollectingNotifier(INotifier):
    """Gathers notices raised while serving one HTTP request."""

    notices: list[NoticeSchema] = field(default_factory=list)

    async def notify(self, event: NotificationEvent) -> None:
        self.notices.append(
            NoticeSchema(level="info", message=event.message, duration_s=event.duration_s)
        )

    async def error(self, message: str) -> None:
        logger.info("Notice: %s", message)
        self.notices.append(NoticeSchema(level="error", message=message))

    async def success(self, message: str) -> None:
        self.notices.append(NoticeSchema(level="success", message=message))
