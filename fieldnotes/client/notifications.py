from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Literal, Protocol

logger = logging.getLogger(__name__)

NotificationStatus = Literal["success", "error"]


@dataclass(frozen=True)
class Notification:
    title: str
    description: str
    status: NotificationStatus


class Notifier(Protocol):
    def notify(self, notification: Notification) -> None: ...


class LoggingNotifier:
    def notify(self, notification: Notification) -> None:
        level = logging.INFO if notification.status == "success" else logging.WARNING
        logger.log(level, "%s: %s", notification.title, notification.description)
