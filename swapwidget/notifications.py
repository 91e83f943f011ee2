"""
User-visible notifications.

Mirrors a toast/message API: notifications are opened with a kind, text and
duration (0 keeps them until cleared) and can all be destroyed at once.
"""

from __future__ import annotations

import asyncio
import itertools
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional

from .config import settings

logger = logging.getLogger(__name__)


class NotificationKind(str, Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"
    LOADING = "loading"


@dataclass(frozen=True)
class Notification:
    id: int
    kind: NotificationKind
    content: str
    duration: float

    @property
    def persistent(self) -> bool:
        return self.duration <= 0


class Notifier:
    """Holds the notifications currently on screen."""

    def __init__(self, default_duration: Optional[float] = None) -> None:
        self.default_duration = (
            default_duration if default_duration is not None else settings.notification_duration_seconds
        )
        self._ids = itertools.count(1)
        self._active: Dict[int, Notification] = {}
        self._timers: Dict[int, asyncio.TimerHandle] = {}
        self.history: List[Notification] = []

    @property
    def active(self) -> List[Notification]:
        return list(self._active.values())

    @property
    def latest(self) -> Optional[Notification]:
        return self.history[-1] if self.history else None

    def open(
        self,
        kind: NotificationKind,
        content: str,
        duration: Optional[float] = None,
    ) -> Notification:
        notification = Notification(
            id=next(self._ids),
            kind=kind,
            content=content,
            duration=self.default_duration if duration is None else duration,
        )
        self._active[notification.id] = notification
        self.history.append(notification)

        log = logger.warning if kind in (NotificationKind.WARNING, NotificationKind.ERROR) else logger.info
        log("notification kind=%s content=%r", kind.value, content)

        if not notification.persistent:
            try:
                loop = asyncio.get_running_loop()
            except RuntimeError:
                # No loop to schedule on; stays until destroy()
                loop = None
            if loop is not None:
                self._timers[notification.id] = loop.call_later(
                    notification.duration, self.dismiss, notification.id
                )
        return notification

    def info(self, content: str, duration: Optional[float] = None) -> Notification:
        return self.open(NotificationKind.INFO, content, duration)

    def success(self, content: str, duration: Optional[float] = None) -> Notification:
        return self.open(NotificationKind.SUCCESS, content, duration)

    def warning(self, content: str, duration: Optional[float] = None) -> Notification:
        return self.open(NotificationKind.WARNING, content, duration)

    def error(self, content: str, duration: Optional[float] = None) -> Notification:
        return self.open(NotificationKind.ERROR, content, duration)

    def loading(self, content: str) -> Notification:
        return self.open(NotificationKind.LOADING, content, duration=0)

    def dismiss(self, notification_id: int) -> None:
        self._active.pop(notification_id, None)
        timer = self._timers.pop(notification_id, None)
        if timer is not None:
            timer.cancel()

    def destroy(self) -> None:
        """Clear every visible notification."""
        for timer in self._timers.values():
            timer.cancel()
        self._timers.clear()
        self._active.clear()
