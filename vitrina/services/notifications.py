"""
Notification Channel - typed user-facing messages (success / error / info)
"""
import enum
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, List

logger = logging.getLogger(__name__)


class NotificationLevel(str, enum.Enum):
    SUCCESS = "success"
    ERROR = "error"
    INFO = "info"


@dataclass
class Notification:
    level: NotificationLevel
    message: str
    id: str = field(default_factory=lambda: uuid.uuid4().hex[:9])
    created_at: datetime = field(default_factory=datetime.now)


Listener = Callable[[Notification], None]


class NotificationChannel:
    """Keeps a bounded history and fans out to subscribers"""

    def __init__(self, history_size: int = 50):
        self.history_size = history_size
        self.history: List[Notification] = []
        self._listeners: List[Listener] = []

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def publish(self, level: NotificationLevel, message: str) -> Notification:
        notification = Notification(level=level, message=message)
        self.history.append(notification)
        del self.history[:-self.history_size]
        for listener in list(self._listeners):
            try:
                listener(notification)
            except Exception as e:
                logger.error(f"Notification listener failed: {e}")
        return notification

    def success(self, message: str) -> Notification:
        return self.publish(NotificationLevel.SUCCESS, message)

    def error(self, message: str) -> Notification:
        return self.publish(NotificationLevel.ERROR, message)

    def info(self, message: str) -> Notification:
        return self.publish(NotificationLevel.INFO, message)

    def dismiss(self, notification_id: str) -> bool:
        before = len(self.history)
        self.history = [n for n in self.history if n.id != notification_id]
        return len(self.history) < before
