import logging
from typing import List, Optional

from evstrack.clock import Clock
from evstrack.models.notification import Notification, NotificationType
from evstrack.store.collections import Collection
from evstrack.store.ids import new_id
from evstrack.store.repository import EntityStore

logger = logging.getLogger("evstrack.workflow.notifications")


class NotificationService:
    def __init__(self, store: EntityStore, clock: Clock):
        self.store = store
        self.clock = clock

    def notify(
        self,
        message: str,
        type: NotificationType = NotificationType.INFO,
        link: Optional[str] = None,
    ) -> Notification:
        notification = Notification(
            id=new_id("notif"),
            message=message,
            type=NotificationType(type),
            timestamp=self.clock.now(),
            link=link,
        )
        logger.info(f"notification [{notification.type.value}] {message}")
        return self.store.create(Collection.NOTIFICATIONS, notification)

    def recent(self, limit: Optional[int] = None) -> List[Notification]:
        ordered = sorted(
            self.store.list(Collection.NOTIFICATIONS),
            key=lambda n: n.timestamp,
            reverse=True,
        )
        return ordered[:limit] if limit is not None else ordered

    def mark_read(self, notification_id: str) -> Notification:
        return self.store.update(Collection.NOTIFICATIONS, notification_id, is_read=True)

    def mark_all_read(self) -> int:
        unread = [n for n in self.store.list(Collection.NOTIFICATIONS) if not n.is_read]
        for notification in unread:
            self.store.update(Collection.NOTIFICATIONS, notification.id, is_read=True)
        return len(unread)

    def unread_count(self) -> int:
        return sum(1 for n in self.store.list(Collection.NOTIFICATIONS) if not n.is_read)
