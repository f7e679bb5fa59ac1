# services/notification_service.py
import logging
from functools import partial
from typing import Any, Dict

import psycopg2

from config import NOTIFICATION_BUFFER_SIZE
from services.db import ConnectionManager
from services.enums import NotificationType
from services.errors import StoreError
from services.query_builder import NOTIFICATIONS
from services.record_store import BufferedRecordStore
from services.validation_service import NOTIFICATION_RULES, ValidationError, validate_record

logger = logging.getLogger(__name__)


class NotificationStore(BufferedRecordStore):
    """
    Notifications are advisory: without a database the most recent ones
    are kept in memory (newest first) for the rest of the process lifetime.
    """

    default_limit = 10

    def __init__(self, manager: ConnectionManager = None, capacity: int = NOTIFICATION_BUFFER_SIZE):
        super().__init__(NOTIFICATIONS, manager,
                         validator=partial(validate_record, rules=NOTIFICATION_RULES),
                         capacity=capacity)

    def _prepare(self, values: Dict[str, Any]) -> Dict[str, Any]:
        values['type'] = values.get('type') or NotificationType.info.value
        values['is_read'] = bool(values.get('is_read') or False)
        return values

    def create_notification(self, title: str, message: str, type: str = NotificationType.info.value):
        return self.create({'title': title, 'message': message, 'type': type})

    def _db_mark_read(self, record_id) -> bool:
        with self.manager.transaction() as conn:
            c = conn.cursor()
            c.execute("UPDATE notifications SET is_read = true WHERE id = %s", (record_id,))
            return c.rowcount > 0

    def _db_mark_all_read(self) -> int:
        with self.manager.transaction() as conn:
            c = conn.cursor()
            c.execute("UPDATE notifications SET is_read = true WHERE is_read = false")
            return c.rowcount

    def _db_unread_count(self) -> int:
        with self.manager.connection() as conn:
            c = conn.cursor()
            c.execute("SELECT COUNT(*) FROM notifications WHERE is_read = false")
            return int(c.fetchone()[0])

    def mark_read(self, record_id) -> bool:
        return self._with_fallback(lambda: self._db_mark_read(record_id),
                                   lambda: self.buffer.update(record_id, is_read=True))

    def mark_all_read(self) -> int:
        return self._with_fallback(self._db_mark_all_read,
                                   lambda: self.buffer.update_all(is_read=True))

    def unread_count(self) -> int:
        return self._with_fallback(self._db_unread_count,
                                   lambda: self.buffer.count(lambda record: not record['is_read']))


notifications = NotificationStore()


def notify(title: str, message: str, type: str = NotificationType.info.value, store: NotificationStore = None):
    """
    Side-effect notification for a completed operation. Never raises: a
    failed notification must not fail the operation that triggered it.
    """
    try:
        return (store or notifications).create_notification(title, message, type)
    except (StoreError, ValidationError, psycopg2.Error) as e:
        logger.error(f"Failed to create notification '{title}': {e}")
        return None
