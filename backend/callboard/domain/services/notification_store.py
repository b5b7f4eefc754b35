"""
Notification Store
In-process, newest-first notification list with filtering, stats and pub/sub
"""
import logging
import threading
import uuid
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, List, Optional

from callboard.domain.models.notification import (
    Notification,
    NotificationCategory,
    NotificationDraft,
    NotificationFilters,
    NotificationPreferences,
    NotificationPriority,
    NotificationStats,
    NotificationType,
    RecentActivity,
)

logger = logging.getLogger(__name__)

DEFAULT_MAX_NOTIFICATIONS = 25


def utcnow() -> datetime:
    """Naive UTC now; store timestamps are naive UTC"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


Subscriber = Callable[["NotificationStore"], None]


class NotificationStore:
    """
    Holds at most `max_notifications` notifications, newest first.

    Subscribers are called with the store after every mutation. Notifications
    with auto_hide/hide_after expire and are purged lazily on read.
    """

    def __init__(self, max_notifications: int = DEFAULT_MAX_NOTIFICATIONS):
        self._lock = threading.Lock()
        self._notifications: List[Notification] = []
        self._subscribers: List[Subscriber] = []
        self.max_notifications = max_notifications
        self.filters = NotificationFilters()
        self.preferences = NotificationPreferences()

    # ------------------------------------------------------------------
    # Pub/sub
    # ------------------------------------------------------------------

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register a change listener. Returns a function that unsubscribes it."""
        with self._lock:
            self._subscribers.append(callback)

        def unsubscribe() -> None:
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return unsubscribe

    def _publish(self) -> None:
        with self._lock:
            subscribers = list(self._subscribers)
        for callback in subscribers:
            try:
                callback(self)
            except Exception as e:
                logger.error(f"Notification subscriber {callback!r} failed: {e}", exc_info=True)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def add(self, draft: NotificationDraft) -> str:
        """Add a notification and return its id."""
        notification = Notification(
            id=f"notif_{uuid.uuid4().hex[:12]}",
            timestamp=utcnow(),
            read=False,
            **draft.model_dump(),
        )
        with self._lock:
            self._notifications.insert(0, notification)
            del self._notifications[self.max_notifications:]
        logger.debug(f"Notification added: [{notification.type.value}] {notification.title}")
        self._publish()
        return notification.id

    def _mutate(self, fn: Callable[[List[Notification]], List[Notification]]) -> None:
        with self._lock:
            self._notifications = fn(self._notifications)
        self._publish()

    def remove(self, notification_id: str) -> None:
        self._mutate(lambda items: [n for n in items if n.id != notification_id])

    def _set_read(self, notification_id: Optional[str], read: bool) -> None:
        self._mutate(lambda items: [
            n.model_copy(update={"read": read}) if notification_id in (None, n.id) else n
            for n in items
        ])

    def mark_as_read(self, notification_id: str) -> None:
        self._set_read(notification_id, True)

    def mark_as_unread(self, notification_id: str) -> None:
        self._set_read(notification_id, False)

    def mark_all_as_read(self) -> None:
        self._set_read(None, True)

    def clear_all(self) -> None:
        self._mutate(lambda items: [])

    def clear_by_category(self, category: NotificationCategory) -> None:
        self._mutate(lambda items: [n for n in items if n.category != category])

    def clear_by_type(self, notification_type: NotificationType) -> None:
        self._mutate(lambda items: [n for n in items if n.type != notification_type])

    def clear_old(self, older_than_days: int) -> None:
        cutoff = utcnow() - timedelta(days=older_than_days)
        self._mutate(lambda items: [n for n in items if n.timestamp > cutoff])

    def set_max_notifications(self, maximum: int) -> None:
        with self._lock:
            self.max_notifications = maximum
        self._mutate(lambda items: items[:maximum])

    def set_filters(self, **changes) -> None:
        self.filters = self.filters.model_copy(update=changes)
        self._publish()

    def reset_filters(self) -> None:
        self.filters = NotificationFilters()
        self._publish()

    def update_preferences(self, **changes) -> None:
        self.preferences = self.preferences.model_copy(update=changes)
        self._publish()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def purge_expired(self) -> int:
        """Drop auto-hidden notifications whose hide_after has elapsed."""
        now = utcnow()
        with self._lock:
            before = len(self._notifications)
            self._notifications = [n for n in self._notifications if not n.is_expired(now)]
            purged = before - len(self._notifications)
        if purged:
            self._publish()
        return purged

    @property
    def notifications(self) -> List[Notification]:
        self.purge_expired()
        with self._lock:
            return list(self._notifications)

    def get(self, notification_id: str) -> Optional[Notification]:
        return next((n for n in self.notifications if n.id == notification_id), None)

    def get_filtered(self, filters: Optional[NotificationFilters] = None) -> List[Notification]:
        filters = filters or self.filters
        result = []
        for n in self.notifications:
            if filters.categories and n.category not in filters.categories:
                continue
            if filters.types and n.type not in filters.types:
                continue
            if filters.priorities and n.priority not in filters.priorities:
                continue
            if filters.sources and n.source not in filters.sources:
                continue
            if filters.unread_only and n.read:
                continue
            if filters.date_range and not (
                filters.date_range.start <= n.timestamp <= filters.date_range.end
            ):
                continue
            result.append(n)
        return result

    def get_unread_count(self) -> int:
        return sum(1 for n in self.notifications if not n.read)

    def get_by_category(self, category: NotificationCategory) -> List[Notification]:
        return [n for n in self.notifications if n.category == category]

    def get_by_type(self, notification_type: NotificationType) -> List[Notification]:
        return [n for n in self.notifications if n.type == notification_type]

    def get_by_priority(self, priority: NotificationPriority) -> List[Notification]:
        return [n for n in self.notifications if n.priority == priority]

    def get_recent(self, count: int) -> List[Notification]:
        return self.notifications[:count]

    def get_stats(self) -> NotificationStats:
        items = self.notifications
        now = utcnow()
        today = now.replace(hour=0, minute=0, second=0, microsecond=0)
        week_ago = now - timedelta(days=7)
        month_ago = now - timedelta(days=30)

        by_category: Dict[NotificationCategory, int] = {c: 0 for c in NotificationCategory}
        by_type: Dict[NotificationType, int] = {t: 0 for t in NotificationType}
        by_priority: Dict[NotificationPriority, int] = {p: 0 for p in NotificationPriority}
        for n in items:
            by_category[n.category] += 1
            by_type[n.type] += 1
            by_priority[n.priority] += 1

        return NotificationStats(
            total=len(items),
            unread=sum(1 for n in items if not n.read),
            by_category=by_category,
            by_type=by_type,
            by_priority=by_priority,
            recent_activity=RecentActivity(
                today=sum(1 for n in items if n.timestamp >= today),
                this_week=sum(1 for n in items if n.timestamp >= week_ago),
                this_month=sum(1 for n in items if n.timestamp >= month_ago),
            ),
        )


_notification_stores: Dict[Optional[str], NotificationStore] = {}


def get_notification_store(organization_id: Optional[str] = None) -> NotificationStore:
    """Get or create the NotificationStore for an organization (None: platform-wide)."""
    store = _notification_stores.get(organization_id)
    if store is None:
        from callboard.core.config import get_settings
        store = NotificationStore(max_notifications=get_settings().notification_max)
        _notification_stores[organization_id] = store
    return store
