"""
Notification Endpoints
In-app notification feed for the organization
"""
from datetime import datetime, timezone
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel

from callboard.api.v1.dependencies import CurrentUser, require_organization
from callboard.domain.models.notification import (
    DateRange,
    Notification,
    NotificationCategory,
    NotificationFilters,
    NotificationPriority,
    NotificationStats,
    NotificationType,
)
from callboard.domain.services.notification_store import NotificationStore, get_notification_store

router = APIRouter(prefix="/notifications", tags=["notifications"])


class NotificationListResponse(BaseModel):
    notifications: List[Notification]
    unread_count: int


def _naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    # Store timestamps are naive UTC
    if value is not None and value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def get_organization_store(
    current_user: CurrentUser = Depends(require_organization),
) -> NotificationStore:
    return get_notification_store(current_user.organization_id)


@router.get("/", response_model=NotificationListResponse)
async def list_notifications(
    category: List[NotificationCategory] = Query([]),
    type: List[NotificationType] = Query([]),
    priority: List[NotificationPriority] = Query([]),
    source: List[str] = Query([]),
    unread_only: bool = Query(False),
    start: Optional[datetime] = Query(None, description="Only notifications at or after (UTC)"),
    end: Optional[datetime] = Query(None, description="Only notifications at or before (UTC)"),
    limit: Optional[int] = Query(None, ge=1),
    store: NotificationStore = Depends(get_organization_store),
):
    """Newest-first notifications matching every given filter."""
    start, end = _naive_utc(start), _naive_utc(end)
    date_range = None
    if start or end:
        date_range = DateRange(start=start or datetime.min, end=end or datetime.max)

    filters = NotificationFilters(
        categories=category,
        types=type,
        priorities=priority,
        sources=source,
        unread_only=unread_only,
        date_range=date_range,
    )
    notifications = store.get_filtered(filters)
    if limit:
        notifications = notifications[:limit]
    return NotificationListResponse(notifications=notifications, unread_count=store.get_unread_count())


@router.get("/stats", response_model=NotificationStats)
async def get_notification_stats(store: NotificationStore = Depends(get_organization_store)):
    return store.get_stats()


@router.post("/read-all", status_code=204)
async def mark_all_read(store: NotificationStore = Depends(get_organization_store)):
    store.mark_all_as_read()


@router.post("/{notification_id}/read", status_code=204)
async def mark_read(notification_id: str, store: NotificationStore = Depends(get_organization_store)):
    if store.get(notification_id) is None:
        raise HTTPException(status_code=404, detail="Notification not found")
    store.mark_as_read(notification_id)


@router.delete("/{notification_id}", status_code=204)
async def delete_notification(notification_id: str, store: NotificationStore = Depends(get_organization_store)):
    if store.get(notification_id) is None:
        raise HTTPException(status_code=404, detail="Notification not found")
    store.remove(notification_id)


@router.delete("/", status_code=204)
async def clear_notifications(
    category: Optional[NotificationCategory] = Query(None),
    older_than_days: Optional[int] = Query(None, ge=0),
    store: NotificationStore = Depends(get_organization_store),
):
    """Clear all notifications, or only one category / those older than N days."""
    if category:
        store.clear_by_category(category)
    elif older_than_days is not None:
        store.clear_old(older_than_days)
    else:
        store.clear_all()
