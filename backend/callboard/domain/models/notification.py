"""
Notification Models
In-app notifications surfaced to dashboard users
"""
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class NotificationType(str, Enum):
    SUCCESS = "success"
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"
    SYSTEM = "system"
    CAMPAIGN = "campaign"
    BILLING = "billing"


class NotificationPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class NotificationCategory(str, Enum):
    SYSTEM = "system"
    CALLS = "calls"
    CAMPAIGNS = "campaigns"
    PERFORMANCE = "performance"
    BILLING = "billing"
    SECURITY = "security"


class NotificationAction(BaseModel):
    label: str
    href: Optional[str] = None


class Notification(BaseModel):
    id: str
    type: NotificationType
    title: str
    message: str
    timestamp: datetime
    read: bool = False
    priority: NotificationPriority = NotificationPriority.MEDIUM
    category: NotificationCategory = NotificationCategory.SYSTEM
    source: str = "unknown"
    metadata: Dict[str, Any] = Field(default_factory=dict)
    action: Optional[NotificationAction] = None
    auto_hide: bool = False
    hide_after: Optional[int] = None  # milliseconds
    persistent: bool = False

    def is_expired(self, now: datetime) -> bool:
        if not (self.auto_hide and self.hide_after):
            return False
        return now >= self.timestamp + timedelta(milliseconds=self.hide_after)


class NotificationDraft(BaseModel):
    """Notification content before the store assigns id and timestamp"""
    type: NotificationType
    title: str
    message: str
    priority: NotificationPriority = NotificationPriority.MEDIUM
    category: NotificationCategory = NotificationCategory.SYSTEM
    source: str = "unknown"
    metadata: Dict[str, Any] = Field(default_factory=dict)
    action: Optional[NotificationAction] = None
    auto_hide: bool = False
    hide_after: Optional[int] = None
    persistent: bool = False


class DateRange(BaseModel):
    start: datetime
    end: datetime


class NotificationFilters(BaseModel):
    categories: List[NotificationCategory] = Field(default_factory=list)
    types: List[NotificationType] = Field(default_factory=list)
    priorities: List[NotificationPriority] = Field(default_factory=list)
    sources: List[str] = Field(default_factory=list)
    unread_only: bool = False
    date_range: Optional[DateRange] = None


class RecentActivity(BaseModel):
    today: int = 0
    this_week: int = 0
    this_month: int = 0


class NotificationStats(BaseModel):
    total: int
    unread: int
    by_category: Dict[NotificationCategory, int]
    by_type: Dict[NotificationType, int]
    by_priority: Dict[NotificationPriority, int]
    recent_activity: RecentActivity


class QuietHours(BaseModel):
    enabled: bool = False
    start: str = "22:00"
    end: str = "08:00"


class CategoryPreferences(BaseModel):
    calls: bool = True
    performance: bool = True
    system: bool = True
    billing: bool = True
    campaigns: bool = True
    security: bool = True


class NotificationPreferences(BaseModel):
    categories: CategoryPreferences = Field(default_factory=CategoryPreferences)
    email_notifications: bool = True
    push_notifications: bool = True
    sms_notifications: bool = False
    quiet_hours: QuietHours = Field(default_factory=QuietHours)
