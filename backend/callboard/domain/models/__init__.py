"""Domain models"""

# Call records
from .call import (
    CallStatus,
    CallType,
    Sentiment,
    Customer,
    CostBreakdown,
    CallAnalysis,
    VoiceCall,
)

# Derived metrics
from .analytics import (
    SentimentBreakdown,
    HourBucket,
    DayBucket,
    CostBreakdownTotals,
    AssistantBreakdown,
    CallAnalytics,
)
from .lead_score import LeadScoreFactor, LeadScore
from .capacity import (
    Timeframe,
    CreditStatus,
    ScheduleConfig,
    UpgradeSuggestion,
    CapacityEstimate,
)

# Billing catalog
from .plan import VoiceTier, VoiceTierConfig, PlanTier, PlanLimits

# Errors & notifications
from .errors import ErrorSeverity, ErrorCategory, ErrorContext, ErrorDetails
from .notification import (
    NotificationType,
    NotificationPriority,
    NotificationCategory,
    NotificationAction,
    Notification,
    NotificationDraft,
    NotificationFilters,
    NotificationStats,
    NotificationPreferences,
)

__all__ = [
    # Call records
    "CallStatus",
    "CallType",
    "Sentiment",
    "Customer",
    "CostBreakdown",
    "CallAnalysis",
    "VoiceCall",
    # Derived metrics
    "SentimentBreakdown",
    "HourBucket",
    "DayBucket",
    "CostBreakdownTotals",
    "AssistantBreakdown",
    "CallAnalytics",
    "LeadScoreFactor",
    "LeadScore",
    "Timeframe",
    "CreditStatus",
    "ScheduleConfig",
    "UpgradeSuggestion",
    "CapacityEstimate",
    # Billing catalog
    "VoiceTier",
    "VoiceTierConfig",
    "PlanTier",
    "PlanLimits",
    # Errors & notifications
    "ErrorSeverity",
    "ErrorCategory",
    "ErrorContext",
    "ErrorDetails",
    "NotificationType",
    "NotificationPriority",
    "NotificationCategory",
    "NotificationAction",
    "Notification",
    "NotificationDraft",
    "NotificationFilters",
    "NotificationStats",
    "NotificationPreferences",
]
