"""
Notification Service
Builds typed notifications for dashboard events and pushes them into the store
"""
import logging
from typing import Any, Dict, List, Optional

from callboard.domain.models.notification import (
    NotificationAction,
    NotificationCategory,
    NotificationDraft,
    NotificationPriority,
    NotificationType,
)
from callboard.domain.services.notification_store import NotificationStore, get_notification_store

logger = logging.getLogger(__name__)


# Per-type defaults applied before caller options
NOTIFICATION_DEFAULTS: Dict[NotificationType, Dict[str, Any]] = {
    NotificationType.SUCCESS: {"auto_hide": True, "hide_after": 5000},
    NotificationType.ERROR: {"priority": NotificationPriority.HIGH, "persistent": True},
    NotificationType.WARNING: {"auto_hide": True, "hide_after": 8000},
    NotificationType.INFO: {"priority": NotificationPriority.LOW, "auto_hide": True, "hide_after": 4000},
    NotificationType.SYSTEM: {"source": "system"},
    NotificationType.CAMPAIGN: {"category": NotificationCategory.CAMPAIGNS, "source": "campaign-manager"},
    NotificationType.BILLING: {"category": NotificationCategory.BILLING, "source": "billing"},
}

HIGH_QUALITY_LEAD_SCORE = 80
SUCCESSFUL_OUTCOMES = ("connected", "interested", "callback")


def build_notification(
    notification_type: NotificationType,
    title: str,
    message: str,
    **options: Any,
) -> NotificationDraft:
    """Draft with the type's defaults, overridden by options."""
    fields: Dict[str, Any] = {"source": "app"}
    fields.update(NOTIFICATION_DEFAULTS.get(notification_type, {}))
    fields.update({k: v for k, v in options.items() if v is not None})
    return NotificationDraft(type=notification_type, title=title, message=message, **fields)


def _action(label: str, href: Optional[str] = None) -> NotificationAction:
    return NotificationAction(label=label, href=href)


class NotificationService:
    """Event-specific notification builders"""

    def __init__(self, store: Optional[NotificationStore] = None):
        self.store = store or get_notification_store()

    def _add(self, notification_type: NotificationType, title: str, message: str, **options) -> str:
        return self.store.add(build_notification(notification_type, title, message, **options))

    # ==================== USER EVENTS ====================

    def notify_user_created(self, name: str, email: str, role: str, organization_name: Optional[str] = None) -> str:
        return self._add(
            NotificationType.SUCCESS,
            "New User Created",
            f"{name} ({role}) has been added to {organization_name or 'the platform'}",
            source="user-management",
            metadata={"name": name, "email": email, "role": role, "organization_name": organization_name},
            action=_action("View Users", "/team"),
        )

    def notify_user_login(self, name: str, email: str) -> str:
        return self._add(
            NotificationType.INFO,
            "User Login",
            f"{name} has signed in to the platform",
            source="auth",
            metadata={"name": name, "email": email},
        )

    def notify_user_error(self, message: str, user_id: Optional[str] = None, action: Optional[str] = None) -> str:
        return self._add(
            NotificationType.ERROR,
            "User Account Error",
            f"Error with user account: {message}",
            source="user-management",
            metadata={"message": message, "user_id": user_id, "action": action},
        )

    # ==================== VOICE PROVIDER EVENTS ====================

    def notify_voice_sync_success(self, accounts_count: int, credits_total: float, calls_total: int) -> str:
        return self._add(
            NotificationType.SUCCESS,
            "Voice Data Synced",
            f"Successfully synced {accounts_count} voice accounts. "
            f"Total: {credits_total:,.0f} credits, {calls_total:,} calls",
            source="voice-sync",
            priority=NotificationPriority.LOW,
            metadata={"accounts_count": accounts_count, "credits_total": credits_total, "calls_total": calls_total},
        )

    def notify_voice_sync_error(self, message: str, account_id: Optional[str] = None, retry_count: int = 0) -> str:
        suffix = f" (Retry {retry_count})" if retry_count else ""
        return self._add(
            NotificationType.ERROR,
            "Voice Sync Failed",
            f"Failed to sync voice data: {message}{suffix}",
            source="voice-sync",
            metadata={"message": message, "account_id": account_id, "retry_count": retry_count},
            action=_action("Retry Sync", "/api-keys"),
        )

    def notify_voice_account_connected(self, name: str, credits: float, account_id: str) -> str:
        return self._add(
            NotificationType.SUCCESS,
            "Voice Account Connected",
            f'Successfully connected voice account "{name}" with {credits:,.0f} credits',
            source="voice-integration",
            metadata={"name": name, "credits": credits, "id": account_id},
            action=_action("View API Keys", "/api-keys"),
        )

    def notify_voice_account_disconnected(self, name: str, reason: Optional[str] = None) -> str:
        suffix = f": {reason}" if reason else ""
        return self._add(
            NotificationType.WARNING,
            "Voice Account Disconnected",
            f'Voice account "{name}" has been disconnected{suffix}',
            source="voice-integration",
            metadata={"name": name, "reason": reason},
            action=_action("Reconnect", "/api-keys"),
        )

    # ==================== CALL EVENTS ====================

    def notify_call_completed(
        self,
        contact_name: str,
        duration: float,
        outcome: str,
        campaign_name: Optional[str] = None,
        lead_score: Optional[int] = None,
    ) -> str:
        is_success = outcome in SUCCESSFUL_OUTCOMES
        score = f" | Score: {lead_score}/100" if lead_score else ""
        return self._add(
            NotificationType.SUCCESS if is_success else NotificationType.INFO,
            "Call Completed",
            f"Call with {contact_name} completed ({duration:g}s) - {outcome}{score}",
            category=NotificationCategory.CALLS,
            source="call-manager",
            priority=NotificationPriority.MEDIUM if is_success else NotificationPriority.LOW,
            metadata={
                "contact_name": contact_name,
                "duration": duration,
                "outcome": outcome,
                "campaign_name": campaign_name,
                "lead_score": lead_score,
            },
            action=_action("View Call Details", "/all-calls"),
        )

    def notify_call_failed(
        self,
        contact_name: str,
        phone_number: str,
        error: str,
        campaign_name: Optional[str] = None,
        retry_scheduled: bool = False,
    ) -> str:
        suffix = " - Retry scheduled" if retry_scheduled else ""
        return self._add(
            NotificationType.ERROR,
            "Call Failed",
            f"Call to {contact_name} ({phone_number}) failed: {error}{suffix}",
            category=NotificationCategory.CALLS,
            source="call-manager",
            priority=NotificationPriority.MEDIUM,
            metadata={
                "contact_name": contact_name,
                "phone_number": phone_number,
                "error": error,
                "campaign_name": campaign_name,
                "retry_scheduled": retry_scheduled,
            },
            action=_action("View Details", "/all-calls"),
        )

    # ==================== CAMPAIGN EVENTS ====================

    def notify_campaign_started(
        self, name: str, leads_count: int, campaign_id: str, estimated_duration: Optional[str] = None
    ) -> str:
        suffix = f" (Est. {estimated_duration})" if estimated_duration else ""
        return self._add(
            NotificationType.CAMPAIGN,
            "Campaign Started",
            f'Campaign "{name}" has started with {leads_count} leads{suffix}',
            metadata={"name": name, "leads_count": leads_count, "id": campaign_id},
            action=_action("View Campaign", f"/campaigns/{campaign_id}"),
        )

    def notify_campaign_completed(
        self, name: str, total_calls: int, successful_calls: int, conversion_rate: float, campaign_id: str
    ) -> str:
        return self._add(
            NotificationType.SUCCESS,
            "Campaign Completed",
            f'Campaign "{name}" completed: {successful_calls}/{total_calls} successful calls '
            f"({conversion_rate:.1f}% conversion)",
            category=NotificationCategory.CAMPAIGNS,
            source="campaign-manager",
            metadata={
                "name": name,
                "total_calls": total_calls,
                "successful_calls": successful_calls,
                "conversion_rate": conversion_rate,
                "id": campaign_id,
            },
            action=_action("View Report", f"/campaigns/{campaign_id}"),
        )

    def notify_campaign_paused(self, name: str, reason: str, campaign_id: str) -> str:
        return self._add(
            NotificationType.WARNING,
            "Campaign Paused",
            f'Campaign "{name}" has been paused: {reason}',
            category=NotificationCategory.CAMPAIGNS,
            source="campaign-manager",
            metadata={"name": name, "reason": reason, "id": campaign_id},
            action=_action("Resume Campaign", f"/campaigns/{campaign_id}"),
        )

    # ==================== LEAD EVENTS ====================

    def notify_lead_generated(
        self, name: str, score: int, campaign_name: str, phone_number: str, lead_id: str
    ) -> str:
        high_quality = score >= HIGH_QUALITY_LEAD_SCORE
        return self._add(
            NotificationType.SUCCESS if high_quality else NotificationType.INFO,
            f"{'High-Quality' if high_quality else 'New'} Lead Generated",
            f'{name} from "{campaign_name}" campaign (Score: {score}/100)',
            category=NotificationCategory.PERFORMANCE,
            source="lead-manager",
            priority=NotificationPriority.HIGH if high_quality else NotificationPriority.MEDIUM,
            metadata={
                "name": name,
                "score": score,
                "campaign_name": campaign_name,
                "phone_number": phone_number,
                "id": lead_id,
            },
            action=_action("View Lead", f"/leads/{lead_id}"),
        )

    def notify_lead_updated(self, name: str, status: str, previous_status: str, lead_id: str) -> str:
        return self._add(
            NotificationType.INFO,
            "Lead Status Updated",
            f'{name} status changed from "{previous_status}" to "{status}"',
            category=NotificationCategory.PERFORMANCE,
            source="lead-manager",
            metadata={"name": name, "status": status, "previous_status": previous_status, "id": lead_id},
            action=_action("View Lead", f"/leads/{lead_id}"),
        )

    # ==================== BILLING EVENTS ====================

    def notify_low_credits(self, current_balance: float, threshold: float, estimated_days: int) -> str:
        return self._add(
            NotificationType.WARNING,
            "Low Credits Warning",
            f"Credit balance is low ({current_balance:,.0f} remaining). "
            f"Estimated {estimated_days} days at current usage.",
            category=NotificationCategory.BILLING,
            source="billing",
            priority=NotificationPriority.HIGH,
            metadata={"current_balance": current_balance, "threshold": threshold, "estimated_days": estimated_days},
            action=_action("Add Credits", "/billing"),
        )

    def notify_critical_credits(self, current_balance: float, hours_remaining: float) -> str:
        return self._add(
            NotificationType.ERROR,
            "Critical Credit Level",
            f"Only {current_balance:,.0f} credits remaining! "
            f"Service may be interrupted in {hours_remaining:g} hours.",
            category=NotificationCategory.BILLING,
            source="billing",
            priority=NotificationPriority.URGENT,
            metadata={"current_balance": current_balance, "hours_remaining": hours_remaining},
            action=_action("Add Credits Now", "/billing"),
        )

    def notify_credits_added(self, amount: float, new_balance: float, transaction_id: str) -> str:
        return self._add(
            NotificationType.SUCCESS,
            "Credits Added",
            f"{amount:,.0f} credits added successfully. New balance: {new_balance:,.0f}",
            category=NotificationCategory.BILLING,
            source="billing",
            metadata={"amount": amount, "new_balance": new_balance, "transaction_id": transaction_id},
            action=_action("View Billing", "/billing"),
        )

    def notify_invoice_generated(self, amount: float, period: str, due_date: str, invoice_id: str) -> str:
        return self._add(
            NotificationType.BILLING,
            "New Invoice Generated",
            f"Invoice for {period} generated: £{amount:.2f} (Due: {due_date})",
            metadata={"amount": amount, "period": period, "due_date": due_date, "invoice_id": invoice_id},
            action=_action("View Invoice", f"/billing/invoices/{invoice_id}"),
        )

    # ==================== SYSTEM EVENTS ====================

    def notify_system_maintenance(self, start_time: str, end_time: str, services: List[str]) -> str:
        return self._add(
            NotificationType.SYSTEM,
            "Scheduled Maintenance",
            f"System maintenance scheduled from {start_time} to {end_time}. "
            f"Affected: {', '.join(services)}",
            metadata={"start_time": start_time, "end_time": end_time, "services": services},
        )

    def notify_system_alert(self, message: str, severity: str, component: Optional[str] = None) -> str:
        """severity is one of low / medium / high / critical"""
        if severity == "critical":
            notification_type, priority = NotificationType.ERROR, NotificationPriority.URGENT
        elif severity == "high":
            notification_type, priority = NotificationType.WARNING, NotificationPriority.HIGH
        else:
            notification_type = NotificationType.INFO
            priority = NotificationPriority.LOW if severity == "low" else NotificationPriority.MEDIUM
        prefix = f"[{component}] " if component else ""
        return self._add(
            notification_type,
            "System Alert",
            f"{prefix}{message}",
            source="monitoring",
            priority=priority,
            metadata={"message": message, "severity": severity, "component": component},
        )

    def notify_api_limit_warning(self, service: str, usage: int, limit: int, reset_time: str) -> str:
        percent = round(usage / limit * 100) if limit else 100
        return self._add(
            NotificationType.WARNING,
            "API Limit Warning",
            f"{service} API usage at {percent}% ({usage}/{limit}). Resets at {reset_time}",
            source="api-monitor",
            metadata={"service": service, "usage": usage, "limit": limit, "reset_time": reset_time},
        )

    def notify_security_alert(
        self, event: str, location: Optional[str] = None, user_agent: Optional[str] = None, ip: Optional[str] = None
    ) -> str:
        suffix = f" from {location}" if location else ""
        return self._add(
            NotificationType.ERROR,
            "Security Alert",
            f"Security event detected: {event}{suffix}",
            category=NotificationCategory.SECURITY,
            source="security",
            priority=NotificationPriority.URGENT,
            metadata={"event": event, "location": location, "user_agent": user_agent, "ip": ip},
            action=_action("Review Security", "/settings/security"),
        )

    def notify_performance_alert(
        self, metric: str, value: float, threshold: float, trend: str, timeframe: str
    ) -> str:
        """
        trend is "up" or "down". Rising conversion/success metrics are good
        news, every other metric is good news when it falls.
        """
        if "conversion" in metric or "success" in metric:
            is_good = trend == "up"
        else:
            is_good = trend == "down"
        unit = "%" if "rate" in metric else ""
        return self._add(
            NotificationType.SUCCESS if is_good else NotificationType.WARNING,
            "Performance Alert",
            f"{metric} is {trend} to {value:g}{unit} over {timeframe}",
            category=NotificationCategory.PERFORMANCE,
            source="analytics",
            metadata={"metric": metric, "value": value, "threshold": threshold, "trend": trend, "timeframe": timeframe},
            action=_action("View Analytics", "/analytics"),
        )

    # ==================== ERRORS ====================

    def notify_error(
        self,
        title: str,
        message: str,
        component: Optional[str] = None,
        user_id: Optional[str] = None,
        action: Optional[NotificationAction] = None,
    ) -> str:
        prefix = f"[{component}] " if component else ""
        return self._add(
            NotificationType.ERROR,
            title,
            f"{prefix}{message}",
            source=component or "unknown",
            metadata={"title": title, "message": message, "component": component, "user_id": user_id},
            action=action,
        )

    # ==================== WEBHOOKS ====================

    def notify_webhook_received(
        self, source: str, event: str, processed: bool, error: Optional[str] = None
    ) -> Optional[str]:
        """Only processed webhooks and failures with an error message are reported."""
        metadata = {"source": source, "event": event, "processed": processed, "error": error}
        if processed:
            return self._add(
                NotificationType.SUCCESS,
                "Webhook Processed",
                f"Successfully processed {event} webhook from {source}",
                source="webhook-handler",
                priority=NotificationPriority.LOW,
                metadata=metadata,
            )
        if error:
            return self._add(
                NotificationType.ERROR,
                "Webhook Processing Failed",
                f"Failed to process {event} webhook from {source}: {error}",
                source="webhook-handler",
                priority=NotificationPriority.MEDIUM,
                metadata=metadata,
            )
        return None


def get_notification_service(organization_id: Optional[str] = None) -> NotificationService:
    """NotificationService writing to the organization's store"""
    return NotificationService(get_notification_store(organization_id))
