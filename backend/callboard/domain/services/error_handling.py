"""
Error Handling Service
Classifies arbitrary exceptions into user-presentable ErrorDetails
"""
import logging
from typing import Any, Callable, Dict, Optional

import httpx
from pydantic import ValidationError

from callboard.domain.models.errors import ErrorCategory, ErrorContext, ErrorDetails, ErrorSeverity
from callboard.domain.models.notification import NotificationAction

logger = logging.getLogger(__name__)


def _entry(message: str, user_message: str, severity: ErrorSeverity, category: ErrorCategory,
           retryable: bool) -> Dict[str, Any]:
    return {
        "message": message,
        "user_message": user_message,
        "severity": severity,
        "category": category,
        "retryable": retryable,
    }


_HIGH, _MEDIUM, _LOW, _CRITICAL = (
    ErrorSeverity.HIGH, ErrorSeverity.MEDIUM, ErrorSeverity.LOW, ErrorSeverity.CRITICAL
)

ERROR_CODES: Dict[str, Dict[str, Any]] = {
    # Network
    "NETWORK_ERROR": _entry(
        "Network request failed",
        "Unable to connect to the server. Please check your internet connection and try again.",
        _HIGH, ErrorCategory.NETWORK, True,
    ),
    "TIMEOUT_ERROR": _entry(
        "Request timed out",
        "The request took too long to complete. Please try again.",
        _MEDIUM, ErrorCategory.NETWORK, True,
    ),
    # Authentication
    "AUTH_TOKEN_EXPIRED": _entry(
        "Authentication token has expired",
        "Your session has expired. Please sign in again.",
        _HIGH, ErrorCategory.AUTHENTICATION, False,
    ),
    "AUTH_INVALID_CREDENTIALS": _entry(
        "Invalid credentials provided",
        "Invalid email or password. Please check your credentials and try again.",
        _MEDIUM, ErrorCategory.AUTHENTICATION, False,
    ),
    "AUTH_ACCOUNT_LOCKED": _entry(
        "Account is locked",
        "Your account has been locked due to multiple failed login attempts. Please contact support.",
        _HIGH, ErrorCategory.AUTHENTICATION, False,
    ),
    # Authorization
    "INSUFFICIENT_PERMISSIONS": _entry(
        "User does not have sufficient permissions",
        "You don't have permission to perform this action. Please contact your administrator.",
        _MEDIUM, ErrorCategory.AUTHORIZATION, False,
    ),
    "RESOURCE_NOT_FOUND": _entry(
        "Requested resource not found",
        "The requested resource could not be found. It may have been deleted or moved.",
        _MEDIUM, ErrorCategory.API, False,
    ),
    # Voice provider
    "VOICE_PROVIDER_KEY_INVALID": _entry(
        "Voice provider API key is invalid",
        "Your voice provider API key is invalid. Please check your API key settings.",
        _HIGH, ErrorCategory.API, False,
    ),
    "VOICE_INSUFFICIENT_CREDITS": _entry(
        "Insufficient voice credits",
        "You don't have enough credits to complete this action. Please add more credits.",
        _HIGH, ErrorCategory.API, False,
    ),
    "VOICE_CALL_FAILED": _entry(
        "Voice call failed",
        "The AI call failed to complete. This may be due to network issues or invalid phone numbers.",
        _MEDIUM, ErrorCategory.API, True,
    ),
    "VOICE_SYNC_FAILED": _entry(
        "Voice data sync failed",
        "Failed to sync data from voice provider. Some information may be outdated.",
        _MEDIUM, ErrorCategory.API, True,
    ),
    # Database
    "DATABASE_CONNECTION_ERROR": _entry(
        "Database connection failed",
        "Unable to connect to the database. Please try again later.",
        _CRITICAL, ErrorCategory.SYSTEM, True,
    ),
    "DATABASE_CONSTRAINT_VIOLATION": _entry(
        "Database constraint violation",
        "The data you're trying to save conflicts with existing records. Please check your input.",
        _MEDIUM, ErrorCategory.VALIDATION, False,
    ),
    # Validation
    "VALIDATION_REQUIRED_FIELD": _entry(
        "Required field is missing",
        "Please fill in all required fields.",
        _LOW, ErrorCategory.VALIDATION, False,
    ),
    "VALIDATION_INVALID_EMAIL": _entry(
        "Invalid email format",
        "Please enter a valid email address.",
        _LOW, ErrorCategory.VALIDATION, False,
    ),
    "VALIDATION_INVALID_PHONE": _entry(
        "Invalid phone number format",
        "Please enter a valid phone number.",
        _LOW, ErrorCategory.VALIDATION, False,
    ),
    "VALIDATION_FILE_TOO_LARGE": _entry(
        "File size exceeds limit",
        "The file you're trying to upload is too large. Please choose a smaller file.",
        _MEDIUM, ErrorCategory.VALIDATION, False,
    ),
    "VALIDATION_INVALID_FILE_TYPE": _entry(
        "Invalid file type",
        "Please upload a file in the correct format (CSV, XLSX, or XLS).",
        _MEDIUM, ErrorCategory.VALIDATION, False,
    ),
    # Billing
    "BILLING_PAYMENT_FAILED": _entry(
        "Payment processing failed",
        "Your payment could not be processed. Please check your payment method and try again.",
        _HIGH, ErrorCategory.API, True,
    ),
    "BILLING_SUBSCRIPTION_EXPIRED": _entry(
        "Subscription has expired",
        "Your subscription has expired. Please renew to continue using the service.",
        _HIGH, ErrorCategory.API, False,
    ),
    # Campaigns
    "CAMPAIGN_INVALID_LEADS": _entry(
        "Campaign contains invalid leads",
        "Some leads in your campaign have invalid phone numbers. Please review and correct them.",
        _MEDIUM, ErrorCategory.VALIDATION, False,
    ),
    "CAMPAIGN_ALREADY_RUNNING": _entry(
        "Campaign is already running",
        "This campaign is already running. Please stop it before making changes.",
        _MEDIUM, ErrorCategory.USER, False,
    ),
    # Generic
    "UNKNOWN_ERROR": _entry(
        "An unknown error occurred",
        "Something went wrong. Please try again or contact support if the problem persists.",
        _MEDIUM, ErrorCategory.SYSTEM, True,
    ),
}

ERROR_TITLES: Dict[ErrorCategory, str] = {
    ErrorCategory.NETWORK: "Connection Error",
    ErrorCategory.AUTHENTICATION: "Authentication Error",
    ErrorCategory.AUTHORIZATION: "Permission Error",
    ErrorCategory.VALIDATION: "Validation Error",
    ErrorCategory.API: "Service Error",
    ErrorCategory.SYSTEM: "System Error",
    ErrorCategory.USER: "Action Error",
}


def _message_of(error: Any) -> str:
    if isinstance(error, BaseException):
        return getattr(error, "message", None) or str(error)
    if isinstance(error, dict):
        return str(error.get("message") or "")
    return str(getattr(error, "message", "") or "")


def _attr(error: Any, name: str) -> Any:
    if isinstance(error, dict):
        return error.get(name)
    return getattr(error, name, None)


def _http_status(error: Any) -> Optional[int]:
    """Status of an HTTP response attached to the error (httpx.HTTPStatusError and the like)"""
    response = _attr(error, "response")
    if response is None:
        return None
    status = response.get("status") if isinstance(response, dict) else getattr(response, "status_code", None)
    return status if isinstance(status, int) else None


def _response_message(error: Any) -> str:
    response = _attr(error, "response")
    try:
        payload = response.json() if isinstance(response, httpx.Response) else None
    except ValueError:
        payload = None
    if isinstance(payload, dict) and payload.get("message"):
        return str(payload["message"])
    return _message_of(error)


class ErrorHandlingService:
    """
    Maps exceptions to ErrorDetails.

    Classification is checked in order: known error code, HTTP status,
    network failure, timeout, validation failure, voice provider failure,
    payment failure, then UNKNOWN_ERROR.
    """

    ERROR_CODES = ERROR_CODES

    @classmethod
    def from_code(cls, code: str, context: Optional[ErrorContext] = None) -> ErrorDetails:
        return ErrorDetails(code=code, context=context, **cls.ERROR_CODES[code])

    @classmethod
    def parse_error(cls, error: Any, context: Optional[ErrorContext] = None) -> ErrorDetails:
        """Classify an error without side effects."""
        code = _attr(error, "code")
        if isinstance(code, str) and code in cls.ERROR_CODES:
            return cls.from_code(code, context)

        status = _http_status(error)
        if status is not None:
            return cls._parse_http_error(status, _response_message(error), context)

        if isinstance(error, (httpx.NetworkError, ConnectionError)):
            return cls.from_code("NETWORK_ERROR", context)

        if isinstance(error, (httpx.TimeoutException, TimeoutError)):
            return cls.from_code("TIMEOUT_ERROR", context)

        if isinstance(error, ValidationError) or type(error).__name__ == "ValidationError":
            return cls._parse_validation_error(error, context)

        message = _message_of(error)
        if "Voice" in message or _attr(error, "source") == "voice_provider":
            return cls._parse_voice_provider_error(error, context)

        error_type = _attr(error, "type")
        if (isinstance(error_type, str) and error_type.startswith("Stripe")) or "Stripe" in message:
            return cls._parse_stripe_error(message, context)

        return ErrorDetails(
            code="UNKNOWN_ERROR",
            context=context,
            **{**cls.ERROR_CODES["UNKNOWN_ERROR"], "message": message or "Unknown error"},
        )

    @classmethod
    def _parse_http_error(cls, status: int, message: str, context: Optional[ErrorContext]) -> ErrorDetails:
        if status == 400:
            return ErrorDetails(
                code="BAD_REQUEST",
                message=message or "Bad request",
                user_message="Invalid request. Please check your input and try again.",
                severity=ErrorSeverity.MEDIUM,
                category=ErrorCategory.VALIDATION,
                retryable=False,
                context=context,
            )
        if status == 401:
            return cls.from_code("AUTH_TOKEN_EXPIRED", context)
        if status == 403:
            return cls.from_code("INSUFFICIENT_PERMISSIONS", context)
        if status == 404:
            return cls.from_code("RESOURCE_NOT_FOUND", context)
        if status == 429:
            return ErrorDetails(
                code="RATE_LIMIT_EXCEEDED",
                message="Rate limit exceeded",
                user_message="Too many requests. Please wait a moment and try again.",
                severity=ErrorSeverity.MEDIUM,
                category=ErrorCategory.API,
                retryable=True,
                context=context,
            )
        if status == 500:
            return ErrorDetails(
                code="INTERNAL_SERVER_ERROR",
                message="Internal server error",
                user_message="A server error occurred. Please try again later.",
                severity=ErrorSeverity.HIGH,
                category=ErrorCategory.SYSTEM,
                retryable=True,
                context=context,
            )
        return ErrorDetails(
            code=f"HTTP_{status}",
            message=message or f"HTTP {status} error",
            user_message="An error occurred while processing your request. Please try again.",
            severity=ErrorSeverity.MEDIUM,
            category=ErrorCategory.API,
            retryable=True,
            context=context,
        )

    @classmethod
    def _parse_validation_error(cls, error: Any, context: Optional[ErrorContext]) -> ErrorDetails:
        message = str(error) or "Validation failed"
        lowered = message.lower()
        if "email" in lowered:
            return cls.from_code("VALIDATION_INVALID_EMAIL", context)
        if "phone" in lowered:
            return cls.from_code("VALIDATION_INVALID_PHONE", context)
        if "required" in lowered:
            return cls.from_code("VALIDATION_REQUIRED_FIELD", context)
        return ErrorDetails(
            code="VALIDATION_ERROR",
            message=message,
            user_message="Please check your input and try again.",
            severity=ErrorSeverity.LOW,
            category=ErrorCategory.VALIDATION,
            retryable=False,
            context=context,
        )

    @classmethod
    def _parse_voice_provider_error(cls, error: Any, context: Optional[ErrorContext]) -> ErrorDetails:
        message = _message_of(error) or "Voice provider error"
        lowered = message.lower()
        # Provider rejected the key outright
        if _attr(error, "status_code") == 401 or "api key" in lowered or "unauthorized" in lowered:
            return cls.from_code("VOICE_PROVIDER_KEY_INVALID", context)
        if "credits" in lowered or "insufficient" in lowered:
            return cls.from_code("VOICE_INSUFFICIENT_CREDITS", context)
        if "call failed" in lowered:
            return cls.from_code("VOICE_CALL_FAILED", context)
        return ErrorDetails(
            code="VOICE_ERROR",
            message=message,
            user_message="An error occurred with the AI calling service. Please try again.",
            severity=ErrorSeverity.MEDIUM,
            category=ErrorCategory.API,
            retryable=True,
            context=context,
        )

    @classmethod
    def _parse_stripe_error(cls, message: str, context: Optional[ErrorContext]) -> ErrorDetails:
        message = message or "Payment error"
        if "declined" in message or "insufficient" in message:
            return cls.from_code("BILLING_PAYMENT_FAILED", context)
        return ErrorDetails(
            code="STRIPE_ERROR",
            message=message,
            user_message="A payment error occurred. Please check your payment method and try again.",
            severity=ErrorSeverity.HIGH,
            category=ErrorCategory.API,
            retryable=True,
            context=context,
        )

    @staticmethod
    def get_error_title(details: ErrorDetails) -> str:
        return ERROR_TITLES.get(details.category, "Error")

    @classmethod
    def handle_error(
        cls,
        error: Any,
        context: Optional[ErrorContext] = None,
        notify: bool = True,
    ) -> ErrorDetails:
        """
        Classify, log and (optionally) surface an error as a notification.

        Retryable errors get a "Retry" action; performing the retry is up
        to the caller.
        """
        details = cls.parse_error(error, context)

        log = logger.error if details.severity in (ErrorSeverity.HIGH, ErrorSeverity.CRITICAL) else logger.warning
        where = ""
        if context and (context.component or context.action):
            where = f" in {context.component or '?'}:{context.action or '?'}"
        log(f"Error handled [{details.code}]{where}: {details.message}")

        if notify:
            cls._notify_user(details)
        return details

    @classmethod
    def _notify_user(cls, details: ErrorDetails) -> None:
        from callboard.domain.services.notification_service import get_notification_service

        context = details.context
        organization_id = context.metadata.get("organization_id") if context else None
        get_notification_service(organization_id).notify_error(
            title=cls.get_error_title(details),
            message=details.user_message,
            component=context.component if context else None,
            user_id=context.user_id if context else None,
            action=NotificationAction(label="Retry") if details.retryable else None,
        )

    @classmethod
    def create_async_error_handler(cls, component: str, action: str) -> Callable[[Any], ErrorDetails]:
        """Handler bound to a component/action, for use as an error callback."""
        def handler(error: Any) -> ErrorDetails:
            return cls.handle_error(error, ErrorContext(component=component, action=action))
        return handler

    @classmethod
    def handle_form_error(cls, error: Any, form_name: str) -> ErrorDetails:
        return cls.handle_error(error, ErrorContext(component=form_name, action="form_submission"))

    @classmethod
    def handle_api_error(cls, error: Any, endpoint: str, method: str) -> ErrorDetails:
        return cls.handle_error(error, ErrorContext(component="api", action=f"{method} {endpoint}"))


handle_error = ErrorHandlingService.handle_error
handle_form_error = ErrorHandlingService.handle_form_error
handle_api_error = ErrorHandlingService.handle_api_error
create_async_error_handler = ErrorHandlingService.create_async_error_handler
