"""
Unit tests for error classification
"""
import logging

import httpx
import pytest
from pydantic import BaseModel, ValidationError

from callboard.domain.interfaces.voice_provider import VoiceProviderError, VoiceProviderNotInitializedError
from callboard.domain.models.errors import ErrorCategory, ErrorContext, ErrorSeverity
from callboard.domain.models.notification import NotificationType
from callboard.domain.services.error_handling import (
    ERROR_CODES,
    ErrorHandlingService,
    create_async_error_handler,
    handle_api_error,
    handle_error,
    handle_form_error,
)
from callboard.domain.services.notification_store import get_notification_store


def http_error(status: int, payload=None) -> httpx.HTTPStatusError:
    request = httpx.Request("GET", "https://api.voice.test/call")
    response = httpx.Response(status, request=request, json=payload or {})
    return httpx.HTTPStatusError(f"HTTP {status}", request=request, response=response)


class EmailForm(BaseModel):
    email: int


class NameForm(BaseModel):
    name: str


class CountForm(BaseModel):
    count: int


def validation_error(model, **data) -> ValidationError:
    with pytest.raises(ValidationError) as exc_info:
        model(**data)
    return exc_info.value


class TestErrorCodes:

    def test_table_is_complete(self):
        assert len(ERROR_CODES) == 23
        for code, entry in ERROR_CODES.items():
            assert set(entry) == {"message", "user_message", "severity", "category", "retryable"}, code

    def test_known_code_on_dict(self):
        details = ErrorHandlingService.parse_error({"code": "AUTH_TOKEN_EXPIRED", "message": "jwt expired"})

        assert details.code == "AUTH_TOKEN_EXPIRED"
        assert details.category == ErrorCategory.AUTHENTICATION
        assert details.retryable is False

    def test_known_code_on_exception(self):
        error = VoiceProviderError("whatever", code="CAMPAIGN_ALREADY_RUNNING")
        details = ErrorHandlingService.parse_error(error)

        assert details.code == "CAMPAIGN_ALREADY_RUNNING"
        assert details.category == ErrorCategory.USER

    def test_unknown_code_is_ignored(self):
        assert ErrorHandlingService.parse_error({"code": "NOPE", "message": "x"}).code == "UNKNOWN_ERROR"


class TestHttpErrors:

    @pytest.mark.parametrize("status,code", [
        (401, "AUTH_TOKEN_EXPIRED"),
        (403, "INSUFFICIENT_PERMISSIONS"),
        (404, "RESOURCE_NOT_FOUND"),
        (429, "RATE_LIMIT_EXCEEDED"),
        (500, "INTERNAL_SERVER_ERROR"),
        (503, "HTTP_503"),
    ])
    def test_status_codes(self, status, code):
        assert ErrorHandlingService.parse_error(http_error(status)).code == code

    def test_bad_request_keeps_response_message(self):
        details = ErrorHandlingService.parse_error(http_error(400, {"message": "phoneNumberId is required"}))

        assert details.code == "BAD_REQUEST"
        assert details.message == "phoneNumberId is required"
        assert details.category == ErrorCategory.VALIDATION

    def test_rate_limit_is_retryable(self):
        assert ErrorHandlingService.parse_error(http_error(429)).retryable is True

    def test_dict_response_status(self):
        details = ErrorHandlingService.parse_error({"message": "no", "response": {"status": 403}})
        assert details.code == "INSUFFICIENT_PERMISSIONS"


class TestTransportErrors:

    def test_httpx_connect_error(self):
        details = ErrorHandlingService.parse_error(httpx.ConnectError("connection refused"))

        assert details.code == "NETWORK_ERROR"
        assert details.severity == ErrorSeverity.HIGH
        assert details.retryable is True

    def test_builtin_connection_error(self):
        assert ErrorHandlingService.parse_error(ConnectionResetError()).code == "NETWORK_ERROR"

    def test_timeouts(self):
        assert ErrorHandlingService.parse_error(httpx.ReadTimeout("slow")).code == "TIMEOUT_ERROR"
        assert ErrorHandlingService.parse_error(TimeoutError()).code == "TIMEOUT_ERROR"


class TestValidationErrors:

    def test_email(self):
        error = validation_error(EmailForm, email="not-a-number")
        assert ErrorHandlingService.parse_error(error).code == "VALIDATION_INVALID_EMAIL"

    def test_required(self):
        error = validation_error(NameForm)
        assert ErrorHandlingService.parse_error(error).code == "VALIDATION_REQUIRED_FIELD"

    def test_generic(self):
        details = ErrorHandlingService.parse_error(validation_error(CountForm, count="abc"))

        assert details.code == "VALIDATION_ERROR"
        assert details.severity == ErrorSeverity.LOW

    def test_duck_typed_validation_error(self):
        class ValidationError(Exception):
            pass

        details = ErrorHandlingService.parse_error(ValidationError("Invalid phone number"))
        assert details.code == "VALIDATION_INVALID_PHONE"


class TestVoiceProviderErrors:

    def test_unauthorized(self):
        error = VoiceProviderError("Voice API Error: 401 - Invalid token", status_code=401)
        assert ErrorHandlingService.parse_error(error).code == "VOICE_PROVIDER_KEY_INVALID"

    def test_not_initialized(self):
        details = ErrorHandlingService.parse_error(VoiceProviderNotInitializedError())
        assert details.code == "VOICE_PROVIDER_KEY_INVALID"

    def test_insufficient_credits(self):
        error = VoiceProviderError("Voice API Error: 402 - Insufficient credits", status_code=402)
        assert ErrorHandlingService.parse_error(error).code == "VOICE_INSUFFICIENT_CREDITS"

    def test_call_failed(self):
        assert ErrorHandlingService.parse_error(Exception("Voice call failed")).code == "VOICE_CALL_FAILED"

    def test_generic_voice_error(self):
        error = VoiceProviderError("Voice API Error: 502 - Upstream unavailable", status_code=502)
        details = ErrorHandlingService.parse_error(error)

        assert details.code == "VOICE_ERROR"
        assert details.message == "Voice API Error: 502 - Upstream unavailable"
        assert details.retryable is True


class TestPaymentAndUnknownErrors:

    def test_stripe_declined(self):
        assert ErrorHandlingService.parse_error(Exception("Stripe: card declined")).code == "BILLING_PAYMENT_FAILED"

    def test_stripe_by_type(self):
        details = ErrorHandlingService.parse_error({"type": "StripeCardError", "message": "Something odd"})
        assert details.code == "STRIPE_ERROR"

    def test_unknown_keeps_message(self):
        details = ErrorHandlingService.parse_error(RuntimeError("boom"))

        assert details.code == "UNKNOWN_ERROR"
        assert details.message == "boom"
        assert details.category == ErrorCategory.SYSTEM

    def test_unknown_without_message(self):
        assert ErrorHandlingService.parse_error(object()).message == "Unknown error"


class TestErrorTitles:

    @pytest.mark.parametrize("code,title", [
        ("NETWORK_ERROR", "Connection Error"),
        ("AUTH_TOKEN_EXPIRED", "Authentication Error"),
        ("INSUFFICIENT_PERMISSIONS", "Permission Error"),
        ("VALIDATION_INVALID_EMAIL", "Validation Error"),
        ("VOICE_CALL_FAILED", "Service Error"),
        ("UNKNOWN_ERROR", "System Error"),
        ("CAMPAIGN_ALREADY_RUNNING", "Action Error"),
    ])
    def test_title_by_category(self, code, title):
        assert ErrorHandlingService.get_error_title(ErrorHandlingService.from_code(code)) == title


class TestHandleError:

    def test_notifies_organization_with_retry_action(self):
        context = ErrorContext(component="voice", action="list_calls", metadata={"organization_id": "org_1"})
        details = handle_error(httpx.ConnectError("refused"), context)

        notifications = get_notification_store("org_1").notifications
        assert details.code == "NETWORK_ERROR"
        assert len(notifications) == 1
        notification = notifications[0]
        assert notification.type == NotificationType.ERROR
        assert notification.title == "Connection Error"
        assert notification.message.startswith("[voice] Unable to connect")
        assert notification.source == "voice"
        assert notification.action.label == "Retry"
        # Other organizations never see it
        assert get_notification_store("org_2").notifications == []

    def test_non_retryable_has_no_action(self):
        context = ErrorContext(metadata={"organization_id": "org_1"})
        handle_error({"code": "AUTH_TOKEN_EXPIRED"}, context)

        assert get_notification_store("org_1").notifications[0].action is None

    def test_notify_false_is_silent(self):
        handle_error(RuntimeError("boom"), notify=False)
        assert get_notification_store().notifications == []

    def test_logs_high_severity_as_error(self, caplog):
        with caplog.at_level(logging.WARNING, logger="callboard.domain.services.error_handling"):
            handle_error(httpx.ConnectError("refused"), ErrorContext(component="voice", action="sync"), notify=False)
            handle_error(TimeoutError(), notify=False)

        levels = [record.levelno for record in caplog.records]
        assert levels == [logging.ERROR, logging.WARNING]
        assert "voice:sync" in caplog.records[0].getMessage()

    def test_async_error_handler_binds_context(self):
        handler = create_async_error_handler("campaigns", "launch")
        details = handler(RuntimeError("boom"))

        assert details.context.component == "campaigns"
        assert details.context.action == "launch"

    def test_form_and_api_helpers(self):
        form = handle_form_error(validation_error(NameForm), "signup")
        api = handle_api_error(http_error(404), "/calls/abc", "GET")

        assert form.context.action == "form_submission"
        assert form.code == "VALIDATION_REQUIRED_FIELD"
        assert api.context.action == "GET /calls/abc"
        assert api.code == "RESOURCE_NOT_FOUND"
