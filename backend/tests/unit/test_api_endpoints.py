"""
Tests for the HTTP API
Auth, Supabase and the voice provider are replaced through dependency overrides.
"""
import hashlib
import hmac
import json
from datetime import datetime
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
from fastapi.testclient import TestClient

from callboard.api.v1.dependencies import (
    BillingContext,
    CurrentUser,
    get_billing_context,
    get_supabase,
    get_voice_service,
    require_organization,
)
from callboard.core.config import get_settings
from callboard.domain.interfaces.voice_provider import VoiceProviderError, VoiceProviderNotInitializedError
from callboard.domain.models.analytics import CallAnalytics
from callboard.domain.models.call import VoiceCall
from callboard.domain.services.lead_scorer import score_lead_from_call
from callboard.domain.services.notification_service import get_notification_service
from callboard.domain.services.notification_store import get_notification_store
from callboard.domain.services.plan_catalog import PlanCatalog
from callboard.infrastructure.voice import VapiProvider
from callboard.main import app
from callboard.services.voice_service import VoiceService

API = "/api/v1"

USER = CurrentUser(id="user_1", email="sam@example.com", name="Sam", organization_id="org_1", role="admin")


def supabase_returning(rows):
    client = MagicMock()
    client.table.return_value.select.return_value.eq.return_value.limit.return_value.execute.return_value.data = rows
    return client


def voice_behind(handler):
    """Dependency override serving a real VapiProvider over a mock transport"""
    async def override():
        provider = VapiProvider(transport=httpx.MockTransport(handler))
        await provider.initialize({"organization_id": "org_1", "api_key": "vapi-key"})
        return VoiceService(provider=provider)
    return override


@pytest.fixture
def voice():
    service = AsyncMock(spec=VoiceService)
    service.score_lead_from_call.side_effect = score_lead_from_call
    return service


@pytest.fixture
def billing():
    return BillingContext(organization_id="org_1", plan=PlanCatalog().get_plan("employee_1"))


@pytest.fixture
def client(voice, billing):
    app.dependency_overrides[require_organization] = lambda: USER
    app.dependency_overrides[get_voice_service] = lambda: voice
    app.dependency_overrides[get_billing_context] = lambda: billing
    app.dependency_overrides[get_supabase] = lambda: supabase_returning([])
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def anonymous_client():
    """Only Supabase is mocked; auth dependencies run for real"""
    supabase = MagicMock()
    app.dependency_overrides[get_supabase] = lambda: supabase
    yield TestClient(app), supabase
    app.dependency_overrides.clear()


class TestHealth:

    def test_root_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
        assert response.json()["service"] == "callboard-backend"
        assert response.json()["voice_provider"] == "vapi"

    def test_prefixed_health(self, client):
        assert client.get(f"{API}/health").status_code == 200

    def test_root(self, client):
        assert client.get("/").json()["docs"] == "/docs"


class TestAuth:

    def test_missing_authorization(self, anonymous_client):
        client, _ = anonymous_client
        response = client.get(f"{API}/calls/")

        assert response.status_code == 401
        assert "Authorization" in response.json()["detail"]

    def test_invalid_authorization_format(self, anonymous_client):
        client, _ = anonymous_client
        response = client.get(f"{API}/analytics/calls", headers={"Authorization": "InvalidFormat"})

        assert response.status_code == 401

    def test_user_without_organization(self, anonymous_client):
        client, supabase = anonymous_client
        supabase.auth.get_user.return_value = MagicMock(user=MagicMock(id="user_1", email="sam@example.com"))
        supabase.table.return_value.select.return_value.eq.return_value.limit.return_value.execute.return_value.data = [
            {"id": "user_1", "organization_id": None, "role": "admin", "name": "Sam"}
        ]

        response = client.get(f"{API}/notifications/", headers={"Authorization": "Bearer token"})

        assert response.status_code == 403

    def test_rejected_token(self, anonymous_client):
        client, supabase = anonymous_client
        supabase.auth.get_user.side_effect = Exception("invalid JWT")

        response = client.get(f"{API}/notifications/", headers={"Authorization": "Bearer token"})

        assert response.status_code == 401
        assert "Token validation failed" in response.json()["detail"]


class TestPlans:

    def test_list_plans(self, client):
        response = client.get(f"{API}/plans/")

        assert response.status_code == 200
        data = response.json()
        assert [item["plan"]["id"] for item in data] == ["employee_1", "employee_3", "employee_5", "enterprise"]
        assert data[0]["limits"]["included_credits"] == 200_000

    def test_voice_tiers(self, client):
        data = client.get(f"{API}/plans/voice-tiers").json()
        labels = {item["tier"]["tier"]: item["rate_label"] for item in data}

        assert labels["standard"] == "30 credits/min (Standard)"
        assert len(labels) == 4


class TestCalls:

    def test_list_calls(self, client, voice):
        voice.get_calls.return_value = [VoiceCall.from_api({"id": "call_1", "assistantId": "asst_1"})]

        response = client.get(f"{API}/calls/", params={"assistant_id": "asst_1", "limit": 10})

        assert response.status_code == 200
        assert response.json()[0]["id"] == "call_1"
        assert response.json()[0]["assistantId"] == "asst_1"
        voice.get_calls.assert_awaited_once_with(
            assistant_id="asst_1", phone_number_id=None, limit=10, created_at_gt=None, created_at_lt=None
        )

    def test_limit_is_bounded(self, client):
        assert client.get(f"{API}/calls/", params={"limit": 5000}).status_code == 422

    def test_provider_error_is_classified_and_notified(self, client, voice):
        voice.get_calls.side_effect = VoiceProviderError("Voice API Error: 401 - Invalid Key", status_code=401)

        response = client.get(f"{API}/calls/")

        assert response.status_code == 502
        detail = response.json()["detail"]
        assert detail["code"] == "VOICE_PROVIDER_KEY_INVALID"
        assert detail["retryable"] is False
        assert get_notification_store("org_1").notifications[0].title == "Service Error"

    def test_missing_call(self, client, voice):
        voice.get_call.side_effect = VoiceProviderError("Voice API Error: 404 - Call not found", status_code=404)
        assert client.get(f"{API}/calls/nope").status_code == 404

    def test_voice_not_configured(self, client, voice):
        voice.get_call.side_effect = VoiceProviderNotInitializedError()
        assert client.get(f"{API}/calls/call_1").status_code == 412

    def test_unreachable_provider_is_a_bad_gateway(self, client):
        def refuse(request):
            raise httpx.ConnectError("Connection refused", request=request)

        app.dependency_overrides[get_voice_service] = voice_behind(refuse)

        response = client.get(f"{API}/calls/")

        assert response.status_code == 502
        detail = response.json()["detail"]
        assert detail["code"] == "NETWORK_ERROR"
        assert detail["retryable"] is True
        assert get_notification_store("org_1").notifications[0].title == "Connection Error"

    def test_provider_timeout_is_a_bad_gateway(self, client):
        def stall(request):
            raise httpx.ReadTimeout("timed out", request=request)

        app.dependency_overrides[get_voice_service] = voice_behind(stall)

        response = client.get(f"{API}/analytics/calls")

        assert response.status_code == 502
        assert response.json()["detail"]["code"] == "TIMEOUT_ERROR"

    def test_create_call(self, client, voice):
        voice.create_call.return_value = VoiceCall.from_api({"id": "call_new", "status": "queued"})

        response = client.post(f"{API}/calls/", json={
            "customer": {"number": "+441234567890", "name": "Jane"},
            "assistant_id": "asst_1",
            "metadata": {"campaign_name": "Spring"},
        })

        assert response.status_code == 201
        assert response.json()["status"] == "queued"
        args, kwargs = voice.create_call.call_args
        assert args[0] == {"number": "+441234567890", "name": "Jane"}
        assert kwargs["metadata"] == {"campaign_name": "Spring", "created_by": "user_1"}

    def test_create_call_without_assistant(self, client, voice):
        voice.create_call.side_effect = ValueError("Must provide either assistant_id, squad_id, or assistant_overrides")

        response = client.post(f"{API}/calls/", json={"customer": {"number": "+441234567890"}})

        assert response.status_code == 400

    def test_end_call(self, client, voice):
        assert client.post(f"{API}/calls/call_1/end").status_code == 204
        voice.end_call.assert_awaited_once_with("call_1")

    def test_lead_score(self, client, voice):
        voice.get_call.return_value = VoiceCall.from_api({
            "id": "call_1",
            "duration": 400,
            "analysis": {"sentiment": "positive"},
        })

        data = client.get(f"{API}/calls/call_1/lead-score").json()

        assert data["call_id"] == "call_1"
        assert data["lead_score"]["score"] == 85
        assert data["high_quality"] is True
        assert [f["factor"] for f in data["lead_score"]["factors"]] == ["Long Call Duration", "Positive Sentiment"]


class TestAnalytics:

    def test_date_range_is_inclusive(self, client, voice):
        voice.get_call_analytics.return_value = CallAnalytics(total_calls=2, successful_calls=1)

        response = client.get(f"{API}/analytics/calls", params={"from": "2024-01-01", "to": "2024-01-31", "tz": "UTC"})

        assert response.status_code == 200
        assert response.json()["total_calls"] == 2
        voice.get_call_analytics.assert_awaited_once_with(
            start_date="2024-01-01T00:00:00+00:00",
            end_date="2024-02-01T00:00:00+00:00",
            assistant_id=None,
            tz_name="UTC",
        )

    def test_default_range(self, client, voice):
        voice.get_call_analytics.return_value = CallAnalytics()

        assert client.get(f"{API}/analytics/calls").status_code == 200
        kwargs = voice.get_call_analytics.call_args.kwargs
        assert kwargs["start_date"] < kwargs["end_date"]
        assert kwargs["end_date"].endswith("+00:00")
        assert datetime.fromisoformat(kwargs["end_date"]).tzinfo is not None

    def test_invalid_date(self, client):
        assert client.get(f"{API}/analytics/calls", params={"from": "01/01/2024"}).status_code == 400

    def test_from_after_to(self, client):
        response = client.get(f"{API}/analytics/calls", params={"from": "2024-02-01", "to": "2024-01-01"})
        assert response.status_code == 400


class TestCapacity:

    def test_uses_billing_plan(self, client):
        response = client.post(f"{API}/capacity/estimate", json={"lead_count": 300})

        assert response.status_code == 200
        data = response.json()
        assert data["credits_needed"] == 18_000
        assert data["concurrent"] == 5
        assert data["completion_hours"] == pytest.approx(2)
        assert data["credit_status"] == "covered"
        assert data["upgrade"] is None

    def test_explicit_rate_and_plan(self, client):
        data = client.post(f"{API}/capacity/estimate", json={
            "lead_count": 40, "credits_per_minute": 1, "plan_id": "enterprise",
        }).json()

        assert data["credits_needed"] == 80
        assert data["concurrent"] == 40

    def test_voice_tier_rate(self, client):
        data = client.post(f"{API}/capacity/estimate", json={"lead_count": 10, "voice_tier": "ultra"}).json()
        assert data["credits_needed"] == 800

    def test_unknown_plan(self, client):
        response = client.post(f"{API}/capacity/estimate", json={"lead_count": 10, "plan_id": "nope"})
        assert response.status_code == 404

    def test_exhausted_allowance(self, client, billing):
        billing.credits_used_this_period = 200_000

        data = client.post(f"{API}/capacity/estimate", json={"lead_count": 10}).json()

        assert data["credits_remaining"] == 0
        assert data["credit_status"] == "insufficient"

    def test_today_with_upgrade(self, client):
        data = client.post(f"{API}/capacity/estimate", json={
            "lead_count": 2000, "schedule": {"timeframe": "today"},
        }).json()

        assert data["calendar_days"] == 1
        assert data["upgrade"]["plan"]["id"] == "employee_3"
        assert data["upgrade"]["speedup"] == 3.0

    def test_invalid_schedule(self, client):
        response = client.post(f"{API}/capacity/estimate", json={
            "lead_count": 10,
            "schedule": {"working_hours_start": "18:00", "working_hours_end": "09:00"},
        })
        assert response.status_code == 422

    def test_invalid_duration(self, client):
        response = client.post(f"{API}/capacity/estimate", json={"lead_count": 10, "avg_duration": 0})
        assert response.status_code == 422


class TestNotifications:

    @pytest.fixture
    def seeded(self):
        service = get_notification_service("org_1")
        ids = {
            "call": service.notify_call_failed("Jane", "+44123", "busy"),
            "lead": service.notify_lead_generated("Jane", 90, "Spring", "+44123", "lead_1"),
            "billing": service.notify_critical_credits(500, 2),
        }
        get_notification_service("org_2").notify_critical_credits(100, 1)
        return ids

    def test_list(self, client, seeded):
        data = client.get(f"{API}/notifications/").json()

        assert [n["id"] for n in data["notifications"]] == [seeded["billing"], seeded["lead"], seeded["call"]]
        assert data["unread_count"] == 3

    def test_filters(self, client, seeded):
        data = client.get(f"{API}/notifications/", params={"category": ["calls", "billing"]}).json()
        assert {n["id"] for n in data["notifications"]} == {seeded["call"], seeded["billing"]}

        data = client.get(f"{API}/notifications/", params={"priority": "urgent", "limit": 5}).json()
        assert [n["id"] for n in data["notifications"]] == [seeded["billing"]]

    def test_date_range_with_timezone(self, client, seeded):
        data = client.get(f"{API}/notifications/", params={"start": "2000-01-01T00:00:00+00:00"}).json()
        assert len(data["notifications"]) == 3

        data = client.get(f"{API}/notifications/", params={"end": "2000-01-01T00:00:00Z"}).json()
        assert data["notifications"] == []

    def test_mark_read(self, client, seeded):
        assert client.post(f"{API}/notifications/{seeded['call']}/read").status_code == 204

        data = client.get(f"{API}/notifications/", params={"unread_only": True}).json()
        assert seeded["call"] not in {n["id"] for n in data["notifications"]}
        assert data["unread_count"] == 2

    def test_mark_all_read(self, client, seeded):
        assert client.post(f"{API}/notifications/read-all").status_code == 204
        assert client.get(f"{API}/notifications/").json()["unread_count"] == 0

    def test_unknown_notification(self, client, seeded):
        assert client.post(f"{API}/notifications/notif_missing/read").status_code == 404
        assert client.delete(f"{API}/notifications/notif_missing").status_code == 404

    def test_delete_one(self, client, seeded):
        assert client.delete(f"{API}/notifications/{seeded['lead']}").status_code == 204
        assert len(client.get(f"{API}/notifications/").json()["notifications"]) == 2

    def test_clear_category(self, client, seeded):
        assert client.delete(f"{API}/notifications/", params={"category": "billing"}).status_code == 204

        remaining = {n["id"] for n in client.get(f"{API}/notifications/").json()["notifications"]}
        assert remaining == {seeded["call"], seeded["lead"]}
        # Other organizations are untouched
        assert len(get_notification_store("org_2").notifications) == 1

    def test_clear_all(self, client, seeded):
        assert client.delete(f"{API}/notifications/").status_code == 204
        assert client.get(f"{API}/notifications/").json()["notifications"] == []

    def test_stats(self, client, seeded):
        stats = client.get(f"{API}/notifications/stats").json()

        assert stats["total"] == 3
        assert stats["by_category"]["billing"] == 1
        assert stats["by_priority"]["urgent"] == 1
        assert stats["recent_activity"]["today"] == 3


class TestVoice:

    def test_credentials_never_expose_key(self, client):
        app.dependency_overrides[get_supabase] = lambda: supabase_returning(
            [{"provider": "vapi", "provider_api_key": "super-secret"}]
        )

        response = client.get(f"{API}/voice/credentials")

        assert response.json() == {"has_api_key": True, "provider": "vapi"}
        assert "super-secret" not in response.text

    def test_no_credentials(self, client):
        assert client.get(f"{API}/voice/credentials").json() == {"has_api_key": False, "provider": None}

    def test_launch_campaign(self, client, voice):
        voice.launch_production_campaign.return_value = {
            "success": True, "campaign_id": "campaign_abc", "scheduled_calls": 2,
        }

        response = client.post(f"{API}/voice/campaigns", json={
            "name": "Spring",
            "assistant_id": "asst_1",
            "phone_number_id": "pn_1",
            "leads": [{"number": "+44111"}, {"number": "+44222", "name": "Jane"}],
        })

        assert response.status_code == 201
        assert response.json()["campaign_id"] == "campaign_abc"
        campaign = voice.launch_production_campaign.call_args.args[0]
        assert len(campaign["leads"]) == 2
        notification = get_notification_store("org_1").notifications[0]
        assert notification.title == "Campaign Started"

    def test_launch_without_leads(self, client, voice):
        voice.launch_production_campaign.side_effect = ValueError("No leads provided for campaign")

        response = client.post(f"{API}/voice/campaigns", json={
            "name": "Spring", "assistant_id": "asst_1", "phone_number_id": "pn_1", "leads": [],
        })

        assert response.status_code == 400
        assert response.json()["detail"] == "No leads provided for campaign"

    def test_launch_without_key(self, client, voice):
        voice.launch_production_campaign.side_effect = VoiceProviderNotInitializedError("Voice API key not configured")

        response = client.post(f"{API}/voice/campaigns", json={
            "name": "Spring", "assistant_id": "asst_1", "phone_number_id": "pn_1",
            "leads": [{"number": "+44111"}],
        })

        assert response.status_code == 412


END_OF_CALL_REPORT = {
    "message": {
        "type": "end-of-call-report",
        "endedReason": "customer-ended-call",
        "durationSeconds": 400,
        "analysis": {"sentiment": "positive", "outcome": "interested"},
        "call": {
            "id": "call_1",
            "customer": {"number": "+441234567890", "name": "Jane"},
            "metadata": {"organization_id": "org_9", "campaign_name": "Spring"},
        },
    }
}


class TestWebhooks:

    def test_end_of_call_report(self, client):
        response = client.post(f"{API}/webhooks/voice", json=END_OF_CALL_REPORT)

        assert response.status_code == 200
        data = response.json()
        assert data["processed"] is True
        assert data["call_id"] == "call_1"
        assert data["lead_score"] == 85

        titles = [n.title for n in get_notification_store("org_9").notifications]
        assert titles == ["High-Quality Lead Generated", "Call Completed"]
        call_completed = get_notification_store("org_9").notifications[1]
        assert call_completed.message == "Call with Jane completed (400s) - interested | Score: 85/100"

    def test_other_events_are_acknowledged(self, client):
        response = client.post(f"{API}/webhooks/voice", json={"message": {"type": "status-update"}})

        assert response.status_code == 200
        assert response.json() == {"received": True, "processed": False, "event": "status-update"}

    def test_invalid_json(self, client):
        response = client.post(f"{API}/webhooks/voice", content=b"not json")
        assert response.status_code == 400

    def test_signature_required_when_secret_configured(self, client, monkeypatch):
        monkeypatch.setenv("WEBHOOK_SECRET", "whsec_test")
        get_settings.cache_clear()
        body = json.dumps(END_OF_CALL_REPORT).encode()

        unsigned = client.post(f"{API}/webhooks/voice", content=body)
        forged = client.post(f"{API}/webhooks/voice", content=body, headers={"X-Vapi-Signature": "0" * 64})
        signature = hmac.new(b"whsec_test", body, hashlib.sha256).hexdigest()
        signed = client.post(f"{API}/webhooks/voice", content=body, headers={"X-Vapi-Signature": signature})

        assert unsigned.status_code == 401
        assert forged.status_code == 401
        assert signed.status_code == 200
        assert signed.json()["processed"] is True
