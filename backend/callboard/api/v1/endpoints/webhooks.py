"""
Voice Webhook Endpoint
Receives call lifecycle events from the voice provider
"""
import json
import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Header, HTTPException, Request

from callboard.core.config import get_settings
from callboard.domain.models.call import VoiceCall
from callboard.domain.services.lead_scorer import score_lead_from_call
from callboard.domain.services.notification_service import get_notification_service
from callboard.services.voice_service import VoiceService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/webhooks", tags=["webhooks"])

END_OF_CALL_REPORT = "end-of-call-report"

# end-of-call-report fields copied onto the embedded call
REPORT_FIELDS = (
    "analysis", "endedReason", "cost", "costBreakdown", "summary",
    "transcript", "recordingUrl", "startedAt", "endedAt", "messages",
)


def build_call_from_report(message: Dict[str, Any]) -> VoiceCall:
    """Merge an end-of-call-report into its call record."""
    call = dict(message.get("call") or {})
    for field in REPORT_FIELDS:
        if message.get(field) is not None:
            call[field] = message[field]
    if message.get("durationSeconds") is not None:
        call["duration"] = message["durationSeconds"]
    if message.get("customer") and not call.get("customer"):
        call["customer"] = message["customer"]
    call.setdefault("status", "ended")
    return VoiceCall.from_api(call)


def process_end_of_call_report(message: Dict[str, Any]) -> Dict[str, Any]:
    """Score the call and notify its organization."""
    call = build_call_from_report(message)
    organization_id: Optional[str] = call.metadata.get("organization_id")
    score = score_lead_from_call(call)
    notifications = get_notification_service(organization_id)

    customer = call.customer
    contact = (customer.name or customer.number) if customer else None
    contact = contact or "Unknown contact"
    outcome = (call.analysis.outcome if call.analysis else None) or call.ended_reason or "unknown"
    campaign_name = call.metadata.get("campaign_name") or "Direct"

    notifications.notify_call_completed(
        contact_name=contact,
        duration=call.duration or 0,
        outcome=outcome,
        campaign_name=campaign_name,
        lead_score=score.score,
    )
    notifications.notify_lead_generated(
        name=contact,
        score=score.score,
        campaign_name=campaign_name,
        phone_number=(customer.number if customer else None) or "",
        lead_id=call.metadata.get("lead_id") or call.id,
    )
    logger.info(f"Processed end-of-call report for call {call.id} (score {score.score})")
    return {"call_id": call.id, "lead_score": score.score}


@router.post("/voice")
async def voice_webhook(
    request: Request,
    x_vapi_signature: Optional[str] = Header(None, alias="X-Vapi-Signature"),
):
    """
    Voice provider webhook.

    When settings.webhook_secret is set the body must carry a matching
    HMAC-SHA256 signature. Only end-of-call-report events are processed;
    other events are acknowledged.
    """
    body = await request.body()

    secret = get_settings().webhook_secret
    if secret and not VoiceService.verify_webhook(x_vapi_signature or "", body, secret):
        logger.warning("Rejected voice webhook with invalid signature")
        raise HTTPException(status_code=401, detail="Invalid webhook signature")

    try:
        payload = json.loads(body or b"{}")
    except ValueError:
        raise HTTPException(status_code=400, detail="Webhook body must be JSON")

    message = payload.get("message", payload) if isinstance(payload, dict) else {}
    event = message.get("type") if isinstance(message, dict) else None

    if event != END_OF_CALL_REPORT:
        logger.debug(f"Ignoring voice webhook event: {event}")
        return {"received": True, "processed": False, "event": event}

    result = process_end_of_call_report(message)
    return {"received": True, "processed": True, "event": event, **result}
