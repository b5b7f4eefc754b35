"""
Voice Provider Endpoints
Credential status and campaign launch for the organization's voice account
"""
import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from supabase import Client

from callboard.api.v1.dependencies import (
    CurrentUser,
    get_supabase,
    get_voice_service,
    require_organization,
    voice_error_to_http,
)
from callboard.domain.interfaces.voice_provider import VoiceProviderError
from callboard.domain.services.notification_service import get_notification_service
from callboard.services.voice_service import VoiceService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/voice", tags=["voice"])


class VoiceCredentialsResponse(BaseModel):
    """Never includes the key itself"""
    has_api_key: bool
    provider: Optional[str] = None


class CampaignLead(BaseModel):
    number: str
    name: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)


class CampaignSchedule(BaseModel):
    start_time: str
    end_time: str
    timezone: str = "UTC"


class LaunchCampaignRequest(BaseModel):
    name: str
    assistant_id: str
    phone_number_id: str
    leads: List[CampaignLead]
    schedule: Optional[CampaignSchedule] = None
    max_concurrent: Optional[int] = Field(None, gt=0)


class LaunchCampaignResponse(BaseModel):
    success: bool
    campaign_id: str
    scheduled_calls: int


@router.get("/credentials", response_model=VoiceCredentialsResponse)
async def get_voice_credentials(
    current_user: CurrentUser = Depends(require_organization),
    supabase: Client = Depends(get_supabase),
):
    """Whether the organization has a voice provider key configured."""
    credentials = VoiceService(supabase).get_credentials(current_user.organization_id)
    if not credentials or not credentials.get("provider_api_key"):
        return VoiceCredentialsResponse(has_api_key=False, provider=(credentials or {}).get("provider"))
    return VoiceCredentialsResponse(has_api_key=True, provider=credentials.get("provider"))


@router.post("/campaigns", response_model=LaunchCampaignResponse, status_code=201)
async def launch_campaign(
    request: LaunchCampaignRequest,
    current_user: CurrentUser = Depends(require_organization),
    voice: VoiceService = Depends(get_voice_service),
):
    """Launch a dialing campaign for a lead list."""
    try:
        result = await voice.launch_production_campaign(request.model_dump())
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except VoiceProviderError as e:
        raise voice_error_to_http(e, "launch_campaign", current_user) from e

    get_notification_service(current_user.organization_id).notify_campaign_started(
        name=request.name,
        leads_count=result["scheduled_calls"],
        campaign_id=result["campaign_id"],
    )
    return LaunchCampaignResponse(**result)
