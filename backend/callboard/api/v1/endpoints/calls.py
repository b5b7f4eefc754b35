"""
Calls Endpoints
Call log, outbound calls and per-call lead scores from the voice provider
"""
import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field

from callboard.api.v1.dependencies import (
    CurrentUser,
    get_voice_service,
    require_organization,
    voice_error_to_http,
)
from callboard.domain.interfaces.voice_provider import VoiceProviderError
from callboard.domain.models.call import VoiceCall
from callboard.domain.models.lead_score import LeadScore
from callboard.services.voice_service import VoiceService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/calls", tags=["calls"])


class CustomerRequest(BaseModel):
    number: str
    name: Optional[str] = None
    email: Optional[str] = None
    extension: Optional[str] = None


class CreateCallRequest(BaseModel):
    """Outbound call. One of assistant_id, squad_id or assistant_overrides is required."""
    customer: CustomerRequest
    assistant_id: Optional[str] = None
    squad_id: Optional[str] = None
    phone_number_id: Optional[str] = None
    assistant_overrides: Optional[Dict[str, Any]] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)
    max_duration_seconds: Optional[int] = Field(None, gt=0)


class LeadScoreResponse(BaseModel):
    call_id: str
    lead_score: LeadScore
    high_quality: bool


@router.get("/", response_model=List[VoiceCall])
async def list_calls(
    assistant_id: Optional[str] = Query(None),
    phone_number_id: Optional[str] = Query(None),
    limit: int = Query(100, ge=1, le=1000),
    created_after: Optional[str] = Query(None, description="ISO timestamp"),
    created_before: Optional[str] = Query(None, description="ISO timestamp"),
    current_user: CurrentUser = Depends(require_organization),
    voice: VoiceService = Depends(get_voice_service),
):
    """One page of calls, newest first."""
    try:
        return await voice.get_calls(
            assistant_id=assistant_id,
            phone_number_id=phone_number_id,
            limit=limit,
            created_at_gt=created_after,
            created_at_lt=created_before,
        )
    except VoiceProviderError as e:
        raise voice_error_to_http(e, "list_calls", current_user) from e


@router.get("/{call_id}", response_model=VoiceCall)
async def get_call(
    call_id: str,
    current_user: CurrentUser = Depends(require_organization),
    voice: VoiceService = Depends(get_voice_service),
):
    try:
        return await voice.get_call(call_id)
    except VoiceProviderError as e:
        raise voice_error_to_http(e, "get_call", current_user) from e


@router.post("/", response_model=VoiceCall, status_code=201)
async def create_call(
    request: CreateCallRequest,
    current_user: CurrentUser = Depends(require_organization),
    voice: VoiceService = Depends(get_voice_service),
):
    """Start an outbound call for the organization."""
    try:
        return await voice.create_call(
            request.customer.model_dump(exclude_none=True),
            assistant_id=request.assistant_id,
            squad_id=request.squad_id,
            phone_number_id=request.phone_number_id,
            assistant_overrides=request.assistant_overrides,
            metadata={**request.metadata, "created_by": current_user.id},
            max_duration_seconds=request.max_duration_seconds,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except VoiceProviderError as e:
        raise voice_error_to_http(e, "create_call", current_user) from e


@router.post("/{call_id}/end", status_code=204)
async def end_call(
    call_id: str,
    current_user: CurrentUser = Depends(require_organization),
    voice: VoiceService = Depends(get_voice_service),
):
    try:
        await voice.end_call(call_id)
    except VoiceProviderError as e:
        raise voice_error_to_http(e, "end_call", current_user) from e
    logger.info(f"Call {call_id} ended by user {current_user.id}")


@router.get("/{call_id}/lead-score", response_model=LeadScoreResponse)
async def get_call_lead_score(
    call_id: str,
    current_user: CurrentUser = Depends(require_organization),
    voice: VoiceService = Depends(get_voice_service),
):
    """Rule-based 0-100 lead score for one call."""
    try:
        call = await voice.get_call(call_id)
    except VoiceProviderError as e:
        raise voice_error_to_http(e, "get_call_lead_score", current_user) from e

    score = voice.score_lead_from_call(call)
    return LeadScoreResponse(call_id=call.id or call_id, lead_score=score, high_quality=score.is_high_quality)
