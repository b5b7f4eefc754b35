"""
Analytics Endpoints
Dashboard call analytics aggregated from the voice provider's call log
"""
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from callboard.api.v1.dependencies import (
    CurrentUser,
    get_voice_service,
    require_organization,
    voice_error_to_http,
)
from callboard.domain.interfaces.voice_provider import VoiceProviderError
from callboard.domain.models.analytics import CallAnalytics
from callboard.services.voice_service import VoiceService

router = APIRouter(prefix="/analytics", tags=["analytics"])

DEFAULT_RANGE_DAYS = 30


def _parse_date(value: str, name: str) -> datetime:
    try:
        return datetime.strptime(value, "%Y-%m-%d").replace(tzinfo=timezone.utc)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Invalid {name} date '{value}'. Use YYYY-MM-DD")


@router.get("/calls", response_model=CallAnalytics)
async def get_call_analytics(
    from_date: Optional[str] = Query(None, alias="from", description="Start date (YYYY-MM-DD)"),
    to_date: Optional[str] = Query(None, alias="to", description="End date (YYYY-MM-DD)"),
    assistant_id: Optional[str] = Query(None),
    tz: Optional[str] = Query(None, description="IANA timezone for hour buckets"),
    current_user: CurrentUser = Depends(require_organization),
    voice: VoiceService = Depends(get_voice_service),
):
    """
    Aggregated call analytics.

    Query params:
        - from: Start date (YYYY-MM-DD), defaults to 30 days ago
        - to: End date (YYYY-MM-DD, inclusive), defaults to today
        - assistant_id: Only calls handled by this assistant
        - tz: Timezone for calls_by_hour (defaults to server local time)
    """
    end_dt = _parse_date(to_date, "to") + timedelta(days=1) if to_date else datetime.now(timezone.utc)
    start_dt = _parse_date(from_date, "from") if from_date else end_dt - timedelta(days=DEFAULT_RANGE_DAYS)
    if start_dt >= end_dt:
        raise HTTPException(status_code=400, detail="'from' must be before 'to'")

    try:
        return await voice.get_call_analytics(
            start_date=start_dt.isoformat(),
            end_date=end_dt.isoformat(),
            assistant_id=assistant_id,
            tz_name=tz,
        )
    except VoiceProviderError as e:
        raise voice_error_to_http(e, "get_call_analytics", current_user) from e
