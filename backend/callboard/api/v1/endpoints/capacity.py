"""
Capacity Planning Endpoints
Campaign duration and credit projections for the launch wizard
"""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from callboard.api.v1.dependencies import BillingContext, get_billing_context
from callboard.domain.models.capacity import CapacityEstimate, ScheduleConfig
from callboard.domain.models.plan import VoiceTier
from callboard.domain.services.capacity_planner import CapacityPlanner
from callboard.domain.services.plan_catalog import PlanCatalog, get_plan_catalog

router = APIRouter(prefix="/capacity", tags=["capacity"])


class CapacityEstimateRequest(BaseModel):
    """
    Plan id, credits used and balance default to the organization's
    billing row when omitted.
    """
    lead_count: int = Field(..., ge=0)
    avg_duration: float = Field(2.0, gt=0, description="Average call length in minutes")
    voice_tier: VoiceTier = VoiceTier.STANDARD
    credits_per_minute: Optional[float] = Field(None, ge=0, description="Overrides the voice tier rate")
    plan_id: Optional[str] = None
    credits_used_this_period: Optional[float] = Field(None, ge=0)
    credit_balance: Optional[float] = Field(None, ge=0)
    schedule: ScheduleConfig = Field(default_factory=ScheduleConfig)


@router.post("/estimate", response_model=CapacityEstimate)
async def estimate_capacity(
    request: CapacityEstimateRequest,
    billing: BillingContext = Depends(get_billing_context),
    catalog: PlanCatalog = Depends(get_plan_catalog),
):
    """Project completion time, credits and upgrade options for a campaign."""
    plan = billing.plan
    if request.plan_id:
        plan = catalog.get_plan(request.plan_id)
        if plan is None:
            raise HTTPException(status_code=404, detail=f"Unknown plan: {request.plan_id}")

    credits_per_minute = request.credits_per_minute
    if credits_per_minute is None:
        credits_per_minute = catalog.credits_per_minute(request.voice_tier)

    planner = CapacityPlanner(catalog)
    try:
        return planner.estimate(
            lead_count=request.lead_count,
            avg_duration=request.avg_duration,
            credits_per_minute=credits_per_minute,
            plan=plan,
            credits_used_this_period=(
                billing.credits_used_this_period
                if request.credits_used_this_period is None
                else request.credits_used_this_period
            ),
            credit_balance=billing.credit_balance if request.credit_balance is None else request.credit_balance,
            schedule=request.schedule,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
