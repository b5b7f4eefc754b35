"""
Plans & Voice Tier Endpoints
Public pricing catalog for the dashboard
"""
from typing import List

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from callboard.domain.models.plan import PlanLimits, PlanTier, VoiceTierConfig
from callboard.domain.services.plan_catalog import PlanCatalog, get_plan_catalog

router = APIRouter(prefix="/plans", tags=["plans"])


class PlanResponse(BaseModel):
    """Plan with its derived limits"""
    plan: PlanTier
    limits: PlanLimits


class VoiceTierResponse(BaseModel):
    tier: VoiceTierConfig
    rate_label: str


@router.get("/", response_model=List[PlanResponse])
async def list_plans(catalog: PlanCatalog = Depends(get_plan_catalog)):
    """
    Get all available plans in upgrade order.

    This endpoint is public (no auth required).
    """
    return [
        PlanResponse(plan=plan, limits=catalog.get_plan_limits(plan.id))
        for plan in catalog.plans
    ]


@router.get("/voice-tiers", response_model=List[VoiceTierResponse])
async def list_voice_tiers(catalog: PlanCatalog = Depends(get_plan_catalog)):
    """Voice tiers with their credit rates. Public."""
    return [
        VoiceTierResponse(tier=config, rate_label=catalog.format_credit_rate(tier))
        for tier, config in catalog.voice_tiers.items()
    ]
