"""
Plan & Voice Tier Models
Subscription plans and per-tier credit rates
"""
from enum import Enum
from typing import List

from pydantic import BaseModel, Field


class VoiceTier(str, Enum):
    """Voice quality / cost classification"""
    BUDGET = "budget"
    STANDARD = "standard"
    PREMIUM = "premium"
    ULTRA = "ultra"

    @property
    def rank(self) -> int:
        return list(VoiceTier).index(self)


class VoiceTierConfig(BaseModel):
    """Credit consumption rate for a voice tier"""
    tier: VoiceTier
    label: str
    credits_per_minute: float = Field(gt=0)
    cogs_per_minute: float = 0.0
    description: str = ""


class PlanTier(BaseModel):
    """
    Subscription plan.

    A concurrency or assistant limit of -1 means unlimited (sales-negotiated).
    """
    id: str
    name: str
    display_name: str
    ai_employees: int = 1
    monthly_price_gbp: float = 0.0
    included_credits: int = 0
    equivalent_budget_minutes: int = 0
    equivalent_standard_minutes: int = 0
    included_phone_numbers: int = 0
    max_assistants: int = 0
    max_concurrent_calls: int = 0
    max_users: int = 0
    overage_credit_price: float = 0.0
    features: List[str] = Field(default_factory=list)
    popular: bool = False
    contact_sales: bool = False

    @property
    def unlimited_concurrency(self) -> bool:
        return self.max_concurrent_calls < 0


class PlanLimits(BaseModel):
    included_credits: int
    ai_employees: int
    max_phone_numbers: int
    max_assistants: int
    max_concurrent_calls: int
    max_users: int
    overage_credit_price: float
    included_minutes: int
    overage_per_minute: float
