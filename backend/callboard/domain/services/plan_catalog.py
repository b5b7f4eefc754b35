"""
Plan & Voice Tier Catalog
Single source of truth for plan limits and per-tier credit rates.

The built-in tables can be overridden through the YAML config
(billing.plans / billing.voice_tiers).
"""
import logging
import math
from typing import Any, Dict, List, Optional

from callboard.core.config import ConfigManager, get_config_manager
from callboard.domain.models.plan import PlanLimits, PlanTier, VoiceTier, VoiceTierConfig

logger = logging.getLogger(__name__)


DEFAULT_VOICE_TIERS: Dict[VoiceTier, VoiceTierConfig] = {
    VoiceTier.BUDGET: VoiceTierConfig(
        tier=VoiceTier.BUDGET, label="Budget", credits_per_minute=18, cogs_per_minute=0.07,
        description="Gemini Flash - Fast, cost-effective",
    ),
    VoiceTier.STANDARD: VoiceTierConfig(
        tier=VoiceTier.STANDARD, label="Standard", credits_per_minute=30, cogs_per_minute=0.12,
        description="GPT-4o - Balanced quality & speed",
    ),
    VoiceTier.PREMIUM: VoiceTierConfig(
        tier=VoiceTier.PREMIUM, label="Premium", credits_per_minute=35, cogs_per_minute=0.14,
        description="GPT-4o + ElevenLabs - Superior voice quality",
    ),
    VoiceTier.ULTRA: VoiceTierConfig(
        tier=VoiceTier.ULTRA, label="Ultra", credits_per_minute=40, cogs_per_minute=0.16,
        description="Claude Sonnet + ElevenLabs - Maximum intelligence",
    ),
}

DEFAULT_PLANS: List[PlanTier] = [
    PlanTier(
        id="employee_1", name="Starter", display_name="1 AI Employee",
        ai_employees=1, monthly_price_gbp=2500, included_credits=200_000,
        equivalent_budget_minutes=11_111, equivalent_standard_minutes=6_667,
        included_phone_numbers=3, max_assistants=5, max_concurrent_calls=5, max_users=5,
        overage_credit_price=0.012,
        features=[
            "CRM + Pipeline", "Campaigns + Sequences", "SMS + Email Follow-up",
            "Call Recording + Transcription", "Analytics Dashboard",
            "Up to 500 calls/day", "24/7 availability",
        ],
    ),
    PlanTier(
        id="employee_3", name="Growth", display_name="3 AI Employees",
        ai_employees=3, monthly_price_gbp=6500, included_credits=650_000,
        equivalent_budget_minutes=36_111, equivalent_standard_minutes=21_667,
        included_phone_numbers=8, max_assistants=15, max_concurrent_calls=15, max_users=15,
        overage_credit_price=0.011, popular=True,
        features=[
            "Everything in Starter", "Webhooks + API", "Advanced Analytics",
            "Priority Support", "Up to 1,500 calls/day",
        ],
    ),
    PlanTier(
        id="employee_5", name="Business", display_name="5 AI Employees",
        ai_employees=5, monthly_price_gbp=10_000, included_credits=1_100_000,
        equivalent_budget_minutes=61_111, equivalent_standard_minutes=36_667,
        included_phone_numbers=15, max_assistants=30, max_concurrent_calls=25, max_users=50,
        overage_credit_price=0.010,
        features=[
            "Everything in Growth", "White-label Branding", "Dedicated Account Manager",
            "Premium AI Training", "Custom Integrations", "Up to 2,500 calls/day",
        ],
    ),
    PlanTier(
        id="enterprise", name="Enterprise", display_name="10+ AI Employees",
        ai_employees=10, max_assistants=-1, max_concurrent_calls=-1, max_users=-1,
        contact_sales=True,
        features=[
            "Everything in Business", "Bespoke AI Training", "Custom SLA",
            "Volume Pricing", "Dedicated Infrastructure", "24/7 Premium Support",
        ],
    ),
]

# Model / voice provider -> tier. Unknown models default to standard,
# unknown voice providers to budget.
MODEL_TIER_MAP: Dict[str, VoiceTier] = {
    "gemini-1.5-flash": VoiceTier.BUDGET,
    "gemini-2.0-flash": VoiceTier.BUDGET,
    "gemini-2.5-flash": VoiceTier.BUDGET,
    "gpt-3.5-turbo": VoiceTier.BUDGET,
    "llama-3.1-8b-instant": VoiceTier.BUDGET,
    "mixtral-8x7b-32768": VoiceTier.BUDGET,
    "gpt-4o": VoiceTier.STANDARD,
    "gpt-4o-mini": VoiceTier.STANDARD,
    "gpt-4-turbo": VoiceTier.STANDARD,
    "gemini-1.5-pro": VoiceTier.STANDARD,
    "gemini-2.5-pro": VoiceTier.STANDARD,
    "llama-3.1-70b-versatile": VoiceTier.STANDARD,
    "claude-3-5-sonnet-20241022": VoiceTier.PREMIUM,
    "claude-3-haiku-20240307": VoiceTier.PREMIUM,
    "claude-3-5-haiku-20241022": VoiceTier.PREMIUM,
    "claude-3-opus-20240229": VoiceTier.ULTRA,
    "claude-3-5-sonnet-latest": VoiceTier.ULTRA,
    "claude-sonnet-4-20250514": VoiceTier.ULTRA,
}

VOICE_PROVIDER_TIER_MAP: Dict[str, VoiceTier] = {
    "deepgram": VoiceTier.BUDGET,
    "rime-ai": VoiceTier.BUDGET,
    "playht": VoiceTier.BUDGET,
    "openai": VoiceTier.STANDARD,
    "azure": VoiceTier.STANDARD,
    "cartesia": VoiceTier.STANDARD,
    "11labs": VoiceTier.PREMIUM,
    "elevenlabs": VoiceTier.PREMIUM,
}


class PlanCatalog:
    """Plan and voice-tier lookups backed by config with built-in defaults"""

    def __init__(
        self,
        plans: Optional[List[PlanTier]] = None,
        voice_tiers: Optional[Dict[VoiceTier, VoiceTierConfig]] = None,
    ):
        self.plans = list(plans) if plans else list(DEFAULT_PLANS)
        self.voice_tiers = dict(voice_tiers) if voice_tiers else dict(DEFAULT_VOICE_TIERS)

    @classmethod
    def from_config(cls, config: ConfigManager) -> "PlanCatalog":
        """Build the catalog from billing.plans / billing.voice_tiers config keys."""
        plans = None
        raw_plans = config.get("billing.plans")
        if raw_plans:
            plans = [PlanTier(**plan) for plan in raw_plans]
            logger.info(f"Loaded {len(plans)} plans from config")

        voice_tiers = None
        raw_tiers: Dict[str, Any] = config.get("billing.voice_tiers") or {}
        if raw_tiers:
            voice_tiers = dict(DEFAULT_VOICE_TIERS)
            for name, values in raw_tiers.items():
                tier = VoiceTier(name)
                voice_tiers[tier] = VoiceTierConfig(tier=tier, **values)

        return cls(plans=plans, voice_tiers=voice_tiers)

    # ------------------------------------------------------------------
    # Plans
    # ------------------------------------------------------------------

    def get_plan(self, plan_id: Optional[str]) -> Optional[PlanTier]:
        return next((plan for plan in self.plans if plan.id == plan_id), None)

    def get_default_plan(self) -> PlanTier:
        return self.plans[0]

    def get_plan_or_default(self, plan_id: Optional[str]) -> PlanTier:
        return self.get_plan(plan_id) or self.get_default_plan()

    def get_next_plan(self, plan_id: str) -> Optional[PlanTier]:
        """Plan after plan_id in catalog order, None for the last (or unknown) plan"""
        for index, plan in enumerate(self.plans):
            if plan.id == plan_id:
                return self.plans[index + 1] if index + 1 < len(self.plans) else None
        return None

    def get_plan_limits(self, plan_id: Optional[str]) -> PlanLimits:
        plan = self.get_plan_or_default(plan_id)
        return PlanLimits(
            included_credits=plan.included_credits,
            ai_employees=plan.ai_employees,
            max_phone_numbers=plan.included_phone_numbers,
            max_assistants=plan.max_assistants,
            max_concurrent_calls=plan.max_concurrent_calls,
            max_users=plan.max_users,
            overage_credit_price=plan.overage_credit_price,
            included_minutes=plan.equivalent_standard_minutes,
            # Display approximation at the standard rate
            overage_per_minute=plan.overage_credit_price * 30,
        )

    # ------------------------------------------------------------------
    # Voice tiers
    # ------------------------------------------------------------------

    def get_voice_tier(self, tier: VoiceTier) -> VoiceTierConfig:
        return self.voice_tiers[tier]

    def credits_per_minute(self, tier: VoiceTier) -> float:
        return self.voice_tiers[tier].credits_per_minute

    def calculate_call_credits(self, duration_seconds: float, tier: VoiceTier) -> int:
        """Credits charged for a call of the given length"""
        return math.ceil(duration_seconds / 60 * self.credits_per_minute(tier))

    def credits_to_minutes(self, credits: float, tier: VoiceTier = VoiceTier.STANDARD) -> int:
        rate = self.credits_per_minute(tier)
        if rate <= 0:
            return 0
        return math.floor(credits / rate)

    def format_credit_rate(self, tier: VoiceTier) -> str:
        """e.g. '30 credits/min (Standard)'"""
        config = self.voice_tiers[tier]
        return f"{config.credits_per_minute:g} credits/min ({config.label})"


def classify_assistant_tier(model: Optional[str] = None, voice_provider: Optional[str] = None) -> VoiceTier:
    """
    Voice tier of an assistant: the higher of its model tier and voice provider tier.
    e.g. gpt-4o (standard) + elevenlabs (premium) = premium
    """
    model_tier = MODEL_TIER_MAP.get(model, VoiceTier.STANDARD) if model else VoiceTier.STANDARD
    voice_tier = (
        VOICE_PROVIDER_TIER_MAP.get(voice_provider.lower(), VoiceTier.BUDGET)
        if voice_provider else VoiceTier.BUDGET
    )
    return model_tier if model_tier.rank >= voice_tier.rank else voice_tier


def format_capacity(credits_used: float, credits_included: float) -> str:
    """Usage as a capped percentage, e.g. 150,000 of 200,000 -> '75%'"""
    if credits_included <= 0:
        return "0%"
    percent = round(credits_used / credits_included * 100)
    return f"{min(percent, 100)}%"


def get_voice_action_type(tier: VoiceTier) -> str:
    """Action type key used in the credit_rates table"""
    return f"voice_{tier.value}"


_plan_catalog: Optional[PlanCatalog] = None


def get_plan_catalog() -> PlanCatalog:
    """Get or create the PlanCatalog singleton."""
    global _plan_catalog
    if _plan_catalog is None:
        _plan_catalog = PlanCatalog.from_config(get_config_manager())
    return _plan_catalog
