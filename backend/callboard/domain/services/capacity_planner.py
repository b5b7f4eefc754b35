"""
Campaign Capacity Planner
Projects how long a lead list takes to dial and whether credits cover it
"""
import logging
import math
from typing import Optional

from callboard.domain.models.capacity import (
    CapacityEstimate,
    CreditStatus,
    ScheduleConfig,
    Timeframe,
    UpgradeSuggestion,
)
from callboard.domain.models.plan import PlanTier
from callboard.domain.services.plan_catalog import PlanCatalog, get_plan_catalog

logger = logging.getLogger(__name__)

# Business days counted by the "this week" timeframe
WORK_WEEK_DAYS = 5


def classify_credit_status(
    credits_needed: float,
    credits_remaining: float,
    credit_balance: float,
    overage_credit_price: float,
) -> CreditStatus:
    """
    Three-way credit sufficiency check, evaluated in order:

    - covered: the remaining allowance pays for the campaign
    - overage: the shortfall can be bought with the existing balance
    - insufficient: otherwise
    """
    if credits_needed <= credits_remaining:
        return CreditStatus.COVERED
    if (
        credit_balance > 0
        and overage_credit_price > 0
        and credits_needed <= credits_remaining + credit_balance / overage_credit_price
    ):
        return CreditStatus.OVERAGE
    return CreditStatus.INSUFFICIENT


class CapacityPlanner:
    """
    Derived scheduling projection for a campaign.

    Stateless; every call recomputes from its inputs.
    """

    def __init__(self, catalog: Optional[PlanCatalog] = None):
        self.catalog = catalog or get_plan_catalog()

    @staticmethod
    def _concurrency(plan: PlanTier, lead_count: int) -> int:
        # Unlimited plans dial every lead at once
        if plan.unlimited_concurrency:
            return max(lead_count, 1)
        return plan.max_concurrent_calls

    def _throughput(self, plan: PlanTier, lead_count: int, avg_duration: float) -> float:
        """Calls per hour"""
        return self._concurrency(plan, lead_count) * (60 / avg_duration)

    def estimate(
        self,
        lead_count: int,
        avg_duration: float,
        credits_per_minute: float,
        plan: PlanTier,
        credits_used_this_period: float = 0,
        credit_balance: float = 0,
        schedule: Optional[ScheduleConfig] = None,
    ) -> CapacityEstimate:
        """
        Compute the capacity estimate.

        Args:
            lead_count: Number of leads to dial
            avg_duration: Assumed average call length in minutes (> 0)
            credits_per_minute: Voice-tier credit rate
            plan: Plan providing concurrency, allowance and overage price
            credits_used_this_period: Credits already consumed this period
            credit_balance: Prepaid balance available for overage
            schedule: Dialing window (default: this week, 09:00-18:00 Mon-Fri)

        Raises:
            ValueError: If avg_duration is not positive or lead_count is negative
        """
        if avg_duration <= 0:
            raise ValueError(f"avg_duration must be positive, got {avg_duration}")
        if lead_count < 0:
            raise ValueError(f"lead_count must not be negative, got {lead_count}")
        schedule = schedule or ScheduleConfig()

        total_minutes = lead_count * avg_duration
        credits_needed = math.ceil(total_minutes * credits_per_minute)
        concurrent = self._concurrency(plan, lead_count)
        throughput = self._throughput(plan, lead_count, avg_duration)
        completion_hours = lead_count / throughput if lead_count > 0 and throughput > 0 else 0.0

        hours_per_day = schedule.hours_per_day
        if schedule.timeframe == Timeframe.TODAY:
            calendar_days = 1
        else:
            calendar_days = math.ceil(completion_hours / hours_per_day)

        credits_remaining = max(0, plan.included_credits - math.ceil(credits_used_this_period))
        credit_status = classify_credit_status(
            credits_needed, credits_remaining, credit_balance, plan.overage_credit_price
        )

        estimate = CapacityEstimate(
            total_minutes=total_minutes,
            credits_needed=credits_needed,
            concurrent=concurrent,
            throughput=throughput,
            completion_hours=completion_hours,
            hours_per_day=hours_per_day,
            active_days_per_week=schedule.active_days_per_week,
            calendar_days=calendar_days,
            credits_remaining=credits_remaining,
            credit_status=credit_status,
        )
        estimate.upgrade = self.suggest_upgrade(estimate, plan, schedule, lead_count, avg_duration)

        logger.debug(
            f"Capacity estimate: {lead_count} leads on {plan.id} -> "
            f"{completion_hours:.2f}h, {credits_needed} credits ({credit_status.value})"
        )
        return estimate

    def suggest_upgrade(
        self,
        estimate: CapacityEstimate,
        plan: PlanTier,
        schedule: ScheduleConfig,
        lead_count: int,
        avg_duration: float,
    ) -> Optional[UpgradeSuggestion]:
        """
        Suggest the next plan when the campaign overruns its timeframe.

        Returns None when the campaign fits, when there is no next plan, or
        when the next plan requires a sales contact.
        """
        if schedule.timeframe == Timeframe.TODAY:
            target_hours = estimate.hours_per_day
        elif schedule.timeframe == Timeframe.THIS_WEEK:
            target_hours = estimate.hours_per_day * WORK_WEEK_DAYS
        else:
            target_hours = estimate.hours_per_day * estimate.calendar_days

        if estimate.completion_hours <= target_hours:
            return None

        next_plan = self.catalog.get_next_plan(plan.id)
        if next_plan is None or next_plan.contact_sales:
            return None

        next_throughput = self._throughput(next_plan, lead_count, avg_duration)
        speedup = round(next_throughput / estimate.throughput, 1)
        return UpgradeSuggestion(plan=next_plan, speedup=speedup)
