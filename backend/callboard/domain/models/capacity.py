"""
Capacity Planning Models
Scheduling configuration and the derived campaign projection
"""
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from callboard.domain.models.plan import PlanTier

# Sunday first, matching the dashboard's day picker
DAY_LABELS = ["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"]
DEFAULT_WORKING_DAYS = [False, True, True, True, True, True, False]


def parse_hour(value: str) -> float:
    """'HH:MM' -> fractional hours"""
    hours, minutes = value.split(":")
    return int(hours) + int(minutes) / 60


class Timeframe(str, Enum):
    TODAY = "today"
    THIS_WEEK = "this_week"
    CUSTOM = "custom"


class CreditStatus(str, Enum):
    """Whether the campaign fits the remaining allowance"""
    COVERED = "covered"
    OVERAGE = "overage"
    INSUFFICIENT = "insufficient"


class ScheduleConfig(BaseModel):
    """When a campaign is allowed to dial"""
    timeframe: Timeframe = Timeframe.THIS_WEEK
    working_hours_enabled: bool = True
    working_hours_start: str = "09:00"
    working_hours_end: str = "18:00"
    working_days: List[bool] = Field(default_factory=lambda: list(DEFAULT_WORKING_DAYS))
    timezone: str = "UTC"
    start_date: Optional[str] = None
    end_date: Optional[str] = None

    @field_validator("working_hours_start", "working_hours_end")
    @classmethod
    def validate_time(cls, value: str) -> str:
        try:
            hour = parse_hour(value)
        except ValueError:
            raise ValueError(f"Invalid time '{value}', expected HH:MM")
        if not 0 <= hour <= 24:
            raise ValueError(f"Invalid time '{value}', expected HH:MM")
        return value

    @field_validator("working_days")
    @classmethod
    def validate_days(cls, value: List[bool]) -> List[bool]:
        if len(value) != 7:
            raise ValueError("working_days must have 7 entries (Sunday first)")
        return value

    @model_validator(mode="after")
    def validate_window(self) -> "ScheduleConfig":
        if self.working_hours_enabled and self.hours_per_day <= 0:
            raise ValueError("working_hours_end must be after working_hours_start")
        return self

    @property
    def hours_per_day(self) -> float:
        if not self.working_hours_enabled:
            return 24.0
        return parse_hour(self.working_hours_end) - parse_hour(self.working_hours_start)

    @property
    def active_days_per_week(self) -> int:
        return sum(1 for day in self.working_days if day)

    @property
    def active_day_labels(self) -> List[str]:
        return [label for label, enabled in zip(DAY_LABELS, self.working_days) if enabled]


class UpgradeSuggestion(BaseModel):
    """Next plan that would finish the campaign faster"""
    plan: PlanTier
    speedup: float


class CapacityEstimate(BaseModel):
    """Projection for dialing a lead list under a plan"""
    total_minutes: float
    credits_needed: int
    concurrent: int
    throughput: float
    completion_hours: float
    hours_per_day: float
    active_days_per_week: int
    calendar_days: int
    credits_remaining: int
    credit_status: CreditStatus
    upgrade: Optional[UpgradeSuggestion] = None
