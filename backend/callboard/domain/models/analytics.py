"""
Analytics Domain Models
Derived call statistics, recomputed on every fetch
"""
from typing import Dict, List

from pydantic import BaseModel, Field


class SentimentBreakdown(BaseModel):
    positive: int = 0
    negative: int = 0
    neutral: int = 0

    @property
    def total(self) -> int:
        return self.positive + self.negative + self.neutral


class HourBucket(BaseModel):
    """Calls started in a given local hour of day"""
    hour: int
    count: int = 0


class DayBucket(BaseModel):
    """Calls started on a given UTC date"""
    date: str
    count: int
    cost: float
    avg_duration: int


class CostBreakdownTotals(BaseModel):
    stt: float = 0.0
    llm: float = 0.0
    tts: float = 0.0
    vapi: float = 0.0
    transport: float = 0.0
    total: float = 0.0


class AssistantBreakdown(BaseModel):
    assistant_id: str
    calls: int
    avg_duration: int
    cost: float
    success_rate: int


class CallAnalytics(BaseModel):
    """Summary statistics over a list of call records"""
    total_calls: int = 0
    successful_calls: int = 0
    average_duration: float = 0.0
    total_cost: float = 0.0
    sentiment_breakdown: SentimentBreakdown = Field(default_factory=SentimentBreakdown)
    outcome_breakdown: Dict[str, int] = Field(default_factory=dict)
    ended_reason_breakdown: Dict[str, int] = Field(default_factory=dict)
    calls_by_hour: List[HourBucket] = Field(default_factory=list)
    calls_by_day: List[DayBucket] = Field(default_factory=list)
    cost_breakdown_totals: CostBreakdownTotals = Field(default_factory=CostBreakdownTotals)
    assistant_breakdown: List[AssistantBreakdown] = Field(default_factory=list)
    conversion_rate: float = 0.0
