"""
Lead Score Domain Models
"""
from typing import List

from pydantic import BaseModel, Field


class LeadScoreFactor(BaseModel):
    """One rule that moved the score"""
    factor: str
    impact: int
    description: str


class LeadScore(BaseModel):
    """Lead quality score (0-100) with the factors that produced it, in evaluation order"""
    score: int = Field(ge=0, le=100)
    factors: List[LeadScoreFactor] = Field(default_factory=list)

    @property
    def is_high_quality(self) -> bool:
        return self.score >= 80
