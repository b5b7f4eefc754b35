"""
Lead Scorer
Rule-based lead quality score from a single call
"""
from typing import Any, List

from callboard.domain.models.call import Sentiment, VoiceCall
from callboard.domain.models.lead_score import LeadScore, LeadScoreFactor

BASE_SCORE = 50
MIN_SCORE = 0
MAX_SCORE = 100

PURCHASE_KEYWORDS = ("purchase", "buy")
LEARNING_KEYWORDS = ("interested", "learn")


def score_lead_from_call(call: Any) -> LeadScore:
    """
    Score a lead 0-100 from one call.

    Rules are applied in a fixed order (duration, sentiment, follow-up,
    intent) and the factors list keeps that order. The score is clamped
    after all adjustments.
    """
    call = VoiceCall.from_api(call)
    analysis = call.analysis
    score = BASE_SCORE
    factors: List[LeadScoreFactor] = []

    def apply(factor: str, impact: int, description: str) -> None:
        nonlocal score
        score += impact
        factors.append(LeadScoreFactor(factor=factor, impact=impact, description=description))

    # Missing or zero duration contributes nothing
    if call.duration:
        if call.duration > 300:
            apply("Long Call Duration", 20, "Engaged in lengthy conversation")
        elif call.duration > 120:
            apply("Good Call Duration", 10, "Reasonable conversation length")
        elif call.duration < 30:
            apply("Short Call Duration", -15, "Very brief interaction")

    if call.sentiment == Sentiment.POSITIVE:
        apply("Positive Sentiment", 15, "Showed positive attitude during call")
    elif call.sentiment == Sentiment.NEGATIVE:
        apply("Negative Sentiment", -10, "Expressed negative sentiment")

    if analysis and analysis.follow_up_required:
        apply("Follow-up Interest", 10, "Expressed interest in follow-up")

    if analysis and analysis.intent:
        intent = analysis.intent.lower()
        if any(keyword in intent for keyword in PURCHASE_KEYWORDS):
            apply("Purchase Intent", 25, "Showed buying intent")
        elif any(keyword in intent for keyword in LEARNING_KEYWORDS):
            apply("Learning Intent", 15, "Interested in learning more")

    return LeadScore(score=max(MIN_SCORE, min(MAX_SCORE, score)), factors=factors)
