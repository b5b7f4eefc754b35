"""
Call Analytics Aggregator
Reduces a list of call records into dashboard summary statistics
"""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

import pytz

from callboard.domain.models.analytics import (
    AssistantBreakdown,
    CallAnalytics,
    CostBreakdownTotals,
    DayBucket,
    HourBucket,
    SentimentBreakdown,
)
from callboard.domain.models.call import Sentiment, VoiceCall

logger = logging.getLogger(__name__)


def _local_hour(started_at: datetime, tz: Optional[Any]) -> int:
    """
    Hour of day for a call start.

    With no timezone the server's local zone is used; naive timestamps are
    taken as already local. With a timezone, naive timestamps are read as UTC.
    """
    if tz is None:
        if started_at.tzinfo is None:
            return started_at.hour
        return started_at.astimezone().hour
    if started_at.tzinfo is None:
        started_at = pytz.UTC.localize(started_at)
    return started_at.astimezone(tz).hour


def _utc_date(started_at: datetime) -> str:
    if started_at.tzinfo is not None:
        started_at = started_at.astimezone(timezone.utc)
    return started_at.strftime("%Y-%m-%d")


def resolve_timezone(name: Optional[str]) -> Optional[Any]:
    """pytz zone for a name, None (server local) when missing or unknown"""
    if not name:
        return None
    try:
        return pytz.timezone(name)
    except pytz.exceptions.UnknownTimeZoneError:
        logger.warning(f"Unknown timezone '{name}', falling back to server local time")
        return None


def aggregate_call_data(
    calls: Iterable[Any],
    tz_name: Optional[str] = None,
) -> CallAnalytics:
    """
    Aggregate call records into a CallAnalytics summary.

    Accepts VoiceCall instances or raw provider dicts. Never raises on
    malformed or partial records: missing numbers count as zero, missing
    sentiment as neutral and missing outcome / ended reason as "unknown".

    Args:
        calls: Call records, any length (including empty)
        tz_name: Timezone for the hour-of-day buckets (default: server local)
    """
    records: List[VoiceCall] = [VoiceCall.from_api(call) for call in calls]
    tz = resolve_timezone(tz_name)

    total_calls = len(records)
    successful_calls = 0
    total_duration = 0.0
    total_cost = 0.0

    sentiment = SentimentBreakdown()
    outcome_breakdown: Dict[str, int] = {}
    ended_reason_breakdown: Dict[str, int] = {}
    hour_counts = [0] * 24
    day_map: Dict[str, Dict[str, float]] = {}
    cost_totals = CostBreakdownTotals()
    assistant_map: Dict[str, Dict[str, float]] = {}

    for call in records:
        duration = call.duration or 0
        cost = call.cost or 0
        successful = call.is_successful

        if successful:
            successful_calls += 1
        total_duration += duration
        total_cost += cost

        # Sentiment (missing -> neutral)
        if call.sentiment == Sentiment.POSITIVE:
            sentiment.positive += 1
        elif call.sentiment == Sentiment.NEGATIVE:
            sentiment.negative += 1
        else:
            sentiment.neutral += 1

        outcome = (call.analysis.outcome if call.analysis else None) or "unknown"
        outcome_breakdown[outcome] = outcome_breakdown.get(outcome, 0) + 1

        reason = call.ended_reason or "unknown"
        ended_reason_breakdown[reason] = ended_reason_breakdown.get(reason, 0) + 1

        if call.started_at:
            hour_counts[_local_hour(call.started_at, tz)] += 1

            day = _utc_date(call.started_at)
            bucket = day_map.setdefault(day, {"count": 0, "cost": 0.0, "duration": 0.0})
            bucket["count"] += 1
            bucket["cost"] += cost
            bucket["duration"] += duration

        breakdown = call.cost_breakdown
        if breakdown:
            cost_totals.stt += breakdown.stt or 0
            cost_totals.llm += breakdown.llm or 0
            cost_totals.tts += breakdown.tts or 0
            cost_totals.vapi += breakdown.vapi or 0
            cost_totals.transport += breakdown.transport or 0
        cost_totals.total += cost

        assistant = assistant_map.setdefault(
            call.assistant_id or "unknown",
            {"calls": 0, "duration": 0.0, "cost": 0.0, "successful": 0},
        )
        assistant["calls"] += 1
        assistant["duration"] += duration
        assistant["cost"] += cost
        if successful:
            assistant["successful"] += 1

    calls_by_day = [
        DayBucket(
            date=day,
            count=int(data["count"]),
            cost=round(data["cost"], 2),
            avg_duration=round(data["duration"] / (data["count"] or 1)),
        )
        for day, data in sorted(day_map.items())
    ]

    assistant_breakdown = [
        AssistantBreakdown(
            assistant_id=assistant_id,
            calls=int(data["calls"]),
            avg_duration=round(data["duration"] / (data["calls"] or 1)),
            cost=round(data["cost"], 2),
            success_rate=round(data["successful"] / (data["calls"] or 1) * 100),
        )
        for assistant_id, data in assistant_map.items()
    ]

    logger.debug(f"Aggregated {total_calls} calls ({successful_calls} successful)")

    return CallAnalytics(
        total_calls=total_calls,
        successful_calls=successful_calls,
        average_duration=total_duration / max(total_calls, 1),
        total_cost=total_cost,
        sentiment_breakdown=sentiment,
        outcome_breakdown=outcome_breakdown,
        ended_reason_breakdown=ended_reason_breakdown,
        calls_by_hour=[HourBucket(hour=hour, count=count) for hour, count in enumerate(hour_counts)],
        calls_by_day=calls_by_day,
        cost_breakdown_totals=cost_totals,
        assistant_breakdown=assistant_breakdown,
        conversion_rate=successful_calls / max(total_calls, 1) * 100,
    )
