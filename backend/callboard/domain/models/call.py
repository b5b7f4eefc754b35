"""
Call Domain Models
Call records as returned by the voice-AI provider
"""
import logging
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

logger = logging.getLogger(__name__)


class CallStatus(str, Enum):
    """Provider call status"""
    QUEUED = "queued"
    RINGING = "ringing"
    IN_PROGRESS = "in-progress"
    FORWARDING = "forwarding"
    ENDED = "ended"


class CallType(str, Enum):
    """Call direction / transport"""
    INBOUND_PHONE = "inboundPhoneCall"
    OUTBOUND_PHONE = "outboundPhoneCall"
    WEB = "webCall"


class Sentiment(str, Enum):
    POSITIVE = "positive"
    NEGATIVE = "negative"
    NEUTRAL = "neutral"


def _coerce_enum(enum_cls, value: Any) -> Any:
    if value is None or isinstance(value, enum_cls):
        return value
    for candidate in (value, str(value).lower()):
        try:
            return enum_cls(candidate)
        except ValueError:
            continue
    logger.debug(f"Dropping unknown {enum_cls.__name__} value: {value!r}")
    return None


def _coerce_number(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _coerce_datetime(value: Any) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    if isinstance(value, str) and value:
        try:
            return datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
    return None


def _coerce_text(value: Any) -> Optional[str]:
    # Numeric ids and phone numbers arrive as JSON numbers from some integrations
    if isinstance(value, str):
        return value or None
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return None


class _ProviderModel(BaseModel):
    """Base for provider payloads: camelCase aliases, unknown keys kept"""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )


class Customer(_ProviderModel):
    number: Optional[str] = None
    name: Optional[str] = None

    @field_validator("number", "name", mode="before")
    @classmethod
    def _text(cls, value: Any) -> Optional[str]:
        return _coerce_text(value)


class CostBreakdown(_ProviderModel):
    """Per-subsystem cost of a call"""
    stt: Optional[float] = None
    llm: Optional[float] = None
    tts: Optional[float] = None
    vapi: Optional[float] = None
    transport: Optional[float] = None
    total: Optional[float] = None

    @field_validator("stt", "llm", "tts", "vapi", "transport", "total", mode="before")
    @classmethod
    def _numbers(cls, value: Any) -> Optional[float]:
        return _coerce_number(value)


class CallAnalysis(_ProviderModel):
    """Post-call analysis block"""
    sentiment: Optional[Sentiment] = None
    intent: Optional[str] = None
    outcome: Optional[str] = None
    follow_up_required: bool = False
    structured_data: Optional[Dict[str, Any]] = None
    success_evaluation: Optional[str] = None

    @field_validator("sentiment", mode="before")
    @classmethod
    def _sentiment(cls, value: Any) -> Any:
        return _coerce_enum(Sentiment, value)

    @field_validator("intent", "outcome", "success_evaluation", mode="before")
    @classmethod
    def _text(cls, value: Any) -> Optional[str]:
        if value is None or value == "":
            return None
        return str(value)

    @field_validator("follow_up_required", mode="before")
    @classmethod
    def _flag(cls, value: Any) -> bool:
        return value is True

    @field_validator("structured_data", mode="before")
    @classmethod
    def _structured(cls, value: Any) -> Optional[Dict[str, Any]]:
        return value if isinstance(value, dict) else None


class CallMessage(_ProviderModel):
    role: Optional[str] = None
    message: Optional[str] = None
    timestamp: Optional[str] = None

    @field_validator("role", "message", "timestamp", mode="before")
    @classmethod
    def _text(cls, value: Any) -> Optional[str]:
        return None if value is None else str(value)


class VoiceCall(_ProviderModel):
    """
    Call record owned by the voice provider.

    Parsing is tolerant: unknown enum values, non-numeric amounts and
    unparseable timestamps become None instead of failing validation.
    """
    id: str = ""
    assistant_id: Optional[str] = None
    squad_id: Optional[str] = None
    phone_number_id: Optional[str] = None
    customer: Optional[Customer] = None
    status: Optional[CallStatus] = None
    type: Optional[CallType] = None
    transcript: Optional[str] = None
    recording_url: Optional[str] = None
    summary: Optional[str] = None
    analysis: Optional[CallAnalysis] = None
    created_at: Optional[datetime] = None
    started_at: Optional[datetime] = None
    ended_at: Optional[datetime] = None
    ended_reason: Optional[str] = None
    cost: Optional[float] = None
    cost_breakdown: Optional[CostBreakdown] = None
    duration: Optional[float] = None
    messages: List[CallMessage] = Field(default_factory=list)
    metadata: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("id", mode="before")
    @classmethod
    def _id(cls, value: Any) -> str:
        return "" if value is None else str(value)

    @field_validator(
        "assistant_id", "squad_id", "phone_number_id", "transcript",
        "recording_url", "summary", "ended_reason", mode="before",
    )
    @classmethod
    def _text(cls, value: Any) -> Optional[str]:
        return _coerce_text(value)

    @field_validator("status", mode="before")
    @classmethod
    def _status(cls, value: Any) -> Any:
        return _coerce_enum(CallStatus, value)

    @field_validator("type", mode="before")
    @classmethod
    def _type(cls, value: Any) -> Any:
        return _coerce_enum(CallType, value)

    @field_validator("cost", "duration", mode="before")
    @classmethod
    def _numbers(cls, value: Any) -> Optional[float]:
        return _coerce_number(value)

    @field_validator("created_at", "started_at", "ended_at", mode="before")
    @classmethod
    def _timestamps(cls, value: Any) -> Optional[datetime]:
        return _coerce_datetime(value)

    @field_validator("customer", "analysis", "cost_breakdown", mode="before")
    @classmethod
    def _nested(cls, value: Any) -> Any:
        return value if isinstance(value, (dict, BaseModel)) else None

    @field_validator("messages", mode="before")
    @classmethod
    def _messages(cls, value: Any) -> List[Any]:
        if not isinstance(value, list):
            return []
        return [item for item in value if isinstance(item, dict)]

    @field_validator("metadata", mode="before")
    @classmethod
    def _metadata(cls, value: Any) -> Dict[str, Any]:
        return value if isinstance(value, dict) else {}

    @property
    def sentiment(self) -> Optional[Sentiment]:
        return self.analysis.sentiment if self.analysis else None

    @property
    def is_successful(self) -> bool:
        """Ended and lasted longer than 30 seconds (a real conversation)"""
        return self.status == CallStatus.ENDED and (self.duration or 0) > 30

    @classmethod
    def from_api(cls, data: Any) -> "VoiceCall":
        """Build a call from a provider payload, never raising on bad content."""
        if isinstance(data, cls):
            return data
        if not isinstance(data, dict):
            logger.debug(f"Ignoring non-object call payload: {type(data).__name__}")
            return cls()
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            # Drop only the offending top-level fields
            bad = {error["loc"][0] for error in e.errors() if error["loc"]}
            logger.debug(f"Call {data.get('id')} has invalid fields {sorted(map(str, bad))}: {e}")
        try:
            return cls.model_validate({k: v for k, v in data.items() if k not in bad})
        except ValidationError as e:
            logger.debug(f"Call {data.get('id')} failed validation, keeping id only: {e}")
            return cls(id=_coerce_text(data.get("id")) or "")
