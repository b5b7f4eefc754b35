"""
Error Classification Models
"""
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class ErrorSeverity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    NETWORK = "network"
    VALIDATION = "validation"
    AUTHENTICATION = "authentication"
    AUTHORIZATION = "authorization"
    API = "api"
    SYSTEM = "system"
    USER = "user"


class ErrorContext(BaseModel):
    """Where an error happened"""
    component: Optional[str] = None
    action: Optional[str] = None
    user_id: Optional[str] = None
    session_id: Optional[str] = None
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    metadata: Dict[str, Any] = Field(default_factory=dict)


class ErrorDetails(BaseModel):
    """Standardized, user-presentable error"""
    code: str
    message: str
    user_message: str
    severity: ErrorSeverity
    category: ErrorCategory
    retryable: bool
    context: Optional[ErrorContext] = None
