"""
Voice Provider Interface
Abstract base class for voice-AI platforms (assistants, calls, numbers, squads, tools)
"""
from abc import ABC, abstractmethod
from typing import Any, AsyncIterator, Dict, List, Optional

from callboard.domain.models.analytics import CallAnalytics
from callboard.domain.models.call import VoiceCall
from callboard.domain.models.lead_score import LeadScore


class VoiceProviderError(Exception):
    """Raised when the voice-AI API rejects a request."""
    source = "voice_provider"

    def __init__(self, message: str, status_code: Optional[int] = None, code: Optional[str] = None):
        self.message = message
        self.status_code = status_code
        self.code = code
        super().__init__(self.message)


class VoiceProviderNotInitializedError(VoiceProviderError):
    """Raised when a provider is used before it has an API key."""
    def __init__(self, message: str = "Voice provider not initialized. Configure a voice API key first."):
        super().__init__(message)


class VoiceProvider(ABC):
    """Abstract base class for voice-AI providers"""

    @abstractmethod
    async def initialize(self, config: dict) -> bool:
        """
        Initialize the provider.

        Args:
            config: organization_id, api_key and optional base_url / timeout
        """
        pass

    @abstractmethod
    def is_initialized(self) -> bool:
        pass

    @property
    @abstractmethod
    def organization_id(self) -> Optional[str]:
        pass

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider name"""
        pass

    # Assistants
    @abstractmethod
    async def get_assistants(self) -> List[Dict[str, Any]]:
        pass

    @abstractmethod
    async def get_assistant(self, assistant_id: str) -> Dict[str, Any]:
        pass

    @abstractmethod
    async def create_assistant(self, assistant: Dict[str, Any]) -> Dict[str, Any]:
        pass

    @abstractmethod
    async def update_assistant(self, assistant_id: str, updates: Dict[str, Any]) -> Dict[str, Any]:
        pass

    @abstractmethod
    async def delete_assistant(self, assistant_id: str) -> None:
        pass

    # Calls
    @abstractmethod
    async def get_calls(self, **filters: Any) -> List[VoiceCall]:
        """
        One page of calls.

        Filters: assistant_id, phone_number_id, limit, created_at_gt, created_at_lt, created_at_le
        """
        pass

    @abstractmethod
    def iter_calls(self, **filters: Any) -> AsyncIterator[VoiceCall]:
        """All calls matching filters, newest first, across pages"""
        pass

    @abstractmethod
    async def get_call(self, call_id: str) -> VoiceCall:
        pass

    @abstractmethod
    async def create_call(
        self,
        customer: Dict[str, Any],
        assistant_id: Optional[str] = None,
        squad_id: Optional[str] = None,
        phone_number_id: Optional[str] = None,
        assistant_overrides: Optional[Dict[str, Any]] = None,
        metadata: Optional[Dict[str, Any]] = None,
        max_duration_seconds: Optional[int] = None,
    ) -> VoiceCall:
        """Start an outbound call. One of assistant_id, squad_id or assistant_overrides is required."""
        pass

    @abstractmethod
    async def end_call(self, call_id: str) -> None:
        pass

    @abstractmethod
    async def transfer_call(self, call_id: str, destination: str) -> None:
        pass

    # Phone numbers
    @abstractmethod
    async def get_phone_numbers(self) -> List[Dict[str, Any]]:
        pass

    @abstractmethod
    async def get_phone_number(self, phone_number_id: str) -> Dict[str, Any]:
        pass

    @abstractmethod
    async def create_phone_number(self, config: Dict[str, Any]) -> Dict[str, Any]:
        pass

    @abstractmethod
    async def update_phone_number(self, phone_number_id: str, updates: Dict[str, Any]) -> Dict[str, Any]:
        pass

    @abstractmethod
    async def delete_phone_number(self, phone_number_id: str) -> None:
        pass

    # Squads
    @abstractmethod
    async def get_squads(self) -> List[Dict[str, Any]]:
        pass

    @abstractmethod
    async def get_squad(self, squad_id: str) -> Dict[str, Any]:
        pass

    @abstractmethod
    async def create_squad(self, squad: Dict[str, Any]) -> Dict[str, Any]:
        pass

    @abstractmethod
    async def update_squad(self, squad_id: str, updates: Dict[str, Any]) -> Dict[str, Any]:
        pass

    @abstractmethod
    async def delete_squad(self, squad_id: str) -> None:
        pass

    # Tools
    @abstractmethod
    async def get_tools(self) -> List[Dict[str, Any]]:
        pass

    @abstractmethod
    async def get_tool(self, tool_id: str) -> Dict[str, Any]:
        pass

    @abstractmethod
    async def create_tool(self, tool: Dict[str, Any]) -> Dict[str, Any]:
        pass

    @abstractmethod
    async def update_tool(self, tool_id: str, updates: Dict[str, Any]) -> Dict[str, Any]:
        pass

    @abstractmethod
    async def delete_tool(self, tool_id: str) -> None:
        pass

    # Analytics / campaigns
    @abstractmethod
    async def get_call_analytics(
        self,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
        assistant_id: Optional[str] = None,
        tz_name: Optional[str] = None,
    ) -> CallAnalytics:
        pass

    @abstractmethod
    def score_lead_from_call(self, call: Any) -> LeadScore:
        pass

    @abstractmethod
    async def launch_campaign(self, campaign: Dict[str, Any]) -> Dict[str, Any]:
        """Returns success, campaign_id and scheduled_calls"""
        pass

    @abstractmethod
    async def cleanup(self) -> None:
        """Release resources"""
        pass
