"""
Voice Service
Provider-independent facade over the organization's voice-AI account.

The active provider is chosen by settings.voice_provider; its API key is
read from the voice_credentials table for the organization.
"""
import hashlib
import hmac
import logging
from typing import Any, AsyncIterator, Dict, List, Optional

from supabase import Client

from callboard.core.config import get_settings
from callboard.domain.interfaces.voice_provider import (
    VoiceProvider,
    VoiceProviderNotInitializedError,
)
from callboard.domain.models.analytics import CallAnalytics
from callboard.domain.models.call import VoiceCall
from callboard.domain.models.lead_score import LeadScore
from callboard.infrastructure.voice import VoiceProviderFactory
from callboard.utils.organization_filter import apply_organization_filter

logger = logging.getLogger(__name__)


class VoiceService:
    """
    Thin wrapper that delegates to the active VoiceProvider.

    Usage:
        service = VoiceService(supabase)
        if await service.initialize_with_organization(org_id):
            calls = await service.get_calls(limit=50)
    """

    def __init__(self, supabase: Optional[Client] = None, provider: Optional[VoiceProvider] = None):
        self.supabase = supabase
        self.provider = provider or VoiceProviderFactory.create(get_settings().voice_provider)

    async def initialize_with_organization(self, organization_id: str) -> bool:
        """
        Load the organization's provider key and initialize the provider.

        Returns False (with a warning) when no key is configured.
        """
        credentials = self.get_credentials(organization_id)
        api_key = credentials.get("provider_api_key") if credentials else None
        if not api_key:
            logger.warning(f"No voice API key configured for organization {organization_id}")
            return False

        return await self.provider.initialize({
            "organization_id": organization_id,
            "api_key": api_key,
        })

    def get_credentials(self, organization_id: str) -> Optional[Dict[str, Any]]:
        """voice_credentials row for the organization, None if absent"""
        if self.supabase is None:
            raise RuntimeError("Supabase client required to load voice credentials")

        query = self.supabase.table("voice_credentials").select("provider, provider_api_key")
        response = apply_organization_filter(query, organization_id).limit(1).execute()
        rows = response.data or []
        return rows[0] if rows else None

    def is_initialized(self) -> bool:
        return self.provider.is_initialized()

    @property
    def organization_id(self) -> Optional[str]:
        return self.provider.organization_id

    # Assistants
    async def get_assistants(self) -> List[Dict[str, Any]]:
        return await self.provider.get_assistants()

    async def get_assistant(self, assistant_id: str) -> Dict[str, Any]:
        return await self.provider.get_assistant(assistant_id)

    async def create_assistant(self, assistant: Dict[str, Any]) -> Dict[str, Any]:
        return await self.provider.create_assistant(assistant)

    async def update_assistant(self, assistant_id: str, updates: Dict[str, Any]) -> Dict[str, Any]:
        return await self.provider.update_assistant(assistant_id, updates)

    async def delete_assistant(self, assistant_id: str) -> None:
        await self.provider.delete_assistant(assistant_id)

    # Calls
    async def get_calls(self, **filters: Any) -> List[VoiceCall]:
        return await self.provider.get_calls(**filters)

    def iter_calls(self, **filters: Any) -> AsyncIterator[VoiceCall]:
        return self.provider.iter_calls(**filters)

    async def get_call(self, call_id: str) -> VoiceCall:
        return await self.provider.get_call(call_id)

    async def create_call(self, customer: Dict[str, Any], **options: Any) -> VoiceCall:
        return await self.provider.create_call(customer, **options)

    async def end_call(self, call_id: str) -> None:
        await self.provider.end_call(call_id)

    async def transfer_call(self, call_id: str, destination: str) -> None:
        await self.provider.transfer_call(call_id, destination)

    # Phone numbers
    async def get_phone_numbers(self) -> List[Dict[str, Any]]:
        return await self.provider.get_phone_numbers()

    async def get_phone_number(self, phone_number_id: str) -> Dict[str, Any]:
        return await self.provider.get_phone_number(phone_number_id)

    async def create_phone_number(self, config: Dict[str, Any]) -> Dict[str, Any]:
        return await self.provider.create_phone_number(config)

    async def update_phone_number(self, phone_number_id: str, updates: Dict[str, Any]) -> Dict[str, Any]:
        return await self.provider.update_phone_number(phone_number_id, updates)

    async def delete_phone_number(self, phone_number_id: str) -> None:
        await self.provider.delete_phone_number(phone_number_id)

    # Squads
    async def get_squads(self) -> List[Dict[str, Any]]:
        return await self.provider.get_squads()

    async def get_squad(self, squad_id: str) -> Dict[str, Any]:
        return await self.provider.get_squad(squad_id)

    async def create_squad(self, squad: Dict[str, Any]) -> Dict[str, Any]:
        return await self.provider.create_squad(squad)

    async def update_squad(self, squad_id: str, updates: Dict[str, Any]) -> Dict[str, Any]:
        return await self.provider.update_squad(squad_id, updates)

    async def delete_squad(self, squad_id: str) -> None:
        await self.provider.delete_squad(squad_id)

    # Tools
    async def get_tools(self) -> List[Dict[str, Any]]:
        return await self.provider.get_tools()

    async def get_tool(self, tool_id: str) -> Dict[str, Any]:
        return await self.provider.get_tool(tool_id)

    async def create_tool(self, tool: Dict[str, Any]) -> Dict[str, Any]:
        return await self.provider.create_tool(tool)

    async def update_tool(self, tool_id: str, updates: Dict[str, Any]) -> Dict[str, Any]:
        return await self.provider.update_tool(tool_id, updates)

    async def delete_tool(self, tool_id: str) -> None:
        await self.provider.delete_tool(tool_id)

    # Analytics / campaigns
    async def get_call_analytics(self, **filters: Any) -> CallAnalytics:
        return await self.provider.get_call_analytics(**filters)

    def score_lead_from_call(self, call: Any) -> LeadScore:
        return self.provider.score_lead_from_call(call)

    async def launch_campaign(self, campaign: Dict[str, Any]) -> Dict[str, Any]:
        return await self.provider.launch_campaign(campaign)

    async def launch_production_campaign(self, campaign: Dict[str, Any]) -> Dict[str, Any]:
        """
        Launch a campaign after checking it can actually dial.

        Raises:
            ValueError: The campaign has no leads
            VoiceProviderNotInitializedError: No voice API key configured
        """
        if not campaign.get("leads"):
            raise ValueError("No leads provided for campaign")
        if not self.is_initialized():
            raise VoiceProviderNotInitializedError("Voice API key not configured")
        return await self.launch_campaign(campaign)

    # Webhooks
    @staticmethod
    def verify_webhook(signature: str, payload: bytes | str, secret: str) -> bool:
        """HMAC-SHA256 hex digest of payload, compared in constant time"""
        if not signature or not secret:
            return False
        if isinstance(payload, str):
            payload = payload.encode("utf-8")
        expected = hmac.new(secret.encode("utf-8"), payload, hashlib.sha256).hexdigest()
        return hmac.compare_digest(signature.lower(), expected)

    async def close(self) -> None:
        await self.provider.cleanup()
