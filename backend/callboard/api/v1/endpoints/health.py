"""
Health Check Endpoint
Liveness for load balancers plus the configured voice provider
"""
from datetime import datetime, timezone
from typing import Dict

from fastapi import APIRouter, status

from callboard.core.config import get_settings
from callboard.infrastructure.voice import VoiceProviderFactory

router = APIRouter(tags=["health"])


@router.get("/health", status_code=status.HTTP_200_OK)
async def health_check() -> Dict[str, str]:
    """
    Liveness check. Does not call the voice provider or Supabase.
    """
    settings = get_settings()
    provider = settings.voice_provider
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "service": "callboard-backend",
        "environment": settings.environment,
        "voice_provider": provider if provider in VoiceProviderFactory.list_providers() else "unregistered",
    }


@router.get("/", status_code=status.HTTP_200_OK)
async def root() -> Dict[str, str]:
    return {"message": "Callboard Campaign API", "version": "1.0.0", "docs": "/docs"}
