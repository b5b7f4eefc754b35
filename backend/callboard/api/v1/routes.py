"""
API Router
Combines all endpoint routers
"""
from fastapi import APIRouter
from callboard.api.v1.endpoints import (
    health,
    plans,
    calls,
    analytics,
    capacity,
    notifications,
    voice,
    webhooks,
)

api_router = APIRouter()

api_router.include_router(health.router)
api_router.include_router(plans.router)

# Voice provider data
api_router.include_router(calls.router)
api_router.include_router(analytics.router)
api_router.include_router(voice.router)

# Planning and notifications
api_router.include_router(capacity.router)
api_router.include_router(notifications.router)

# Provider callbacks (signature-checked, no user auth)
api_router.include_router(webhooks.router)
