"""
API Dependencies
Shared dependencies for authentication, Supabase access, billing context and voice access
"""
import os
from typing import AsyncIterator, Optional

from dotenv import load_dotenv
from fastapi import Depends, Header, HTTPException, status
from pydantic import BaseModel
from supabase import Client, create_client

from callboard.core.config import get_settings
from callboard.domain.interfaces.voice_provider import VoiceProviderNotInitializedError
from callboard.domain.models.errors import ErrorCategory, ErrorContext
from callboard.domain.models.plan import PlanTier
from callboard.domain.services.error_handling import ErrorHandlingService
from callboard.domain.services.plan_catalog import PlanCatalog, get_plan_catalog
from callboard.services.voice_service import VoiceService

load_dotenv()


class CurrentUser(BaseModel):
    """Current authenticated user model"""
    id: str
    email: Optional[str] = None
    name: Optional[str] = None
    organization_id: Optional[str] = None
    role: str = "user"


class BillingContext(BaseModel):
    """Organization billing state used for capacity planning"""
    organization_id: Optional[str] = None
    plan: PlanTier
    credits_used_this_period: float = 0
    credit_balance: float = 0


def get_supabase() -> Client:
    """
    Get Supabase client with validation.

    Raises:
        RuntimeError: If Supabase URL or SERVICE_KEY is not configured
    """
    url = os.getenv("SUPABASE_URL")
    key = os.getenv("SUPABASE_SERVICE_KEY")

    if not url:
        raise RuntimeError(
            "SUPABASE_URL is not configured. "
            "Set SUPABASE_URL environment variable."
        )
    if not key:
        raise RuntimeError(
            "SUPABASE_SERVICE_KEY is not configured. "
            "Set SUPABASE_SERVICE_KEY environment variable."
        )

    return create_client(url, key)


async def get_current_user(
    authorization: Optional[str] = Header(None, alias="Authorization"),
    supabase: Client = Depends(get_supabase)
) -> CurrentUser:
    """
    Dependency to get the current authenticated user from JWT token.

    Raises:
        HTTPException: If token is invalid or user not found
    """
    if not authorization:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authorization header missing",
            headers={"WWW-Authenticate": "Bearer"},
        )

    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authorization header format. Use: Bearer <token>",
            headers={"WWW-Authenticate": "Bearer"},
        )

    token = parts[1]

    try:
        user_response = supabase.auth.get_user(token)

        if not user_response or not user_response.user:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid or expired token",
                headers={"WWW-Authenticate": "Bearer"},
            )

        auth_user = user_response.user

        profile_response = supabase.table("user_profiles").select(
            "id, organization_id, role, name"
        ).eq("id", auth_user.id).limit(1).execute()

        profile = (profile_response.data or [{}])[0]
        return CurrentUser(
            id=str(auth_user.id),
            email=auth_user.email,
            name=profile.get("name"),
            organization_id=profile.get("organization_id"),
            role=profile.get("role") or "user",
        )

    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Token validation failed: {str(e)}",
            headers={"WWW-Authenticate": "Bearer"},
        )


async def require_organization(
    current_user: CurrentUser = Depends(get_current_user)
) -> CurrentUser:
    """Dependency requiring the user to belong to an organization"""
    if not current_user.organization_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User is not a member of an organization"
        )
    return current_user


def get_billing_context(
    current_user: CurrentUser = Depends(require_organization),
    supabase: Client = Depends(get_supabase),
    catalog: PlanCatalog = Depends(get_plan_catalog),
) -> BillingContext:
    """
    Organization plan and credit usage.

    Unknown or missing plans fall back to settings.default_plan_id.
    """
    response = supabase.table("organizations").select(
        "id, plan_id, credits_used_this_period, credit_balance"
    ).eq("id", current_user.organization_id).limit(1).execute()
    org = (response.data or [{}])[0]

    plan_id = org.get("plan_id") or get_settings().default_plan_id
    return BillingContext(
        organization_id=current_user.organization_id,
        plan=catalog.get_plan_or_default(plan_id),
        credits_used_this_period=org.get("credits_used_this_period") or 0,
        credit_balance=org.get("credit_balance") or 0,
    )


async def get_voice_service(
    current_user: CurrentUser = Depends(require_organization),
    supabase: Client = Depends(get_supabase),
) -> AsyncIterator[VoiceService]:
    """
    VoiceService bound to the caller's organization.

    The service may be uninitialized when the organization has no key;
    provider calls then raise VoiceProviderNotInitializedError.
    """
    service = VoiceService(supabase)
    await service.initialize_with_organization(current_user.organization_id)
    try:
        yield service
    finally:
        await service.close()


# Classified error category -> HTTP status
CATEGORY_STATUS = {
    ErrorCategory.NETWORK: status.HTTP_502_BAD_GATEWAY,
    ErrorCategory.VALIDATION: status.HTTP_400_BAD_REQUEST,
    ErrorCategory.AUTHENTICATION: status.HTTP_401_UNAUTHORIZED,
    ErrorCategory.AUTHORIZATION: status.HTTP_403_FORBIDDEN,
    ErrorCategory.API: status.HTTP_502_BAD_GATEWAY,
    ErrorCategory.SYSTEM: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorCategory.USER: status.HTTP_409_CONFLICT,
}


def voice_error_to_http(
    error: Exception,
    action: str,
    current_user: Optional[CurrentUser] = None,
) -> HTTPException:
    """
    Classify an error and wrap it in an HTTPException.

    The detail carries code, user message and retryable flag. A provider
    404 stays a 404; a missing voice API key is a 412.
    """
    details = ErrorHandlingService.handle_error(
        error,
        ErrorContext(
            component="voice",
            action=action,
            user_id=current_user.id if current_user else None,
            metadata={"organization_id": current_user.organization_id} if current_user else {},
        ),
    )
    http_status = CATEGORY_STATUS.get(details.category, status.HTTP_500_INTERNAL_SERVER_ERROR)
    if details.code == "RESOURCE_NOT_FOUND" or getattr(error, "status_code", None) == 404:
        http_status = status.HTTP_404_NOT_FOUND
    elif isinstance(error, VoiceProviderNotInitializedError):
        http_status = status.HTTP_412_PRECONDITION_FAILED
    return HTTPException(
        status_code=http_status,
        detail={
            "code": details.code,
            "message": details.user_message,
            "retryable": details.retryable,
        },
    )
