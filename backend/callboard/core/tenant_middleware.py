"""
Organization Middleware
Extracts organization_id from bearer JWTs
"""
from typing import Optional

import jwt
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

PUBLIC_PATHS = {"/", "/health", "/docs", "/openapi.json", "/redoc"}


class OrganizationMiddleware(BaseHTTPMiddleware):
    """
    Attach request.state.organization_id from the bearer token.

    The token is decoded without signature verification; it only routes the
    request. Endpoints enforce auth through the get_current_user dependency.
    """

    async def dispatch(self, request: Request, call_next):
        request.state.organization_id = None

        if request.url.path in PUBLIC_PATHS:
            return await call_next(request)

        auth_header = request.headers.get("Authorization")
        if not auth_header or not auth_header.startswith("Bearer "):
            return await call_next(request)

        token = auth_header.split(" ", 1)[1]
        try:
            payload = jwt.decode(token, options={"verify_signature": False})
            metadata = payload.get("user_metadata") or payload.get("app_metadata") or {}
            request.state.organization_id = payload.get("organization_id") or metadata.get("organization_id")
        except jwt.InvalidTokenError:
            request.state.organization_id = None

        return await call_next(request)


def get_current_organization(request: Request) -> Optional[str]:
    """Dependency returning the organization id extracted by OrganizationMiddleware"""
    return getattr(request.state, "organization_id", None)
