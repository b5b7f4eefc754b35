"""
Organization Filter Utility
Scopes Supabase queries to the caller's organization
"""
from typing import Any, Optional


def apply_organization_filter(query: Any, organization_id: Optional[str], column: str = "organization_id") -> Any:
    """
    Apply organization filtering to a Supabase query.

    Args:
        query: Supabase query builder (from supabase.table(...).select(...))
        organization_id: Caller's organization (None for platform admins)
        column: Name of the organization column

    Returns:
        The filtered query, or the original query when organization_id is None

    Usage:
        query = supabase.table("voice_credentials").select("*")
        response = apply_organization_filter(query, current_user.organization_id).execute()
    """
    if organization_id:
        return query.eq(column, organization_id)
    return query
