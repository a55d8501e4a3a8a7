"""
Supabase client initialization for the rule store and result tables.
"""

from typing import Optional

from supabase import Client, create_client

from clearance.config import ClearanceSettings, get_settings
from clearance.errors import ConfigurationError


def normalize_supabase_url(url: Optional[str]) -> Optional[str]:
    """Ensure the Supabase URL ends with a trailing slash."""
    if not url:
        return None
    return url if url.endswith("/") else f"{url}/"


def get_supabase_client(
    access_token: Optional[str] = None,
    settings: Optional[ClearanceSettings] = None,
) -> Optional[Client]:
    """
    Return a Supabase client using the anon key.

    If access_token is provided it is sent as the Bearer token so row level
    security applies to the calling user.

    Returns:
        Supabase client instance, or None if credentials are missing
    """
    settings = settings or get_settings()
    supabase_url = normalize_supabase_url(settings.supabase_url)
    if not supabase_url or not settings.supabase_anon_key:
        return None

    supabase: Client = create_client(supabase_url, settings.supabase_anon_key)
    if access_token:
        supabase.postgrest.auth(access_token)
    return supabase


def get_service_role_client(settings: Optional[ClearanceSettings] = None) -> Client:
    """
    Return a Supabase client using the service role key (bypasses RLS).
    Used by the worker and server-side validation.

    Raises:
        ConfigurationError: if SUPABASE_URL or SUPABASE_SERVICE_ROLE_KEY is not set
    """
    settings = settings or get_settings()
    supabase_url = normalize_supabase_url(settings.supabase_url)
    if not supabase_url:
        raise ConfigurationError("SUPABASE_URL is not set")
    if not settings.supabase_service_role_key:
        raise ConfigurationError("Supabase Service Role Key not set (SUPABASE_SERVICE_ROLE_KEY)")
    return create_client(supabase_url, settings.supabase_service_role_key)
