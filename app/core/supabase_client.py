# app/core/supabase_client.py
from functools import lru_cache
from typing import Any

from supabase import create_client, Client

from app.core.config import get_settings

settings = get_settings()


@lru_cache
def supabase_admin() -> Client:
    """
    Create a Supabase client with the service role key.

    Use cases:
      - invoking internal Edge Functions (AI quality scorer)
      - any operation that needs to bypass RLS

    WARNING:
      - Never expose service role key to frontend.
      - Only backend should call this.

    Raises:
        RuntimeError: if SUPABASE_SERVICE_ROLE_KEY is not set.
    """
    if not settings.SUPABASE_SERVICE_ROLE_KEY:
        raise RuntimeError("Missing SUPABASE_SERVICE_ROLE_KEY in .env")
    return create_client(settings.SUPABASE_URL, settings.SUPABASE_SERVICE_ROLE_KEY)


def invoke_function(name: str, body: dict[str, Any]) -> dict[str, Any]:
    """
    Invoke a Supabase Edge Function and return its JSON payload.

    Raises:
        Any exception raised by the Supabase client (HTTP / relay errors).
    """
    return supabase_admin().functions.invoke(
        name,
        invoke_options={"body": body, "responseType": "json"},
    )
