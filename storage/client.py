from __future__ import annotations

from functools import lru_cache

from supabase import Client, create_client

from config.settings import get_settings


@lru_cache(maxsize=1)
def get_supabase() -> Client:
    settings = get_settings()
    if not settings.supabase_url or not settings.supabase_key:
        raise RuntimeError(
            "SUPABASE_URL / SUPABASE_KEY not set. Please configure them in environment or .env"
        )
    return create_client(settings.supabase_url, settings.supabase_key)
