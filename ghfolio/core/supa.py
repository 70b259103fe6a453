# ghfolio/core/supa.py
from supabase import Client, create_client

from .config import Settings
from .errors import StoreError


def get_supabase(settings: Settings) -> Client:
    if not settings.supabase_url or not settings.supabase_anon_key:
        raise StoreError("SUPABASE_URL and SUPABASE_ANON_KEY must be set")
    return create_client(settings.supabase_url, settings.supabase_anon_key)
