"""
Lazy Supabase admin client shared by the auth hook, the session gate
and the notification service.
"""
from supabase import create_client, Client

from scholarquest.config import config

_supabase: Client = None


def get_supabase() -> Client:
    """Get or create the Supabase admin client (service key)."""
    global _supabase
    if _supabase is None:
        url = config.supabase_url
        key = config.supabase_service_key
        if not url or not key:
            raise Exception("Supabase credentials not configured. Check SUPABASE_URL and SUPABASE_SERVICE_KEY in .env")
        _supabase = create_client(url, key)
    return _supabase
