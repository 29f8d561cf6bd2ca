from typing import Optional
from supabase import create_client, Client
from storefront.config import SUPABASE_URL, SUPABASE_ANON_KEY

_supabase: Optional[Client] = None

def get_supabase() -> Client:
    """Client Supabase 'anon' partagé (résolution des tokens utilisateurs)."""
    global _supabase
    if _supabase is None:
        if not SUPABASE_URL or not SUPABASE_ANON_KEY:
            raise RuntimeError("SUPABASE_URL / SUPABASE_ANON_KEY manquants")
        _supabase = create_client(SUPABASE_URL, SUPABASE_ANON_KEY)
    return _supabase
