from typing import Any, Dict, List, Optional

from supabase_client import supabase

TABLE_NAME = "admin_settings"


def fetch_settings() -> List[Dict[str, Any]]:
    response = (
        supabase.table(TABLE_NAME)
        .select("setting_key, setting_value, setting_type")
        .order("setting_key")
        .execute()
    )
    return response.data or []


def fetch_setting(key: str) -> Optional[Dict[str, Any]]:
    response = (
        supabase.table(TABLE_NAME)
        .select("setting_key, setting_value, setting_type")
        .eq("setting_key", key)
        .limit(1)
        .execute()
    )
    items = response.data or []
    return items[0] if items else None


def upsert_settings(records: List[Dict[str, Any]]) -> None:
    if not records:
        return
    supabase.table(TABLE_NAME).upsert(records, on_conflict="setting_key").execute()
